"""
Task session orchestration

Drives one creativity task attempt: chat turns with the assistant, answer
submissions, round boundaries and the final completion record.

Failure policy for collaborators:
- Chat failures are logged and surfaced as a short retry prompt
- Completion-log failures are logged only; task completion never waits on
  or fails because of them
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from creativity_telemetry.services.chat_client import (
    ChatClient,
    ChatMessage,
    ChatServiceError,
    CompletionLogger,
    CompletionRecord,
    QuotaExceededError,
    RateLimitedError,
    iso_timestamp,
)
from creativity_telemetry.telemetry.attribution import AttributionResult
from creativity_telemetry.telemetry.schemas import TelemetrySnapshot
from creativity_telemetry.telemetry.session import TelemetrySession

logger = logging.getLogger(__name__)


CHAT_FAILURE_MESSAGE = "Sorry, I couldn't reach the assistant. Please try sending your message again."
CHAT_BUSY_MESSAGE = "The assistant is busy right now. Please wait a moment and try again."


def user_message_for(error: Exception) -> str:
    if isinstance(error, (RateLimitedError, QuotaExceededError)):
        return CHAT_BUSY_MESSAGE
    return CHAT_FAILURE_MESSAGE


@dataclass
class ChatTurnResult:
    reply: Optional[ChatMessage] = None
    error: Optional[str] = None
    snapshot: Optional[TelemetrySnapshot] = None

    @property
    def ok(self) -> bool:
        return self.reply is not None


class TaskSession:
    """
    One participant's attempt at a task, wired to the telemetry session
    and the two instrument collaborators
    """

    def __init__(
        self,
        telemetry: TelemetrySession,
        chat_client: ChatClient,
        completion_logger: CompletionLogger,
    ):
        self.telemetry = telemetry
        self.chat_client = chat_client
        self.completion_logger = completion_logger
        self._reset_state()

    def _reset_state(self):
        self.transcript: List[ChatMessage] = []
        self.task_responses: List[str] = []
        self.current_round = 1
        self.round_ai_queries = 0
        self.started_at = self.telemetry.clock()
        self.completion_record: Optional[CompletionRecord] = None
        self.completion_logged = False

    @property
    def subject_id(self) -> str:
        return self.telemetry.participant_id or self.telemetry.session_id

    async def send_chat(
        self,
        text: str,
        current_stimulus: Optional[Dict[str, Any]] = None,
        task_progress: float = 0.0,
    ) -> ChatTurnResult:
        text = (text or "").strip()
        if not text:
            return ChatTurnResult()

        clock = self.telemetry.clock
        user_message = ChatMessage(role="user", content=text, timestamp=clock())

        self.telemetry.update_message_content(text)
        self.telemetry.complete_message()
        self.telemetry.record_ai_query()
        self.round_ai_queries += 1

        snapshot = self.telemetry.generate_snapshot(
            current_round=self.current_round,
            current_stimulus=current_stimulus,
            task_progress=task_progress,
            last_message=text,
        )

        sent_at = clock()
        try:
            reply = await self.chat_client.send_message(self.transcript + [user_message])
        except ChatServiceError as e:
            logger.warning(f"Chat request failed ({type(e).__name__}, status={e.status_code}): {e}")
            return ChatTurnResult(error=user_message_for(e), snapshot=snapshot)
        except Exception as e:
            logger.error(f"Unexpected chat client error: {e}")
            return ChatTurnResult(error=CHAT_FAILURE_MESSAGE, snapshot=snapshot)

        self.transcript.extend([user_message, reply])
        self.telemetry.record_ai_response(clock() - sent_at)
        self.telemetry.record_assistant_text(reply.content)
        return ChatTurnResult(reply=reply, snapshot=snapshot)

    def submit_answer(self, answer: str) -> AttributionResult:
        """Record an answer for the current round and attribute it to AI replies"""
        self.telemetry.record_answer_submission(self.round_ai_queries > 0)
        self.task_responses.append(answer)
        return self.telemetry.attribute_answer(answer)

    def complete_round(self) -> None:
        self.telemetry.record_round_complete()
        self.round_ai_queries = 0
        self.current_round += 1

    def restart(self) -> None:
        """Intentional restart: clear responses, transcript and help-seeking state"""
        self.telemetry.reset_help_seeking()
        self._reset_state()
        logger.info(f"Task restarted for subject {self.subject_id}")

    async def complete_task(
        self,
        task_responses: Any = None,
        current_stimulus: Optional[Dict[str, Any]] = None,
    ) -> CompletionRecord:
        end = self.telemetry.mark_complete()
        snapshot = self.telemetry.generate_snapshot(
            current_round=self.current_round,
            current_stimulus=current_stimulus,
            task_progress=100.0,
            task_completion=True,
        )

        record = CompletionRecord(
            subject_id=self.subject_id,
            task_kind=self.telemetry.task_kind,
            transcript=list(self.transcript),
            task_responses=task_responses if task_responses is not None else list(self.task_responses),
            engagement_data=self.telemetry.engagement_data(),
            start_time=iso_timestamp(self.started_at),
            end_time=iso_timestamp(end),
            telemetry=snapshot,
            participant_id=self.telemetry.participant_id,
        )
        self.completion_record = record

        try:
            await self.completion_logger.log_completion(record)
            self.completion_logged = True
        except Exception as e:
            logger.error(f"Task completion logging failed for subject {record.subject_id}: {e}")

        return record
