"""
Telemetry session

One explicitly constructed object per task attempt in a tab. It owns the
event capture, the AI-usage matcher and the help-seeking tracker, tracks the
message composition lifecycle and hands out snapshots and engagement data.
"""

from typing import Any, Dict, List, Optional
import logging
import secrets
import string

from creativity_telemetry.core.config import Settings, settings as default_settings
from creativity_telemetry.telemetry.attribution import AIUsageMatcher, AttributionResult
from creativity_telemetry.telemetry.capture import Clock, EventCapture, EventTarget, wall_clock_ms
from creativity_telemetry.telemetry.environment import EnvironmentProbe
from creativity_telemetry.telemetry.help_seeking import HelpSeekingTracker
from creativity_telemetry.telemetry.schemas import (
    ClipboardDirection,
    ClipboardSource,
    CopyPasteEvent,
    EngagementData,
    HelpSeekingMetrics,
    InteractionType,
    TaskContext,
    TaskKind,
    TelemetrySnapshot,
)
from creativity_telemetry.telemetry.snapshot import SnapshotAssembler

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id(clock: Optional[Clock] = None) -> str:
    """session_<epoch ms>_<9 random base36 chars>"""
    now = int((clock or wall_clock_ms)())
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"session_{now}_{suffix}"


class TelemetrySession:
    """
    Session-scoped telemetry for one task attempt

    Usage:
        with TelemetrySession(document, window, TaskKind.REMOTE_ASSOCIATES) as session:
            session.start_message_composition()
            ...
            snapshot = session.generate_snapshot(current_round=2, task_progress=40)
    """

    def __init__(
        self,
        document: EventTarget,
        window: Optional[EventTarget] = None,
        task_kind: TaskKind = TaskKind.ALTERNATE_USES,
        participant_id: Optional[str] = None,
        session_id: Optional[str] = None,
        environment: Optional[EnvironmentProbe] = None,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self.clock = clock or wall_clock_ms
        self.settings = settings or default_settings
        self.task_kind = TaskKind(task_kind)
        self.session_id = session_id or generate_session_id(self.clock)
        self.participant_id = participant_id or self.session_id

        self.session_start = self.clock()
        self.session_end: Optional[float] = None

        self.capture = EventCapture(
            document,
            window,
            clock=self.clock,
            settings=self.settings,
            on_clipboard=self._on_clipboard,
        )
        self.matcher = AIUsageMatcher(settings=self.settings)
        self.help_seeking = HelpSeekingTracker(clock=self.clock, settings=self.settings)
        self.assembler = SnapshotAssembler(environment, clock=self.clock, settings=self.settings)

        # Composition lifecycle
        self.current_message = ""
        self.first_draft: Optional[str] = None
        self.message_start_time: Optional[float] = None
        self.last_message_start_time: Optional[float] = None
        self.pending_ai_response_time: Optional[float] = None
        self.total_messages = 0
        self.response_latencies: List[float] = []
        self.message_intervals: List[float] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> "TelemetrySession":
        """Begin capture; a restarted session measures time from the new start"""
        self.capture.start(self.session_id, self.participant_id, self.task_kind)
        self.session_start = self.clock()
        self.session_end = None
        logger.info(f"Telemetry session {self.session_id} started ({self.task_kind.value})")
        return self

    def stop(self) -> None:
        self.capture.stop()

    def __enter__(self) -> "TelemetrySession":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def is_complete(self) -> bool:
        return self.session_end is not None

    def mark_complete(self) -> float:
        """Set the session end instant once; later calls return the first value"""
        if self.session_end is None:
            self.session_end = self.clock()
        return self.session_end

    # ------------------------------------------------------------------
    # Message composition
    # ------------------------------------------------------------------

    def start_message_composition(self) -> None:
        now = self.clock()
        if self.pending_ai_response_time is not None:
            self.response_latencies.append(max(0.0, now - self.pending_ai_response_time))
            self.pending_ai_response_time = None
        if self.last_message_start_time is not None:
            self.message_intervals.append(max(0.0, now - self.last_message_start_time))

        self.message_start_time = now
        self.last_message_start_time = now
        self.current_message = ""
        self.first_draft = None
        self.capture.record_interaction(InteractionType.MESSAGE_START, 0.0)

    def update_message_content(self, content: str) -> None:
        content = content or ""
        if self.first_draft is None and content.strip():
            self.first_draft = content
        self.current_message = content

    def complete_message(self) -> None:
        started = self.message_start_time if self.message_start_time is not None else self.clock()
        duration = max(0.0, self.clock() - started)
        self.capture.record_interaction(InteractionType.MESSAGE_COMPLETE, duration, {
            "message_length": len(self.current_message),
            "word_count": len(self.current_message.split()),
        })
        self.total_messages += 1

    def record_ai_response(self, response_time_ms: float) -> None:
        self.pending_ai_response_time = self.clock()
        self.capture.record_interaction(InteractionType.AI_RESPONSE, response_time_ms)

    def record_navigation(self, target: str) -> None:
        self.capture.record_interaction(InteractionType.NAVIGATION, 0.0, {"target": target})

    def record_pause(self, duration_ms: float) -> None:
        self.capture.record_interaction(InteractionType.PAUSE, duration_ms)

    # ------------------------------------------------------------------
    # AI usage and help seeking
    # ------------------------------------------------------------------

    def record_assistant_text(self, text: str) -> None:
        self.matcher.record_assistant_text(text)

    def attribute_answer(self, answer: str) -> AttributionResult:
        return self.matcher.attribute(answer)

    def _on_clipboard(self, event: CopyPasteEvent) -> None:
        if event.direction == ClipboardDirection.COPY and event.source == ClipboardSource.CHAT:
            self.matcher.record_copy_from_chat()

    def record_ai_query(self) -> None:
        self.help_seeking.record_query()

    def record_answer_submission(self, was_ai_assisted: bool) -> None:
        self.help_seeking.record_submission(was_ai_assisted)

    def record_round_complete(self) -> None:
        self.help_seeking.record_round_complete()

    def reset_help_seeking(self) -> None:
        self.help_seeking.reset()

    def help_seeking_metrics(self) -> HelpSeekingMetrics:
        return self.help_seeking.snapshot()

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def generate_snapshot(
        self,
        current_round: Optional[int] = None,
        current_stimulus: Optional[Dict[str, Any]] = None,
        task_progress: float = 0.0,
        task_completion: bool = False,
        last_message: Optional[str] = None,
    ) -> TelemetrySnapshot:
        message = self.current_message if last_message is None else last_message
        task_context = TaskContext(
            current_round=current_round,
            current_stimulus=dict(current_stimulus) if current_stimulus else None,
            task_progress=min(100.0, max(0.0, float(task_progress or 0))),
            task_completion=task_completion,
        )
        return self.assembler.assemble(
            session_id=self.session_id,
            participant_id=self.participant_id,
            task_kind=self.task_kind,
            session_start=self.session_start,
            logs=self.capture.logs(),
            help_seeking=self.help_seeking.snapshot(),
            task_context=task_context,
            message=message,
            first_draft=self.first_draft,
            response_latencies=list(self.response_latencies),
            total_messages=self.total_messages,
            message_intervals=list(self.message_intervals),
        )

    def engagement_data(self) -> EngagementData:
        copy_paste = [e.model_copy() for e in self.capture.copy_paste_events]
        return EngagementData(
            ai_usage=self.matcher.tracking,
            copy_paste_events=copy_paste,
            copy_paste_count=len(copy_paste),
            help_seeking=self.help_seeking.snapshot(),
        )
