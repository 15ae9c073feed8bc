"""
Research instrument collaborators

Two contracts the telemetry core depends on:
- ChatClient.send_message(transcript) -> assistant reply
- CompletionLogger.log_completion(record) -> persisted session record

The HTTP implementations talk to the instrument's /api/chat route, which
serves both chat completions and completion logging.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence
import logging

import httpx
from pydantic import BaseModel, Field

from creativity_telemetry.core.config import Settings, settings as default_settings
from creativity_telemetry.telemetry.capture import wall_clock_ms
from creativity_telemetry.telemetry.schemas import EngagementData, TaskKind, TelemetrySnapshot

logger = logging.getLogger(__name__)


# ============================================================================
# ERRORS
# ============================================================================

class ChatServiceError(Exception):
    """Chat or logging request failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(ChatServiceError):
    pass


class RateLimitedError(ChatServiceError):
    pass


class QuotaExceededError(ChatServiceError):
    pass


QUOTA_MARKERS = ("quota", "billing", "insufficient_quota")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP error! status: {response.status_code}"


def classify_error(response: httpx.Response) -> ChatServiceError:
    """Map a failed HTTP response onto the error taxonomy"""
    status = response.status_code
    message = _error_message(response)

    if status in (401, 403):
        return UnauthorizedError(message, status)
    if status == 402 or (status == 429 and any(m in message.lower() for m in QUOTA_MARKERS)):
        return QuotaExceededError(message, status)
    if status == 429:
        return RateLimitedError(message, status)
    return ChatServiceError(message, status)


# ============================================================================
# MODELS
# ============================================================================

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: float = Field(default_factory=wall_clock_ms)


class CompletionRecord(BaseModel):
    """Full session record persisted when a task is completed"""
    subject_id: str
    task_kind: TaskKind
    transcript: List[ChatMessage]
    task_responses: Any
    engagement_data: EngagementData
    start_time: str
    end_time: str
    telemetry: TelemetrySnapshot
    participant_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Request body understood by the instrument's logging route"""
        return {
            "subjectId": self.subject_id,
            "taskType": self.task_kind.value,
            "transcript": [m.model_dump(mode="json") for m in self.transcript],
            "taskResponses": self.task_responses,
            "engagementMetrics": self.engagement_data.model_dump(mode="json"),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "telemetry": self.telemetry.model_dump(mode="json"),
            "participantId": self.participant_id,
        }


def iso_timestamp(epoch_ms: float) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc).isoformat()


# ============================================================================
# CONTRACTS
# ============================================================================

class ChatClient(Protocol):
    async def send_message(self, transcript: Sequence[ChatMessage]) -> ChatMessage:
        ...


class CompletionLogger(Protocol):
    async def log_completion(self, record: CompletionRecord) -> None:
        ...


# ============================================================================
# HTTP IMPLEMENTATIONS
# ============================================================================

class _InstrumentClient:

    def __init__(
        self,
        base_url: Optional[str] = None,
        route: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.base_url = base_url or settings.INSTRUMENT_BASE_URL
        self.route = route or settings.CHAT_ROUTE
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.post(self.route, json=payload)
        except httpx.HTTPError as e:
            raise ChatServiceError(f"Request to {self.route} failed: {e}") from e

        if not response.is_success:
            raise classify_error(response)
        return response


class HttpChatClient(_InstrumentClient):

    async def send_message(self, transcript: Sequence[ChatMessage]) -> ChatMessage:
        response = await self._post({"messages": [m.model_dump(mode="json") for m in transcript]})

        try:
            data = response.json()
        except ValueError as e:
            raise ChatServiceError("Invalid response format from server", response.status_code) from e

        reply = data.get("response") if isinstance(data, dict) else None
        if not isinstance(reply, dict) or not reply.get("content"):
            raise ChatServiceError("Invalid response format from server", response.status_code)

        return ChatMessage(
            role="assistant",
            content=str(reply["content"]),
            timestamp=reply.get("timestamp") or wall_clock_ms(),
        )


class HttpCompletionLogger(_InstrumentClient):

    async def log_completion(self, record: CompletionRecord) -> None:
        await self._post(record.to_payload())
        logger.info(f"Completion record stored for subject {record.subject_id} ({record.task_kind.value})")
