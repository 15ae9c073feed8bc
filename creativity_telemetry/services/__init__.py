from .chat_client import (
    ChatClient,
    ChatMessage,
    ChatServiceError,
    CompletionLogger,
    CompletionRecord,
    HttpChatClient,
    HttpCompletionLogger,
    QuotaExceededError,
    RateLimitedError,
    UnauthorizedError,
)
from .task_session import ChatTurnResult, TaskSession

__all__ = [
    "ChatClient",
    "ChatMessage",
    "ChatServiceError",
    "CompletionLogger",
    "CompletionRecord",
    "HttpChatClient",
    "HttpCompletionLogger",
    "QuotaExceededError",
    "RateLimitedError",
    "UnauthorizedError",
    "ChatTurnResult",
    "TaskSession",
]
