from .cache import QueryCache
from .hook import SESSIONS_KEY, ChatSessionHook, session_key
from .notifier import Notification, Notifier
from .state import (
    ChatMessage,
    Confirmed,
    Failed,
    MessageState,
    Pending,
    SessionSnapshot,
    SessionSummary,
    SessionView,
)
from .transport import ApiError, HttpChatApi

__all__ = [
    "ApiError",
    "ChatMessage",
    "ChatSessionHook",
    "Confirmed",
    "Failed",
    "HttpChatApi",
    "MessageState",
    "Notification",
    "Notifier",
    "Pending",
    "QueryCache",
    "SESSIONS_KEY",
    "SessionSnapshot",
    "SessionSummary",
    "SessionView",
    "session_key",
]
