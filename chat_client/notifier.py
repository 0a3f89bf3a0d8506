import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

_LOG_LEVELS = {
    SUCCESS: logging.INFO,
    WARNING: logging.WARNING,
    ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Notification:
    level: str
    message: str


class Notifier:
    """Transient user-facing notifications (toasts)."""

    def __init__(self, sink: Optional[Callable[[Notification], None]] = None):
        self.sink = sink
        self.history: List[Notification] = []

    def _emit(self, level: str, message: str) -> Notification:
        note = Notification(level=level, message=message)
        self.history.append(note)
        logger.log(_LOG_LEVELS[level], "toast[%s] %s", level, message)
        if self.sink is not None:
            self.sink(note)
        return note

    def success(self, message: str) -> Notification:
        return self._emit(SUCCESS, message)

    def warning(self, message: str) -> Notification:
        return self._emit(WARNING, message)

    def error(self, message: str) -> Notification:
        return self._emit(ERROR, message)
