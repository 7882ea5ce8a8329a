"""Notifiers surface short status messages to the user."""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Deque, List

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    """Notification severity."""

    ERROR = "error"  # Validation and transport failures
    INFO = "info"  # Progress, completion, removal


@dataclass(frozen=True)
class Notification:
    """A transient user-facing message."""

    kind: NotificationKind
    title: str
    detail: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier(ABC):
    """Abstract base class for notifiers."""

    @abstractmethod
    def notify(self, kind: NotificationKind, title: str, detail: str) -> None:
        """Surface a message to the user.

        Args:
            kind: Notification severity
            title: Short headline, e.g. "File too large"
            detail: One-line description
        """
        pass


class LoggingNotifier(Notifier):
    """Notifier that writes messages to the application log."""

    def notify(self, kind: NotificationKind, title: str, detail: str) -> None:
        level = logging.WARNING if kind == NotificationKind.ERROR else logging.INFO
        logger.log(level, f"{title}: {detail}", extra={"notification_kind": kind.value})


class InMemoryNotifier(LoggingNotifier):
    """Notifier that logs messages and buffers them until the host UI drains them.

    The buffer is bounded; the oldest messages are dropped first.
    """

    def __init__(self, max_size: int = 100):
        self._notifications: Deque[Notification] = deque(maxlen=max_size)

    def notify(self, kind: NotificationKind, title: str, detail: str) -> None:
        super().notify(kind, title, detail)
        self._notifications.append(Notification(kind=kind, title=title, detail=detail))

    def pending(self) -> List[Notification]:
        """Buffered notifications, oldest first, without draining."""
        return list(self._notifications)

    def drain(self) -> List[Notification]:
        """Return and forget all buffered notifications."""
        drained = list(self._notifications)
        self._notifications.clear()
        return drained
