"""User-visible notifications (toasts)."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum


class Severity(StrEnum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True, slots=True)
class Notification:
    """A single toast message."""

    title: str
    description: str
    severity: Severity = Severity.DEFAULT


type NotificationSink = Callable[[Notification], None]


class LoggingNotificationSink:
    """Sink that writes notifications to a logger.

    Useful for headless processes where there is no UI to show a toast.
    """

    __slots__ = ("_logger",)

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("qrguard.notify")

    def __call__(self, notification: Notification) -> None:
        level = logging.WARNING if notification.severity is Severity.DESTRUCTIVE else logging.INFO
        self._logger.log(level, "%s: %s", notification.title, notification.description)
