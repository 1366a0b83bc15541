"""User-activity signals.

The governor only needs ``subscribe(handler) -> unsubscribe``. Delivery is
best-effort and may repeat, so handlers must be idempotent. Which physical
input events count as activity is up to whatever calls ``ActivityBus.emit``.
"""

from collections.abc import Callable
from enum import StrEnum
from typing import Protocol


class ActivityKind(StrEnum):
    """Interactions that count as user activity."""

    POINTER_DOWN = "mousedown"
    KEY_DOWN = "keydown"
    SCROLL = "scroll"
    TOUCH_START = "touchstart"


type ActivityHandler = Callable[[ActivityKind], None]
type Unsubscribe = Callable[[], None]


class ActivitySignalSource(Protocol):
    """Source of activity events."""

    def subscribe(self, handler: ActivityHandler) -> Unsubscribe: ...


class ActivityBus:
    """In-process ``ActivitySignalSource`` fed by ``emit()``.

    Handlers are called synchronously in subscription order. Exceptions
    from a handler propagate to the emitter.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: list[ActivityHandler] = []

    def subscribe(self, handler: ActivityHandler) -> Unsubscribe:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            # Identity comparison; the same callable may be subscribed twice.
            for i, existing in enumerate(self._handlers):
                if existing is handler:
                    del self._handlers[i]
                    return

        return unsubscribe

    def emit(self, kind: ActivityKind = ActivityKind.POINTER_DOWN) -> None:
        for handler in tuple(self._handlers):
            handler(kind)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)
