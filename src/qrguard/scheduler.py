"""Timer scheduling behind a small protocol.

Components never sleep; they hand callbacks to a ``Scheduler`` and keep
the returned ``Cancel`` so teardown is structural. ``AnyioScheduler``
runs callbacks from tasks in an anyio task group;
``qrguard.testing.VirtualScheduler`` advances virtual time in tests.
"""

from collections.abc import Callable
from typing import Protocol

import anyio
from anyio.abc import TaskGroup

from qrguard.errors import ConfigurationError


type Callback = Callable[[], None]
type Cancel = Callable[[], None]


class Scheduler(Protocol):
    """Schedule callbacks after a delay or on a fixed period (milliseconds)."""

    def after(self, ms: int, fn: Callback) -> Cancel: ...

    def every(self, ms: int, fn: Callback) -> Cancel: ...


class AnyioScheduler:
    """Scheduler backed by an anyio task group.

    Must be entered before use; leaving the block cancels every pending
    timer::

        async with AnyioScheduler() as scheduler:
            limiter = RateLimiter(LOGIN, store, scheduler=scheduler)
            ...
    """

    __slots__ = ("_task_group",)

    def __init__(self) -> None:
        self._task_group: TaskGroup | None = None

    async def __aenter__(self) -> "AnyioScheduler":
        self._task_group = anyio.create_task_group()
        await self._task_group.__aenter__()
        return self

    async def __aexit__(self, *exc_info: object) -> bool | None:
        task_group = self._task_group
        assert task_group is not None
        task_group.cancel_scope.cancel()
        self._task_group = None
        return await task_group.__aexit__(*exc_info)  # type: ignore[arg-type]

    def _require_group(self) -> TaskGroup:
        if self._task_group is None:
            msg = "AnyioScheduler must be used inside 'async with'."
            raise ConfigurationError(msg)
        return self._task_group

    def after(self, ms: int, fn: Callback) -> Cancel:
        task_group = self._require_group()
        scope = anyio.CancelScope()

        async def _run() -> None:
            with scope:
                await anyio.sleep(ms / 1000)
                fn()

        task_group.start_soon(_run)
        return scope.cancel

    def every(self, ms: int, fn: Callback) -> Cancel:
        task_group = self._require_group()
        scope = anyio.CancelScope()

        async def _run() -> None:
            with scope:
                while True:
                    await anyio.sleep(ms / 1000)
                    fn()

        task_group.start_soon(_run)
        return scope.cancel


class NullScheduler:
    """Scheduler that never fires. Countdowns and periodic checks stay off."""

    __slots__ = ()

    def after(self, ms: int, fn: Callback) -> Cancel:
        return _noop

    def every(self, ms: int, fn: Callback) -> Cancel:
        return _noop


def _noop() -> None:
    return None
