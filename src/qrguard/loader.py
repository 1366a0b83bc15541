"""Guarded lazy singleton.

Replaces "is it loaded yet / is it loading" module flags with one object
holding an explicit state. The first caller of ``get()`` runs the
factory; callers arriving while it runs wait on the same ``anyio.Event``
and receive the same value, or the same failure.

Usage::

    captcha = LazyLoader(load_captcha_client, name="captcha")

    async def submit():
        client = await captcha.get()
        ...

A failed or cancelled load returns the loader to ``NOT_STARTED`` so a
later call can retry.
"""

import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

import anyio

from qrguard.errors import LoaderError

_log = logging.getLogger("qrguard.loader")


class LoadState(StrEnum):
    NOT_STARTED = "not_started"
    LOADING = "loading"
    READY = "ready"


class _Attempt[T]:
    """Outcome of one factory run, shared by everyone waiting on it."""

    __slots__ = ("done", "error", "value")

    def __init__(self) -> None:
        self.done = anyio.Event()
        self.value: T | None = None
        self.error: BaseException | None = None


class LazyLoader[T]:
    """Load a resource on first use, running the factory once at a time."""

    __slots__ = ("_attempt", "_factory", "_name", "_state")

    def __init__(self, factory: Callable[[], Awaitable[T]], *, name: str = "resource") -> None:
        self._factory = factory
        self._name = name
        self._state = LoadState.NOT_STARTED
        self._attempt: _Attempt[T] | None = None

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is LoadState.READY

    def _result(self, attempt: _Attempt[T]) -> T:
        if attempt.error is not None:
            msg = f"Loading {self._name} failed: {attempt.error}"
            raise LoaderError(msg) from attempt.error
        return attempt.value  # type: ignore[return-value]

    async def get(self) -> T:
        """Return the loaded value, loading it if needed.

        Raises ``LoaderError`` (chained to the factory's exception) when
        the load fails.
        """
        attempt = self._attempt
        if self._state is LoadState.READY and attempt is not None:
            return self._result(attempt)

        if self._state is LoadState.LOADING and attempt is not None:
            await attempt.done.wait()
            return self._result(attempt)

        attempt = self._attempt = _Attempt()
        self._state = LoadState.LOADING
        try:
            attempt.value = await self._factory()
        except BaseException as exc:
            attempt.error = exc
            self._state = LoadState.NOT_STARTED
            attempt.done.set()
            if not isinstance(exc, Exception):
                raise
            _log.error("Failed to load %s: %s", self._name, exc)
            msg = f"Loading {self._name} failed: {exc}"
            raise LoaderError(msg) from exc

        self._state = LoadState.READY
        attempt.done.set()
        return attempt.value

    def reset(self) -> None:
        """Forget a loaded value. A load in progress is left to finish."""
        if self._state is LoadState.READY:
            self._attempt = None
            self._state = LoadState.NOT_STARTED
