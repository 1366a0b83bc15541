"""Fixed-window attempt limiter.

Counts attempts from the first attempt in a window and resets the counter
wholesale once ``window_ms`` has elapsed. Attempts do not decay one by
one, so a client can squeeze up to ``2 * max_attempts`` attempts across a
window boundary.

Typical form flow::

    limiter = RateLimiter(LOGIN, store, scheduler=scheduler)
    if not limiter.check_rate_limit():
        show(f"Try again in {limiter.format_remaining_time()}")
        return
    ok = await submit()
    if not ok:
        limiter.record_attempt()

Persisted as ``{"attempts": n, "firstAttemptTime": epoch_ms}`` under the
configured storage key. This is an advisory limiter: anyone who can clear
the store can reset it.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any

from qrguard.clock import Clock, SystemClock
from qrguard.config import RateLimitConfig
from qrguard.scheduler import Cancel, NullScheduler, Scheduler
from qrguard.store.protocol import PersistentStore, read_json, write_json

_log = logging.getLogger("qrguard.ratelimit")

_COUNTDOWN_TICK_MS = 1000


@dataclass(frozen=True, slots=True)
class RateLimitWindowState:
    """Persisted counter for one window."""

    attempts: int
    first_attempt_time: int

    def to_json(self) -> dict[str, int]:
        return {"attempts": self.attempts, "firstAttemptTime": self.first_attempt_time}

    @classmethod
    def from_json(cls, data: Any) -> "RateLimitWindowState | None":
        """Validate a decoded value; anything malformed reads as no state."""
        if not isinstance(data, dict):
            return None
        attempts = data.get("attempts")
        first = data.get("firstAttemptTime")
        if not _is_int(attempts) or not _is_int(first) or attempts < 0:
            return None
        if attempts > 0 and first <= 0:
            return None
        return cls(attempts=attempts, first_attempt_time=first)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class RateLimiter:
    """Fixed-window limiter bound to one storage key.

    Observable state mirrors what the form renders: ``is_blocked``,
    ``remaining_time`` (whole seconds), and ``attempts_left``. None of the
    public operations raise.
    """

    __slots__ = (
        "_attempts_left",
        "_clock",
        "_config",
        "_countdown",
        "_is_blocked",
        "_remaining_time",
        "_scheduler",
        "_store",
    )

    def __init__(
        self,
        config: RateLimitConfig,
        store: PersistentStore,
        *,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._clock = clock or SystemClock()
        self._scheduler = scheduler or NullScheduler()
        self._countdown: Cancel | None = None
        self._is_blocked = False
        self._remaining_time = 0
        self._attempts_left = config.max_attempts

    # -- Observable state --

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    @property
    def is_blocked(self) -> bool:
        return self._is_blocked

    @property
    def remaining_time(self) -> int:
        """Seconds until the window resets while blocked, else 0."""
        return self._remaining_time

    @property
    def attempts_left(self) -> int:
        return self._attempts_left

    # -- Persistence --

    def _read_state(self) -> RateLimitWindowState | None:
        return RateLimitWindowState.from_json(read_json(self._store, self._config.storage_key))

    def _write_state(self, state: RateLimitWindowState) -> None:
        write_json(self._store, self._config.storage_key, state.to_json())

    def _expired(self, state: RateLimitWindowState | None, now: int) -> bool:
        return (
            state is not None
            and state.attempts > 0
            and now - state.first_attempt_time > self._config.window_ms
        )

    def _seconds_left(self, state: RateLimitWindowState, now: int) -> int:
        time_left = self._config.window_ms - (now - state.first_attempt_time)
        return max(0, math.ceil(time_left / 1000))

    # -- Operations --

    def check_rate_limit(self) -> bool:
        """Return whether another attempt is allowed right now."""
        state = self._read_state()
        now = self._clock.now()

        if self._expired(state, now):
            self.clear_state()
            return True

        if state is not None and state.attempts >= self._config.max_attempts:
            self._block(self._seconds_left(state, now))
            return False

        attempts = state.attempts if state is not None else 0
        self._attempts_left = self._config.max_attempts - attempts
        return True

    def record_attempt(self) -> None:
        """Count one attempt, opening a new window when none is live."""
        state = self._read_state()
        now = self._clock.now()

        if state is None or state.attempts == 0 or self._expired(state, now):
            new_state = RateLimitWindowState(attempts=1, first_attempt_time=now)
        else:
            # Saturates at max_attempts.
            new_state = RateLimitWindowState(
                attempts=min(state.attempts + 1, self._config.max_attempts),
                first_attempt_time=state.first_attempt_time,
            )
        self._write_state(new_state)

        if new_state.attempts >= self._config.max_attempts:
            seconds = self._seconds_left(new_state, now)
            _log.info(
                "Rate limit %s reached (%d attempts), blocked for %ds",
                self._config.storage_key,
                new_state.attempts,
                seconds,
            )
            self._block(seconds)
        else:
            self._unblock()
            self._attempts_left = self._config.max_attempts - new_state.attempts

    def clear_state(self) -> None:
        """Forget the persisted window and reset to the initial config."""
        self._store.remove(self._config.storage_key)
        self._unblock()
        self._attempts_left = self._config.max_attempts

    def format_remaining_time(self) -> str:
        """Render ``remaining_time`` as ``"Xm Ys"`` or ``"Ys"``."""
        minutes, seconds = divmod(self._remaining_time, 60)
        if minutes > 0:
            return f"{minutes}m {seconds}s"
        return f"{seconds}s"

    # -- Countdown --

    def _block(self, seconds: int) -> None:
        self._is_blocked = True
        self._attempts_left = 0
        self._remaining_time = seconds
        self._cancel_countdown()
        if seconds > 0:
            self._countdown = self._scheduler.every(_COUNTDOWN_TICK_MS, self._tick)

    def _unblock(self) -> None:
        self._cancel_countdown()
        self._is_blocked = False
        self._remaining_time = 0

    def _tick(self) -> None:
        if self._remaining_time <= 1:
            self.clear_state()
            return
        self._remaining_time -= 1

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            cancel, self._countdown = self._countdown, None
            cancel()

    # -- Lifecycle --

    def start(self) -> "RateLimiter":
        """Run the initial check so observable state reflects the store."""
        self.check_rate_limit()
        return self

    def close(self) -> None:
        """Stop the countdown timer. Persisted state is left alone."""
        self._cancel_countdown()

    def __enter__(self) -> "RateLimiter":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"RateLimiter(key={self._config.storage_key!r}, blocked={self._is_blocked}, "
            f"attempts_left={self._attempts_left}, remaining_time={self._remaining_time})"
        )
