"""Idle-timeout governor for the privileged admin session.

The authentication flow writes ``admin_token``; the governor owns
``admin_last_activity``. A session is valid while the token exists and
the last recorded activity is no older than the idle timeout (thirty
minutes by default). Checking a valid session counts as activity.

Two invalid outcomes are kept apart because the UI treats them
differently:

- no token: redirect quietly
- expired through inactivity: ``session_expired`` is set and one
  "Session Expired" notification goes out for that expiry

Mount/unmount maps to ``start()``/``stop()``::

    governor = SessionGovernor(store, scheduler=scheduler, activity=bus, notify=toast)
    with governor:
        ...  # checked once on entry, then every minute and on activity
"""

import logging
from collections.abc import Callable
from enum import StrEnum

from qrguard.activity import ActivityKind, ActivitySignalSource, Unsubscribe
from qrguard.clock import Clock, SystemClock
from qrguard.config import SessionConfig
from qrguard.notify import Notification, NotificationSink, Severity
from qrguard.scheduler import Cancel, NullScheduler, Scheduler
from qrguard.store.protocol import PersistentStore, read_int

_log = logging.getLogger("qrguard.session")

EXPIRED_NOTIFICATION = Notification(
    title="Session Expired",
    description="Your admin session has expired due to inactivity. Please log in again.",
    severity=Severity.DESTRUCTIVE,
)


class SessionStatus(StrEnum):
    UNCHECKED = "unchecked"
    VALID = "valid"
    INVALID = "invalid"


class SessionGovernor:
    """Track idleness of the admin session and expire it.

    Callbacks:

    - ``notify`` receives the one-shot expiry notification.
    - ``on_expired`` runs after an inactivity expiry (e.g. redirect to login).
    - ``on_unauthenticated`` runs when ``require_session()`` fails.
    """

    __slots__ = (
        "_activity",
        "_cancel_timer",
        "_clock",
        "_config",
        "_expiry_notified",
        "_notify",
        "_on_expired",
        "_on_unauthenticated",
        "_scheduler",
        "_session_expired",
        "_status",
        "_store",
        "_unsubscribe",
    )

    def __init__(
        self,
        store: PersistentStore,
        *,
        config: SessionConfig | None = None,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
        activity: ActivitySignalSource | None = None,
        notify: NotificationSink | None = None,
        on_expired: Callable[[], None] | None = None,
        on_unauthenticated: Callable[[], None] | None = None,
    ) -> None:
        self._store = store
        self._config = config or SessionConfig()
        self._clock = clock or SystemClock()
        self._scheduler = scheduler or NullScheduler()
        self._activity = activity
        self._notify = notify
        self._on_expired = on_expired
        self._on_unauthenticated = on_unauthenticated

        self._status = SessionStatus.UNCHECKED
        self._session_expired = False
        self._expiry_notified = False
        self._unsubscribe: Unsubscribe | None = None
        self._cancel_timer: Cancel | None = None

    # -- Observable state --

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_valid_session(self) -> bool:
        return self._status is SessionStatus.VALID

    @property
    def is_checking(self) -> bool:
        return self._status is SessionStatus.UNCHECKED

    @property
    def session_expired(self) -> bool:
        return self._session_expired

    @property
    def is_running(self) -> bool:
        return self._cancel_timer is not None

    def consume_session_expired(self) -> bool:
        """Return the expired flag and reset it, so the UI reacts once."""
        expired, self._session_expired = self._session_expired, False
        return expired

    # -- Operations --

    def _has_token(self) -> bool:
        return bool(self._store.get(self._config.token_key))

    def update_activity(self) -> None:
        self._store.set(self._config.last_activity_key, str(self._clock.now()))

    def clear_session(self) -> None:
        self._store.remove(self._config.token_key)
        self._store.remove(self._config.last_activity_key)
        self._status = SessionStatus.INVALID

    def check_session(self) -> bool:
        """Validate the session, expiring it after the idle timeout."""
        if not self._has_token():
            self._status = SessionStatus.INVALID
            return False

        raw = self._store.get(self._config.last_activity_key)
        if raw is not None:
            last_activity = read_int(self._store, self._config.last_activity_key)
            if last_activity is None:
                _log.warning("Unreadable last-activity value, ending admin session")
                self.clear_session()
                return False
            elapsed = self._clock.now() - last_activity
            if elapsed > self._config.idle_timeout_ms:
                self._expire(elapsed)
                return False

        self.update_activity()
        self._status = SessionStatus.VALID
        self._session_expired = False
        self._expiry_notified = False
        return True

    def require_session(self) -> bool:
        """``check_session()`` that also fires ``on_unauthenticated`` on failure."""
        if self.check_session():
            return True
        if self._on_unauthenticated is not None:
            self._on_unauthenticated()
        return False

    def _expire(self, elapsed: int) -> None:
        _log.warning("Admin session idle for %d ms, expiring", elapsed)
        self.clear_session()
        self._session_expired = True
        if self._expiry_notified:
            return
        self._expiry_notified = True
        if self._notify is not None:
            self._notify(EXPIRED_NOTIFICATION)
        if self._on_expired is not None:
            self._on_expired()

    # -- Lifecycle --

    def _handle_activity(self, kind: ActivityKind) -> None:
        # Anonymous visitors must not get a last-activity key.
        if self._has_token():
            self.update_activity()

    def _periodic_check(self) -> None:
        if self._has_token():
            self.check_session()

    def start(self) -> "SessionGovernor":
        """Check once, then follow activity and re-check periodically."""
        if self.is_running:
            return self
        self.check_session()
        if self._activity is not None:
            self._unsubscribe = self._activity.subscribe(self._handle_activity)
        self._cancel_timer = self._scheduler.every(
            self._config.check_interval_ms, self._periodic_check
        )
        return self

    def stop(self) -> None:
        """Drop the activity subscription and cancel the periodic check."""
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()
        if self._cancel_timer is not None:
            cancel, self._cancel_timer = self._cancel_timer, None
            cancel()

    def __enter__(self) -> "SessionGovernor":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"SessionGovernor(status={self._status.value}, expired={self._session_expired})"
