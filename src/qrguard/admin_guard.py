"""Admin login attempt guard with lockout.

Keeps a pruned history of failed admin logins under ``admin_login_attempts``
and a "locked until" marker under ``admin_login_lockout``. Five failures
inside fifteen minutes lock the form for fifteen minutes; one success
wipes everything.

Login handlers call it around the network request::

    guard = AdminLoginGuard(store)
    decision = guard.check_rate_limit()
    if not decision:
        show(decision.message)
        return
    ok = await api.admin_login(email, password)
    guard.log_attempt(email, success=ok)

Each attempt is also emitted on the audit channel (``qrguard.audit``) with
the client user agent, so an application can ship it to a server-side
audit log. This is friction for casual guessing, not a security boundary.
"""

import logging
import math
import platform
from dataclasses import dataclass
from typing import Any

from qrguard.audit import AuditEvent, AuditSink, emit_audit_event
from qrguard.clock import Clock, SystemClock, iso_timestamp
from qrguard.config import MINUTE_MS, AdminGuardConfig
from qrguard.store.protocol import PersistentStore, read_int, read_json, write_json

_log = logging.getLogger("qrguard.admin_guard")


def default_user_agent() -> str:
    """Best-effort client description recorded with each attempt."""
    from qrguard import __version__

    return f"qrguard/{__version__} ({platform.system() or 'unknown'}; Python {platform.python_version()})"


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """One admin authentication attempt. Timestamps are epoch milliseconds."""

    timestamp: int
    email: str
    success: bool
    user_agent: str | None = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": self.timestamp,
            "email": self.email,
            "success": self.success,
        }
        if self.user_agent is not None:
            data["userAgent"] = self.user_agent
        return data

    @classmethod
    def from_json(cls, data: Any) -> "AttemptRecord | None":
        if not isinstance(data, dict):
            return None
        timestamp = data.get("timestamp")
        email = data.get("email")
        success = data.get("success")
        user_agent = data.get("userAgent")
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            return None
        if not isinstance(email, str) or not isinstance(success, bool):
            return None
        if user_agent is not None and not isinstance(user_agent, str):
            user_agent = None
        return cls(timestamp=timestamp, email=email, success=success, user_agent=user_agent)


@dataclass(frozen=True, slots=True)
class GuardDecision:
    """Result of ``AdminLoginGuard.check_rate_limit()``. Truthy when allowed."""

    allowed: bool
    message: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


class AdminLoginGuard:
    """Failed-attempt counter and lockout for the admin login form.

    ``is_locked`` and ``remaining_attempts`` are derived from the store at
    construction and kept current by ``log_attempt`` and
    ``check_rate_limit``.
    """

    __slots__ = (
        "_audit",
        "_clock",
        "_config",
        "_is_locked",
        "_remaining_attempts",
        "_store",
        "_user_agent",
    )

    def __init__(
        self,
        store: PersistentStore,
        *,
        config: AdminGuardConfig | None = None,
        clock: Clock | None = None,
        user_agent: str | None = None,
        audit: AuditSink | None = None,
    ) -> None:
        self._store = store
        self._audit = audit if audit is not None else emit_audit_event
        self._config = config or AdminGuardConfig()
        self._clock = clock or SystemClock()
        self._user_agent = user_agent if user_agent is not None else default_user_agent()

        self._is_locked = False
        locked_until = read_int(self._store, self._config.lockout_key)
        if locked_until is not None and self._clock.now() < locked_until:
            self._is_locked = True
        elif self._store.get(self._config.lockout_key) is not None:
            self._store.remove(self._config.lockout_key)

        failures = self._recent_failures(self._clock.now())
        self._remaining_attempts = max(0, self._config.max_attempts - len(failures))

    # -- Observable state --

    @property
    def config(self) -> AdminGuardConfig:
        return self._config

    @property
    def is_locked(self) -> bool:
        return self._is_locked

    @property
    def remaining_attempts(self) -> int:
        return self._remaining_attempts

    @property
    def user_agent(self) -> str | None:
        return self._user_agent

    # -- Persistence --

    def _read_attempts(self) -> list[AttemptRecord]:
        data = read_json(self._store, self._config.attempts_key)
        if not isinstance(data, list):
            return []
        records = (AttemptRecord.from_json(item) for item in data)
        return [record for record in records if record is not None]

    def _recent_failures(self, now: int) -> list[AttemptRecord]:
        cutoff = now - self._config.lockout_ms
        return [r for r in self._read_attempts() if r.timestamp > cutoff and not r.success]

    def _reset(self) -> None:
        self._store.remove(self._config.attempts_key)
        self._store.remove(self._config.lockout_key)
        self._is_locked = False
        self._remaining_attempts = self._config.max_attempts

    # -- Operations --

    def attempts(self) -> list[AttemptRecord]:
        """Return the stored attempt history, oldest first."""
        return self._read_attempts()

    def log_attempt(self, email: str, success: bool) -> None:
        """Record the outcome of one admin login."""
        now = self._clock.now()
        attempt = AttemptRecord(
            timestamp=now, email=email, success=success, user_agent=self._user_agent
        )

        cutoff = now - self._config.lockout_ms
        recent = [r for r in [*self._recent_failures(now), attempt] if r.timestamp > cutoff]
        write_json(self._store, self._config.attempts_key, [r.to_json() for r in recent])

        failed = [r for r in recent if not r.success]
        _log.info(
            "Admin login attempt at %s: email=%s success=%s attempt_number=%d",
            iso_timestamp(now),
            email,
            success,
            len(failed),
        )
        self._audit(
            AuditEvent(
                name="admin.login.attempt",
                timestamp=now,
                subject=email,
                user_agent=self._user_agent,
                details={"success": success, "failed_attempts": len(failed)},
            )
        )

        if success:
            self._reset()
            return

        self._remaining_attempts = max(0, self._config.max_attempts - len(failed))
        if len(failed) >= self._config.max_attempts:
            locked_until = now + self._config.lockout_ms
            self._store.set(self._config.lockout_key, str(locked_until))
            self._is_locked = True
            _log.warning("Admin login locked for %s until %s", email, iso_timestamp(locked_until))
            self._audit(
                AuditEvent(
                    name="admin.login.locked",
                    timestamp=now,
                    subject=email,
                    user_agent=self._user_agent,
                    details={"locked_until": locked_until, "failed_attempts": len(failed)},
                )
            )

    def check_rate_limit(self) -> GuardDecision:
        """Refuse while a lockout is live; clear an expired one."""
        if self._store.get(self._config.lockout_key) is None:
            return GuardDecision(allowed=True)

        now = self._clock.now()
        locked_until = read_int(self._store, self._config.lockout_key)
        if locked_until is not None and now < locked_until:
            minutes = math.ceil((locked_until - now) / MINUTE_MS)
            self._is_locked = True
            return GuardDecision(
                allowed=False,
                message=f"Too many failed attempts. Please try again in {minutes} minute(s).",
            )

        _log.info("Admin login lockout expired, clearing failure history")
        self._reset()
        return GuardDecision(allowed=True)

    def get_lockout_remaining(self) -> int:
        """Minutes until the lockout ends, rounded up; 0 when not locked."""
        locked_until = read_int(self._store, self._config.lockout_key)
        if locked_until is None:
            return 0
        return max(0, math.ceil((locked_until - self._clock.now()) / MINUTE_MS))

    def __repr__(self) -> str:
        return (
            f"AdminLoginGuard(locked={self._is_locked}, "
            f"remaining_attempts={self._remaining_attempts})"
        )
