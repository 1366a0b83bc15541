"""Component configuration.

Every config is a frozen dataclass: immutable after creation, validated
once in ``__post_init__``. Durations are integer milliseconds to match the
epoch-ms values written to the persistent store.
"""

from dataclasses import dataclass

from qrguard.errors import ConfigurationError

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS


def _require_positive(owner: str, name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        msg = f"{owner}.{name} must be a positive integer, got {value!r}"
        raise ConfigurationError(msg)


def _require_key(owner: str, name: str, value: str) -> None:
    if not value:
        msg = f"{owner}.{name} must not be empty."
        raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Fixed-window limiter policy for one storage key.

    Usage::

        config = RateLimitConfig(max_attempts=5, window_ms=15 * MINUTE_MS, storage_key="rl_login")
    """

    max_attempts: int
    window_ms: int
    storage_key: str

    def __post_init__(self) -> None:
        _require_positive("RateLimitConfig", "max_attempts", self.max_attempts)
        _require_positive("RateLimitConfig", "window_ms", self.window_ms)
        _require_key("RateLimitConfig", "storage_key", self.storage_key)


# Preconfigured limiters used by the account forms.
LOGIN = RateLimitConfig(max_attempts=5, window_ms=15 * MINUTE_MS, storage_key="rl_login")
FORGOT_PASSWORD = RateLimitConfig(
    max_attempts=3, window_ms=15 * MINUTE_MS, storage_key="rl_forgot_password"
)
RESEND_VERIFICATION = RateLimitConfig(
    max_attempts=3, window_ms=5 * MINUTE_MS, storage_key="rl_resend_verification"
)

RATE_LIMIT_PRESETS: dict[str, RateLimitConfig] = {
    "login": LOGIN,
    "forgot_password": FORGOT_PASSWORD,
    "resend_verification": RESEND_VERIFICATION,
}


@dataclass(frozen=True, slots=True)
class AdminGuardConfig:
    """Admin login lockout policy.

    Storage keys are disjoint from every ``RateLimitConfig.storage_key``.
    """

    max_attempts: int = 5
    lockout_ms: int = 15 * MINUTE_MS
    attempts_key: str = "admin_login_attempts"
    lockout_key: str = "admin_login_lockout"

    def __post_init__(self) -> None:
        _require_positive("AdminGuardConfig", "max_attempts", self.max_attempts)
        _require_positive("AdminGuardConfig", "lockout_ms", self.lockout_ms)
        _require_key("AdminGuardConfig", "attempts_key", self.attempts_key)
        _require_key("AdminGuardConfig", "lockout_key", self.lockout_key)
        if self.attempts_key == self.lockout_key:
            msg = "AdminGuardConfig.attempts_key and lockout_key must differ."
            raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Idle-timeout policy for the privileged admin session.

    ``token_key`` is written by the authentication flow; the governor only
    reads it and removes it on expiry.
    """

    idle_timeout_ms: int = 30 * MINUTE_MS
    check_interval_ms: int = MINUTE_MS
    token_key: str = "admin_token"
    last_activity_key: str = "admin_last_activity"

    def __post_init__(self) -> None:
        _require_positive("SessionConfig", "idle_timeout_ms", self.idle_timeout_ms)
        _require_positive("SessionConfig", "check_interval_ms", self.check_interval_ms)
        _require_key("SessionConfig", "token_key", self.token_key)
        _require_key("SessionConfig", "last_activity_key", self.last_activity_key)
        if self.token_key == self.last_activity_key:
            msg = "SessionConfig.token_key and last_activity_key must differ."
            raise ConfigurationError(msg)
