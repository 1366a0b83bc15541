"""qrguard — advisory rate limiting and admin session lifecycle.

Three cooperating components over a persisted key-value store:

- ``RateLimiter``: fixed-window attempt counter for account forms
- ``AdminLoginGuard``: failed-login history with a fifteen-minute lockout
- ``SessionGovernor``: idle timeout for the privileged admin session

Basic usage::

    from qrguard import LOGIN, RateLimiter, SQLiteStore

    limiter = RateLimiter(LOGIN, SQLiteStore("guard.db"))
    if limiter.check_rate_limit():
        ...
        limiter.record_attempt()

This layer is user-facing friction, not a security boundary. Anyone who
can clear the store resets it; enforce real limits on the server.
"""

__version__ = "0.1.0"
__all__ = [
    "FORGOT_PASSWORD",
    "LOGIN",
    "RATE_LIMIT_PRESETS",
    "RESEND_VERIFICATION",
    "ActivityBus",
    "ActivityKind",
    "AdminGuardConfig",
    "AdminLoginGuard",
    "AnyioScheduler",
    "AttemptRecord",
    "AuditEvent",
    "ConfigurationError",
    "GuardDecision",
    "LazyLoader",
    "LoadState",
    "MemoryStore",
    "Notification",
    "QRGuardError",
    "RateLimitConfig",
    "RateLimiter",
    "SQLiteStore",
    "SessionConfig",
    "SessionGovernor",
    "SessionStatus",
    "Severity",
    "SignedStore",
    "emit_audit_event",
    "set_audit_sink",
]

_LAZY_IMPORTS: dict[str, str] = {
    "FORGOT_PASSWORD": "qrguard.config",
    "LOGIN": "qrguard.config",
    "RATE_LIMIT_PRESETS": "qrguard.config",
    "RESEND_VERIFICATION": "qrguard.config",
    "RateLimitConfig": "qrguard.config",
    "AdminGuardConfig": "qrguard.config",
    "SessionConfig": "qrguard.config",
    "ActivityBus": "qrguard.activity",
    "ActivityKind": "qrguard.activity",
    "AdminLoginGuard": "qrguard.admin_guard",
    "AttemptRecord": "qrguard.admin_guard",
    "GuardDecision": "qrguard.admin_guard",
    "AnyioScheduler": "qrguard.scheduler",
    "AuditEvent": "qrguard.audit",
    "emit_audit_event": "qrguard.audit",
    "set_audit_sink": "qrguard.audit",
    "ConfigurationError": "qrguard.errors",
    "QRGuardError": "qrguard.errors",
    "LazyLoader": "qrguard.loader",
    "LoadState": "qrguard.loader",
    "MemoryStore": "qrguard.store",
    "SQLiteStore": "qrguard.store",
    "SignedStore": "qrguard.store",
    "Notification": "qrguard.notify",
    "Severity": "qrguard.notify",
    "RateLimiter": "qrguard.ratelimit",
    "SessionGovernor": "qrguard.session",
    "SessionStatus": "qrguard.session",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import qrguard`` free of anyio until a component is used.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    from importlib import import_module

    return getattr(import_module(module_name), name)
