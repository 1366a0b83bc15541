"""qrguard exception hierarchy.

The limiter, guard, and session governor never raise from their public
operations. Exceptions here are reserved for misconfiguration and for
tooling (CLI, store backends, loaders) that must report failures.
"""


class QRGuardError(Exception):
    """Base for all qrguard-specific errors."""


class ConfigurationError(QRGuardError):
    """Raised when a component is constructed with an invalid configuration.

    Also raised when an optional extra (``itsdangerous``, ``httpx``) is
    required but not installed.
    """


class StoreError(QRGuardError):
    """Raised when a persistent store backend cannot be opened or written."""


class LoaderError(QRGuardError):
    """Raised when a lazily loaded resource fails to become ready."""
