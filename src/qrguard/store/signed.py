"""Tamper-evident store wrapper.

Values are signed with ``itsdangerous`` before they reach the inner store.
A value whose signature does not verify reads as missing, which the
components already treat as their default state.

``itsdangerous`` is an optional dependency. If not installed,
``SignedStore.__init__`` raises ``ConfigurationError``.
"""

import logging
from typing import Any

from qrguard.errors import ConfigurationError
from qrguard.store.protocol import PersistentStore

_log = logging.getLogger("qrguard.store")


class SignedStore:
    """Wrap a ``PersistentStore`` so edits made outside qrguard are ignored.

    Usage::

        store = SignedStore(SQLiteStore("guard.db"), secret_key="s3cret")
    """

    __slots__ = ("_inner", "_signer")

    def __init__(self, inner: PersistentStore, secret_key: str, *, salt: str = "qrguard.store") -> None:
        try:
            from itsdangerous import Signer
        except ImportError:
            msg = (
                "SignedStore requires the 'itsdangerous' package. "
                "Install it with: pip install qrguard[signed]"
            )
            raise ConfigurationError(msg) from None

        if not secret_key:
            msg = "SignedStore secret_key must not be empty."
            raise ConfigurationError(msg)

        self._inner = inner
        self._signer: Any = Signer(secret_key, salt=salt)

    def get(self, key: str) -> str | None:
        from itsdangerous import BadSignature

        raw = self._inner.get(key)
        if raw is None:
            return None
        try:
            return self._signer.unsign(raw).decode("utf-8")
        except (BadSignature, UnicodeDecodeError):
            _log.debug("Ignoring value with bad signature under %r", key)
            return None

    def set(self, key: str, value: str) -> None:
        self._inner.set(key, self._signer.sign(value).decode("utf-8"))

    def remove(self, key: str) -> None:
        self._inner.remove(key)
