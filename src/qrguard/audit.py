"""Audit event channel.

Small opt-in channel for authentication telemetry. The admin login guard
builds an ``AuditEvent`` for every attempt and every lockout and hands it
to its sink. Without an explicit sink, events go to the process-wide one
installed with ``set_audit_sink`` (nothing, by default)::

    set_audit_sink(HttpAuditSink("https://api.example.com/admin/audit"))
    guard = AdminLoginGuard(store)

or per guard with ``AdminLoginGuard(store, audit=events.append)``.
"""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any

from qrguard.errors import ConfigurationError

_log = logging.getLogger("qrguard.audit")


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """A structured audit event. ``timestamp`` is epoch milliseconds."""

    name: str
    timestamp: int
    subject: str | None = None
    user_agent: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


type AuditSink = Callable[[AuditEvent], None]

_process_sink: AuditSink | None = None


def set_audit_sink(sink: AuditSink | None) -> None:
    """Install the process-wide sink; ``None`` drops events."""
    global _process_sink
    _process_sink = sink


def emit_audit_event(event: AuditEvent) -> None:
    """Deliver ``event`` to the process-wide sink, if one is installed."""
    sink = _process_sink
    if sink is not None:
        sink(event)


class HttpAuditSink:
    """Forward audit events to an ingestion endpoint as JSON.

    Delivery is fire-and-forget: transport errors and non-2xx responses are
    logged, never raised into the login flow.

    Usage::

        set_audit_sink(HttpAuditSink("https://api.example.com/admin/audit"))

    ``httpx`` is an optional dependency (``pip install qrguard[audit]``).
    """

    __slots__ = ("_client", "_headers", "_url")

    def __init__(
        self,
        url: str,
        *,
        token: str | None = None,
        timeout: float = 5.0,
        client: Any | None = None,
    ) -> None:
        try:
            import httpx
        except ImportError:
            msg = (
                "HttpAuditSink requires the 'httpx' package. "
                "Install it with: pip install qrguard[audit]"
            )
            raise ConfigurationError(msg) from None

        if not url:
            msg = "HttpAuditSink url must not be empty."
            raise ConfigurationError(msg)

        self._url = url
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.Client(timeout=timeout)

    def __call__(self, event: AuditEvent) -> None:
        import httpx

        try:
            response = self._client.post(self._url, json=event.to_dict(), headers=self._headers)
        except httpx.HTTPError as exc:
            _log.warning("Audit delivery to %s failed: %s", self._url, exc)
            return
        if response.is_error:
            _log.warning(
                "Audit endpoint %s rejected %s with %d", self._url, event.name, response.status_code
            )

    def close(self) -> None:
        self._client.close()
