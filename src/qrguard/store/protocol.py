"""PersistentStore protocol and JSON helpers.

A store is a flat string-to-string map that outlives the process and is
shared by every process pointed at the same medium. Components own
disjoint keys; the helpers here never raise on bad data.
"""

import json
import logging
from typing import Any, Protocol

_log = logging.getLogger("qrguard.store")


class PersistentStore(Protocol):
    """String key-value store. ``get`` returns ``None`` for a missing key."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


def read_json(store: PersistentStore, key: str) -> Any | None:
    """Decode a JSON value, returning ``None`` when missing or unparseable."""
    raw = store.get(key)
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except ValueError:
        _log.debug("Ignoring unparseable JSON under %r", key)
        return None


def write_json(store: PersistentStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value, separators=(",", ":")))


def read_int(store: PersistentStore, key: str) -> int | None:
    """Decode an epoch-ms string, returning ``None`` when missing or corrupt.

    Leading digits are accepted the way ``parseInt`` accepts them, so a
    value like ``"1700000000000.0"`` still reads as a timestamp.
    """
    raw = store.get(key)
    if raw is None:
        return None
    text = raw.strip()
    sign = ""
    if text[:1] in ("-", "+"):
        sign, text = text[:1], text[1:]
    digits = ""
    for ch in text:
        if ch not in "0123456789":
            break
        digits += ch
    if not digits:
        _log.debug("Ignoring non-numeric value under %r", key)
        return None
    return int(sign + digits)
