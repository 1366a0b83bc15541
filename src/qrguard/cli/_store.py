"""Shared store opening and key inventory for CLI commands."""

import sys
from collections.abc import Iterator
from contextlib import contextmanager

from qrguard.config import RATE_LIMIT_PRESETS, AdminGuardConfig, SessionConfig
from qrguard.errors import StoreError
from qrguard.store.sqlite import SQLiteStore


@contextmanager
def open_store(path: str) -> Iterator[SQLiteStore]:
    """Open the store for one command; any ``StoreError`` exits with code 1."""
    try:
        with SQLiteStore(path) as store:
            yield store
    except StoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def known_keys() -> tuple[str, ...]:
    """Keys qrguard components write.

    ``admin_token`` belongs to the login flow and is never listed, so
    ``clear all`` leaves an authenticated session's token in place.
    """
    guard = AdminGuardConfig()
    session = SessionConfig()
    return (
        *(config.storage_key for config in RATE_LIMIT_PRESETS.values()),
        guard.attempts_key,
        guard.lockout_key,
        session.last_activity_key,
    )
