"""``qrguard status`` — read-only dump of persisted state.

Reads keys directly instead of going through the components, because
checking a limiter or session mutates it.
"""

import argparse
import math

from qrguard.admin_guard import AttemptRecord
from qrguard.cli._store import open_store
from qrguard.clock import SystemClock, iso_timestamp
from qrguard.config import MINUTE_MS, RATE_LIMIT_PRESETS, AdminGuardConfig, SessionConfig
from qrguard.ratelimit import RateLimitWindowState
from qrguard.store.protocol import PersistentStore, read_int, read_json


def describe_limiters(store: PersistentStore, now: int) -> list[str]:
    lines = []
    for name, config in RATE_LIMIT_PRESETS.items():
        state = RateLimitWindowState.from_json(read_json(store, config.storage_key))
        if state is None or state.attempts == 0:
            lines.append(f"{name:<20} {config.storage_key:<24} idle")
            continue
        age = now - state.first_attempt_time
        if age > config.window_ms:
            lines.append(f"{name:<20} {config.storage_key:<24} window expired")
            continue
        seconds = math.ceil((config.window_ms - age) / 1000)
        blocked = "blocked" if state.attempts >= config.max_attempts else "open"
        lines.append(
            f"{name:<20} {config.storage_key:<24} {state.attempts}/{config.max_attempts} "
            f"{blocked}, resets in {seconds}s"
        )
    return lines


def describe_admin_guard(store: PersistentStore, now: int) -> list[str]:
    config = AdminGuardConfig()
    data = read_json(store, config.attempts_key)
    records = [AttemptRecord.from_json(item) for item in data] if isinstance(data, list) else []
    cutoff = now - config.lockout_ms
    failures = [r for r in records if r is not None and not r.success and r.timestamp > cutoff]
    lines = [f"admin failed attempts: {len(failures)}/{config.max_attempts}"]
    lines.extend(f"  {iso_timestamp(r.timestamp)} {r.email}" for r in failures)
    locked_until = read_int(store, config.lockout_key)
    if locked_until is not None and now < locked_until:
        minutes = math.ceil((locked_until - now) / MINUTE_MS)
        lines.append(f"admin lockout: until {iso_timestamp(locked_until)} ({minutes} minute(s))")
    else:
        lines.append("admin lockout: none")
    return lines


def describe_session(store: PersistentStore, now: int) -> list[str]:
    config = SessionConfig()
    if not store.get(config.token_key):
        return ["admin session: none"]
    last_activity = read_int(store, config.last_activity_key)
    if last_activity is None:
        return ["admin session: token present, no activity recorded"]
    idle = now - last_activity
    state = "expired" if idle > config.idle_timeout_ms else "active"
    return [f"admin session: {state}, idle {idle // 1000}s of {config.idle_timeout_ms // 1000}s"]


def run_status(args: argparse.Namespace) -> None:
    """Print limiter, lockout and session state from ``args.db``."""
    now = SystemClock().now()
    with open_store(args.db) as store:
        lines = [
            *describe_limiters(store, now),
            *describe_admin_guard(store, now),
            *describe_session(store, now),
        ]
    print("\n".join(lines))
