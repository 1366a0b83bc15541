"""``qrguard clear`` and ``qrguard unlock``."""

import argparse
import sys

from qrguard.cli._store import known_keys, open_store
from qrguard.config import AdminGuardConfig


def run_clear(args: argparse.Namespace) -> None:
    """Remove ``args.key`` (or every known key) from the store."""
    keys = known_keys()
    if args.key == "all":
        targets = keys
    elif args.key in keys:
        targets = (args.key,)
    else:
        print(
            f"Error: unknown key {args.key!r}. Expected one of: all, {', '.join(keys)}",
            file=sys.stderr,
        )
        raise SystemExit(1)

    with open_store(args.db) as store:
        for key in targets:
            store.remove(key)
    print(f"Cleared {', '.join(targets)}")


def run_unlock(args: argparse.Namespace) -> None:
    """Drop the admin lockout marker and failure history."""
    config = AdminGuardConfig()
    with open_store(args.db) as store:
        store.remove(config.attempts_key)
        store.remove(config.lockout_key)
    print("Admin login unlocked")
