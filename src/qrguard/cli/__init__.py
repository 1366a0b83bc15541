"""qrguard CLI — inspect and reset persisted limiter and session state.

Entry point registered as ``qrguard`` in ``pyproject.toml``::

    [project.scripts]
    qrguard = "qrguard.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``qrguard`` command."""
    parser = argparse.ArgumentParser(
        prog="qrguard",
        description="qrguard — advisory rate limiting and admin session state.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- qrguard status ---------------------------------------------------
    status_parser = subparsers.add_parser("status", help="Show limiter, lockout and session state")
    status_parser.add_argument("--db", required=True, help="Path to the SQLite store")

    # -- qrguard clear ----------------------------------------------------
    clear_parser = subparsers.add_parser(
        "clear", help="Remove one owned key, or 'all' (admin_token is never touched)"
    )
    clear_parser.add_argument("key", help="Storage key (e.g. rl_login) or 'all'")
    clear_parser.add_argument("--db", required=True, help="Path to the SQLite store")

    # -- qrguard unlock ---------------------------------------------------
    unlock_parser = subparsers.add_parser("unlock", help="Clear the admin login lockout")
    unlock_parser.add_argument("--db", required=True, help="Path to the SQLite store")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "status":
        from qrguard.cli._status import run_status

        run_status(args)
    elif args.command == "clear":
        from qrguard.cli._clear import run_clear

        run_clear(args)
    elif args.command == "unlock":
        from qrguard.cli._clear import run_unlock

        run_unlock(args)
