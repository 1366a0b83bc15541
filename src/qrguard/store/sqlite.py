"""SQLite-backed store shared across processes.

Plays the role of origin-wide browser storage: every process opening the
same database file sees the same keys, and values survive restarts. Each
call is an autocommitted statement; there is no cross-process locking
beyond what SQLite itself does, so concurrent read-modify-write cycles can
still lose updates.
"""

import logging
import sqlite3
from pathlib import Path

from qrguard.errors import StoreError

_log = logging.getLogger("qrguard.store")

_SCHEMA = "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"


class SQLiteStore:
    """``PersistentStore`` over a single ``kv`` table.

    Usage::

        store = SQLiteStore("guard.db")
        store.set("admin_token", "abc")
        store.close()

    Also usable as a context manager.
    """

    __slots__ = ("_conn", "_path")

    def __init__(self, path: str | Path = ":memory:") -> None:
        self._path = str(path)
        try:
            self._conn = sqlite3.connect(self._path, autocommit=True)
            self._conn.execute(_SCHEMA)
        except sqlite3.Error as exc:
            msg = f"Cannot open store at {self._path!r}: {exc}"
            raise StoreError(msg) from exc

    @property
    def path(self) -> str:
        return self._path

    def _execute(self, sql: str, params: tuple[str, ...] = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            msg = f"Store {self._path!r} failed: {exc}"
            raise StoreError(msg) from exc

    def get(self, key: str) -> str | None:
        row = self._execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else row[0]

    def set(self, key: str, value: str) -> None:
        self._execute(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )

    def remove(self, key: str) -> None:
        self._execute("DELETE FROM kv WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        return [row[0] for row in self._execute("SELECT key FROM kv ORDER BY key").fetchall()]

    def close(self) -> None:
        _log.debug("Closing store %s", self._path)
        self._conn.close()

    def __enter__(self) -> "SQLiteStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
