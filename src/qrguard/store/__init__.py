"""Persistent key-value stores.

``MemoryStore`` for tests, ``SQLiteStore`` for state shared across
processes, ``SignedStore`` to make out-of-band edits read as missing.
"""

from qrguard.store.memory import MemoryStore
from qrguard.store.protocol import PersistentStore, read_int, read_json, write_json
from qrguard.store.signed import SignedStore
from qrguard.store.sqlite import SQLiteStore

__all__ = [
    "MemoryStore",
    "PersistentStore",
    "SQLiteStore",
    "SignedStore",
    "read_int",
    "read_json",
    "write_json",
]
