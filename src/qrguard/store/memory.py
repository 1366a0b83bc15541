"""In-process store, mainly for tests and single-process tools."""

from collections.abc import Iterator, Mapping


class MemoryStore:
    """Dict-backed ``PersistentStore``.

    Exposes ``items()`` and ``in`` so tests can assert exact key/value
    contents.
    """

    __slots__ = ("_data",)

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> list[tuple[str, str]]:
        return sorted(self._data.items())

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._data))

    def __len__(self) -> int:
        return len(self._data)
