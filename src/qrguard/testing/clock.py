"""Manually driven clock."""


class ManualClock:
    """Clock that only moves when told to.

    Starts at a fixed, realistic epoch so zero never appears as a timestamp.
    """

    __slots__ = ("_now",)

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, ms: int) -> None:
        self._now = ms

    def advance(self, ms: int) -> int:
        self._now += ms
        return self._now
