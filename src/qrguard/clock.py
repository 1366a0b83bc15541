"""Wall clock in epoch milliseconds."""

import time
from typing import Protocol


class Clock(Protocol):
    """Anything with a ``now()`` returning integer epoch milliseconds."""

    def now(self) -> int: ...


class SystemClock:
    """Clock backed by ``time.time()``."""

    __slots__ = ()

    def now(self) -> int:
        return int(time.time() * 1000)


def iso_timestamp(ms: int) -> str:
    """Format epoch milliseconds as a UTC ISO-8601 string for log lines."""
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(ms / 1000)) + f".{ms % 1000:03d}Z"
