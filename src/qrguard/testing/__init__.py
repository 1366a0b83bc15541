"""Test utilities for code built on qrguard.

Virtual time and recording sinks, so limiter and session behaviour can be
asserted without real clocks::

    from qrguard.testing import ManualClock, RecordingSink, VirtualScheduler
"""

from qrguard.testing.clock import ManualClock
from qrguard.testing.scheduler import VirtualScheduler
from qrguard.testing.sinks import RecordingAuditSink, RecordingSink

__all__ = [
    "ManualClock",
    "RecordingAuditSink",
    "RecordingSink",
    "VirtualScheduler",
]
