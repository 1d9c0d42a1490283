"""Core recording engine: clock, row assembly and session state machines.

This package sits between the sensor feed and the output encoder: the
:class:`SampleClock` drives :class:`RecordingSession` (which buffers rows and
finalizes them to storage) and :class:`MonitoringSession` (which only
refreshes a display).
"""

from .clock import ClockStats, SampleClock, Stopwatch, deadline_schedule, period_ns_for_rate
from .monitor import MonitoringSession
from .recorder_session import RecordingSession, SessionBusy, SessionCallbacks, SessionStatus
from .rows import HEADER, MISSING, assemble_row, format_axis

__all__ = [
    "ClockStats",
    "SampleClock",
    "Stopwatch",
    "deadline_schedule",
    "period_ns_for_rate",
    "MonitoringSession",
    "RecordingSession",
    "SessionBusy",
    "SessionCallbacks",
    "SessionStatus",
    "HEADER",
    "MISSING",
    "assemble_row",
    "format_axis",
]
