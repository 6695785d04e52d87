"""Calendar pipeline helpers."""

from .formatter import snapshot_to_response, snapshot_to_schedule_overview
from .pipeline import (
    CalendarInputs,
    CalendarSession,
    CalendarSnapshot,
    build_calendar_snapshot,
    load_calendar_inputs,
)

__all__ = [
    "CalendarInputs",
    "CalendarSession",
    "CalendarSnapshot",
    "build_calendar_snapshot",
    "load_calendar_inputs",
    "snapshot_to_response",
    "snapshot_to_schedule_overview",
]
