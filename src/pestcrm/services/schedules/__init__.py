"""Schedule completion and coverage helpers."""

from .coverage import Coverage, find_unscheduled, find_unvisited
from .tracker import OperatorScheduleGroup, ScheduleProgress, group_by_operator, track

__all__ = [
    "track",
    "group_by_operator",
    "ScheduleProgress",
    "OperatorScheduleGroup",
    "find_unvisited",
    "find_unscheduled",
    "Coverage",
]
