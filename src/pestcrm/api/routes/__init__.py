"""Route group exports."""

from . import calendar, health

__all__ = ["calendar", "health"]
