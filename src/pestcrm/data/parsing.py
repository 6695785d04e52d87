"""Helpers for turning data-API rows into domain values."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from zoneinfo import ZoneInfo

from ..config import settings


def coerce_decimal(value: Any) -> Optional[Decimal]:
    """Parse a numeric column into a Decimal, going through ``str`` for floats."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Unable to parse decimal from boolean '{value}'")
    if isinstance(value, Decimal):
        result = value
    else:
        # Decimal commas ("12,50") are rejected rather than guessed at.
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Unable to parse decimal from value '{value}'") from exc
    if not result.is_finite():
        raise ValueError(f"Non-finite decimal value '{value}'")
    return result


def coerce_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unable to parse integer from value '{value}'") from exc


def coerce_datetime(value: Any, tz: ZoneInfo | None = None) -> datetime:
    """Parse a timestamp and express it in the calendar timezone."""
    zone = tz or ZoneInfo(settings.calendar_timezone)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unable to parse timestamp from value '{value}'")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=zone)
    return parsed.astimezone(zone)


def embedded_field(row: dict, relation: str, column: str) -> Optional[Any]:
    """Read a column from an embedded (joined) relation such as ``customer:customer_id(kisa_isim)``."""
    embedded = row.get(relation)
    if isinstance(embedded, list):
        embedded = embedded[0] if embedded else None
    if not isinstance(embedded, dict):
        return None
    return embedded.get(column)


def optional_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
