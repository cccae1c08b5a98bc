"""Shared utility functions used across teamfit modules."""
from __future__ import annotations

import math
import re
from collections.abc import Hashable, Iterable
from datetime import UTC, date, datetime
from typing import TypeVar

T = TypeVar("T", bound=Hashable)

_MULTIVALUE_SPLIT_RE = re.compile(r"[\r\n,;]+")


def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves away from zero for positives.

    ``round()`` uses banker's rounding, which makes UI scores such as 12.5
    flip between neighbours depending on parity.  Infinities and NaN are
    returned unchanged.
    """
    if not math.isfinite(value):
        return value
    return math.floor(value + 0.5)


def finite_or(value: float, default: float) -> float:
    """*value* if it is a finite number, else *default*."""
    return value if math.isfinite(value) else default


def unique(values: Iterable[T]) -> list[T]:
    """Deduplicate *values*, keeping the first occurrence and the order."""
    return list(dict.fromkeys(values))


def split_multivalue(value: str | None) -> list[str]:
    """Split a cell that holds several values separated by newlines, commas or semicolons."""
    if not value:
        return []
    return [item.strip() for item in _MULTIVALUE_SPLIT_RE.split(value) if item.strip()]


def parse_date(value: str | date | None) -> datetime | None:
    """Parse an ISO date or datetime, returning an aware UTC datetime or ``None``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)
