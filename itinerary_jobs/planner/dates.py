"""Trip window arithmetic."""

from __future__ import annotations

import datetime as dt
import math
from typing import Any

from itinerary_jobs.domain.exceptions import InvalidSurveyError
from itinerary_jobs.domain.models import coerce_date

# Both ends are pinned to midday so day-boundary artifacts cannot shift the count.
_PINNED_TIME = dt.time(12, 0)
_SECONDS_PER_DAY = 86400


def _pinned(value: Any) -> dt.datetime:
    try:
        return dt.datetime.combine(coerce_date(value), _PINNED_TIME)
    except ValueError as exc:
        raise InvalidSurveyError(str(exc)) from exc


def inclusive_day_count(start: Any, end: Any) -> int:
    """Number of calendar days in ``[start, end]``, counting both ends."""
    diff = _pinned(end) - _pinned(start)
    count = math.floor(diff.total_seconds() / _SECONDS_PER_DAY) + 1
    if count < 1:
        raise InvalidSurveyError(f"end date {end} is before start date {start}")
    return count


def expected_dates(start: Any, end: Any) -> list[dt.date]:
    first = coerce_date(start)
    return [first + dt.timedelta(days=offset) for offset in range(inclusive_day_count(start, end))]


def format_long_date(value: Any) -> str:
    day = coerce_date(value)
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


__all__ = ["expected_dates", "format_long_date", "inclusive_day_count"]
