"""Field-level defaulting applied to every parsed itinerary candidate.

After this pass the candidate satisfies the itinerary invariants: one day per
requested calendar date in order, and every activity with a unique id,
finite numeric coordinates and a non-negative numeric cost.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from itinerary_jobs.domain.constants import (
    ACTIVITY_TIMES,
    DEFAULT_LAT,
    DEFAULT_LNG,
    PLACEHOLDER_ACTIVITIES,
)
from itinerary_jobs.domain.models import Itinerary, SurveyInput, coerce_date
from itinerary_jobs.planner.dates import expected_dates

_logger = logging.getLogger("itinerary-jobs.repair")

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%B %d, %Y", "%b %d, %Y", "%A, %B %d, %Y", "%d %B %Y")
_TIME_KEYWORDS = (
    ("morning", ("morning", "breakfast", "sunrise")),
    ("afternoon", ("afternoon", "lunch", "midday", "noon")),
    ("evening", ("evening", "night", "dinner", "sunset")),
)


@dataclass(frozen=True)
class TripWindow:
    destination: str
    start_date: dt.date
    end_date: dt.date

    @classmethod
    def from_survey(cls, survey: SurveyInput) -> "TripWindow":
        return cls(destination=survey.destination, start_date=survey.start_date, end_date=survey.end_date)

    def dates(self) -> list[dt.date]:
        return expected_dates(self.start_date, self.end_date)


def to_number(value: Any) -> Optional[float]:
    """Best-effort numeric read: ``12``, ``"12.5"``, ``"$25"``, ``"10-20"`` → first number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        match = _NUMBER_RE.search(str(value).replace(",", ""))
        if match is None:
            return None
        number = float(match.group(0))
    return number if math.isfinite(number) else None


def coerce_cost(value: Any) -> float:
    number = to_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def parse_loose_date(value: Any) -> Optional[dt.date]:
    if value is None:
        return None
    try:
        return coerce_date(value)
    except ValueError:
        pass
    raw = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return dt.datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def _coordinate(value: Any, low: float, high: float) -> Optional[float]:
    number = to_number(value)
    if number is None or not low <= number <= high:
        return None
    return number


def coerce_coordinates(value: Any, label: str, fixes: list[str]) -> dict[str, float]:
    lat_raw: Any = None
    lng_raw: Any = None
    if isinstance(value, dict):
        lat_raw = value.get("lat", value.get("latitude"))
        lng_raw = value.get("lng", value.get("lon", value.get("longitude")))
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        lat_raw, lng_raw = value
    elif isinstance(value, str) and "," in value:
        lat_raw, _, lng_raw = value.partition(",")

    lat = _coordinate(lat_raw, -90.0, 90.0)
    lng = _coordinate(lng_raw, -180.0, 180.0)
    if lat is None or lng is None:
        _logger.info("Invalid coordinates for activity %r (%r), substituting default", label, value)
        fixes.append(f"default_coordinates:{label}")
    return {
        "lat": DEFAULT_LAT if lat is None else lat,
        "lng": DEFAULT_LNG if lng is None else lng,
    }


def _time_of_day(value: Any, position: int) -> str:
    raw = str(value or "").strip().lower()
    for canonical, keywords in _TIME_KEYWORDS:
        if any(word in raw for word in keywords):
            return canonical
    return ACTIVITY_TIMES[min(position, len(ACTIVITY_TIMES) - 1)]


def _normalize_activity(raw: dict[str, Any], day_index: int, position: int, fixes: list[str]) -> dict[str, Any]:
    activity = dict(raw)
    if not str(activity.get("id") or "").strip():
        activity["id"] = f"act-{day_index}-{position + 1}"
        fixes.append(f"generated_id:{activity['id']}")
    else:
        activity["id"] = str(activity["id"]).strip()

    activity["title"] = str(activity.get("title") or activity.get("name") or "Activity")
    activity["description"] = str(activity.get("description") or "")
    activity["location"] = str(activity.get("location") or "")
    activity["time"] = _time_of_day(activity.get("time"), position)
    activity["coordinates"] = coerce_coordinates(activity.get("coordinates"), activity["title"], fixes)

    cost = coerce_cost(activity.get("cost"))
    if cost != activity.get("cost"):
        fixes.append(f"coerced_cost:{activity['id']}")
    activity["cost"] = cost
    return activity


def _normalize_day(raw: Any, day_index: int, fixes: list[str]) -> dict[str, Any]:
    day = dict(raw) if isinstance(raw, dict) else {}
    activities = day.get("activities")
    if not isinstance(activities, list):
        if activities is not None:
            fixes.append(f"activities_not_list:day{day_index + 1}")
        activities = []
    normalized = []
    for position, item in enumerate(activities):
        if not isinstance(item, dict):
            fixes.append(f"dropped_activity:day{day_index + 1}")
            continue
        normalized.append(_normalize_activity(item, day_index, position, fixes))
    day["activities"] = normalized
    return day


def placeholder_day(destination: str, date: dt.date, day_number: int) -> dict[str, Any]:
    activities = []
    for index, (time, title, description, location, lat, lng, cost) in enumerate(PLACEHOLDER_ACTIVITIES, start=1):
        activities.append(
            {
                "id": f"placeholder-{date.isoformat()}-{index}",
                "time": time,
                "title": title.format(destination=destination, day=day_number),
                "description": description,
                "location": location.format(destination=destination),
                "coordinates": {"lat": lat, "lng": lng},
                "cost": cost,
            }
        )
    return {"date": date.isoformat(), "activities": activities}


def reconcile_days(days: list[dict[str, Any]], window: TripWindow, fixes: list[str]) -> list[dict[str, Any]]:
    wanted = window.dates()
    if len(days) == len(wanted):
        for day, date in zip(days, wanted):
            if parse_loose_date(day.get("date")) != date:
                fixes.append(f"redated_day:{date.isoformat()}")
            day["date"] = date.isoformat()
        return days

    _logger.warning("Itinerary has %d days, expected %d; rebuilding day list", len(days), len(wanted))
    by_date: dict[dt.date, dict[str, Any]] = {}
    for day in days:
        parsed = parse_loose_date(day.get("date"))
        if parsed is not None and parsed not in by_date:
            by_date[parsed] = day

    rebuilt = []
    for day_number, date in enumerate(wanted, start=1):
        existing = by_date.get(date)
        if existing is not None:
            existing["date"] = date.isoformat()
            rebuilt.append(existing)
        else:
            fixes.append(f"placeholder_day:{date.isoformat()}")
            rebuilt.append(placeholder_day(window.destination, date, day_number))
    return rebuilt


def _dedupe_activity_ids(days: list[dict[str, Any]], fixes: list[str]) -> None:
    seen: set[str] = set()
    for day in days:
        for activity in day["activities"]:
            base = activity["id"]
            candidate = base
            suffix = 2
            while candidate in seen:
                candidate = f"{base}-{suffix}"
                suffix += 1
            if candidate != base:
                fixes.append(f"renamed_duplicate_id:{base}")
                activity["id"] = candidate
            seen.add(candidate)


def _normalize_options(
    value: Any, price_key: str, text_keys: tuple[str, ...], fixes: list[str]
) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        if value is not None:
            fixes.append(f"options_not_list:{price_key}")
        return []
    options = []
    for item in value:
        if not isinstance(item, dict):
            continue
        option = dict(item)
        for key in text_keys:
            text = option.get(key)
            if text is not None and not isinstance(text, str):
                fixes.append(f"coerced_text:{price_key}.{key}")
            option[key] = "" if text is None else str(text)
        option[price_key] = coerce_cost(option.get(price_key))
        options.append(option)
    return options


def _normalize_budget(value: Any, fixes: list[str]) -> dict[str, float]:
    raw = value if isinstance(value, dict) else {}
    budget = {key: coerce_cost(raw.get(key)) for key in ("accommodation", "food", "activities", "transport")}
    component_sum = sum(budget.values())
    total = to_number(raw.get("total"))
    if total is None:
        budget["total"] = component_sum
        fixes.append("budget_total_filled")
    else:
        budget["total"] = max(total, 0.0)
        if not math.isclose(total, component_sum, abs_tol=0.01):
            _logger.info("Budget total %.2f differs from component sum %.2f; keeping total", total, component_sum)
    return budget


def _normalize_dates(value: Any, window: TripWindow, fixes: list[str]) -> dict[str, str]:
    raw = value if isinstance(value, dict) else {}
    start = parse_loose_date(raw.get("start"))
    end = parse_loose_date(raw.get("end"))
    if start != window.start_date or end != window.end_date:
        fixes.append("dates_from_request")
    return {"start": window.start_date.isoformat(), "end": window.end_date.isoformat()}


def normalize_itinerary(candidate: dict[str, Any], window: TripWindow) -> tuple[Itinerary, list[str]]:
    fixes: list[str] = []
    data = dict(candidate)

    data["destination"] = str(data.get("destination") or window.destination)
    data["title"] = str(data.get("title") or f"{data['destination']} Trip")
    data["dates"] = _normalize_dates(data.get("dates"), window, fixes)

    raw_days = data.get("days")
    if not isinstance(raw_days, list):
        fixes.append("days_not_list")
        raw_days = []
    days = [_normalize_day(day, index, fixes) for index, day in enumerate(raw_days)]
    days = reconcile_days(days, window, fixes)
    _dedupe_activity_ids(days, fixes)
    data["days"] = days

    data["accommodation"] = _normalize_options(
        data.get("accommodation"), "pricePerNight", ("name", "description", "location"), fixes
    )
    data["transportation"] = _normalize_options(
        data.get("transportation"), "estimatedCost", ("type", "description"), fixes
    )
    data["budget"] = _normalize_budget(data.get("budget"), fixes)

    return Itinerary.model_validate(data), fixes


__all__ = [
    "TripWindow",
    "coerce_coordinates",
    "coerce_cost",
    "normalize_itinerary",
    "parse_loose_date",
    "placeholder_day",
    "reconcile_days",
    "to_number",
]
