"""Post-parse normalization and the full repair engine."""

from __future__ import annotations

import datetime as dt
import json

from itinerary_jobs.domain.constants import DEFAULT_LAT, DEFAULT_LNG
from itinerary_jobs.repair.engine import OutputRepairEngine
from itinerary_jobs.repair.normalize import TripWindow, coerce_cost, normalize_itinerary, parse_loose_date, to_number

WINDOW_1 = TripWindow("Paris", dt.date(2024, 6, 1), dt.date(2024, 6, 1))
WINDOW_5 = TripWindow("Rome", dt.date(2024, 6, 1), dt.date(2024, 6, 5))


def _activity(activity_id: str, **overrides) -> dict:
    data = {
        "id": activity_id,
        "time": "Morning",
        "title": f"Activity {activity_id}",
        "description": "desc",
        "location": "somewhere",
        "coordinates": {"lat": 41.9, "lng": 12.5},
        "cost": 10,
    }
    data.update(overrides)
    return data


def _candidate(days: list, **overrides) -> dict:
    data = {
        "title": "Trip",
        "destination": "Rome",
        "dates": {"start": "2024-06-01", "end": "2024-06-05"},
        "days": days,
        "accommodation": [{"name": "Hotel", "pricePerNight": "$120"}],
        "transportation": [{"type": "Metro", "estimatedCost": 30}],
        "budget": {"accommodation": 600, "food": 200, "activities": 100, "transport": 30, "total": 930},
    }
    data.update(overrides)
    return data


def test_missing_coordinates_get_default():
    text = json.dumps(
        {
            "title": "Paris",
            "destination": "Paris",
            "dates": {"start": "2024-06-01", "end": "2024-06-01"},
            "days": [{"date": "2024-06-01", "activities": [_activity("a1"), _activity("a2", coordinates=None)]}],
        }
    )
    outcome = OutputRepairEngine().repair(text, WINDOW_1)
    second = outcome.itinerary.days[0].activities[1]
    assert outcome.strategy == "direct"
    assert second.coordinates.lat == DEFAULT_LAT
    assert second.coordinates.lng == DEFAULT_LNG
    assert any(fix.startswith("default_coordinates") for fix in outcome.fixes)


def test_out_of_range_or_garbled_coordinates_get_default():
    itinerary, _ = normalize_itinerary(
        _candidate(
            [
                {
                    "date": "2024-06-01",
                    "activities": [
                        _activity("a1", coordinates={"lat": 200, "lng": 12}),
                        _activity("a2", coordinates="near the river"),
                        _activity("a3", coordinates=[41.9, 12.5]),
                        _activity("a4", coordinates={"latitude": "41.8", "longitude": "12.4"}),
                    ],
                }
            ]
        ),
        WINDOW_1,
    )
    coords = [(a.coordinates.lat, a.coordinates.lng) for a in itinerary.days[0].activities]
    assert coords == [(DEFAULT_LAT, 12.0), (DEFAULT_LAT, DEFAULT_LNG), (41.9, 12.5), (41.8, 12.4)]


def test_short_day_list_is_rebuilt_with_placeholders():
    days = [
        {"date": "2024-06-01", "activities": [_activity("first")]},
        {"date": "June 3, 2024", "activities": [_activity("third")]},
    ]
    itinerary, fixes = normalize_itinerary(_candidate(days), WINDOW_5)
    assert [d.date for d in itinerary.days] == [dt.date(2024, 6, day) for day in range(1, 6)]
    assert itinerary.days[0].activities[0].id == "first"
    assert itinerary.days[2].activities[0].id == "third"
    for index in (1, 3, 4):
        activities = itinerary.days[index].activities
        assert [a.time for a in activities] == ["morning", "afternoon", "evening"]
        assert all(a.id.startswith("placeholder-") for a in activities)
        assert "Rome" in activities[0].location
    assert sum(fix.startswith("placeholder_day") for fix in fixes) == 3


def test_matching_length_is_redated_in_order():
    days = [{"date": "garbage", "activities": []} for _ in range(5)]
    itinerary, fixes = normalize_itinerary(_candidate(days), WINDOW_5)
    assert [d.date for d in itinerary.days] == [dt.date(2024, 6, day) for day in range(1, 6)]
    assert sum(fix.startswith("redated_day") for fix in fixes) == 5


def test_non_list_days_and_activities_are_coerced():
    itinerary, _ = normalize_itinerary(_candidate("not a list"), WINDOW_1)
    assert len(itinerary.days) == 1

    itinerary, _ = normalize_itinerary(_candidate([{"date": "2024-06-01", "activities": "none"}]), WINDOW_1)
    assert itinerary.days[0].activities == []


def test_activity_defaults():
    raw = {"title": "Lunch at Trattoria", "time": "Lunch", "cost": "about $25"}
    itinerary, _ = normalize_itinerary(_candidate([{"date": "2024-06-01", "activities": [raw, {"cost": "free"}]}]), WINDOW_1)
    first, second = itinerary.days[0].activities
    assert first.id == "act-0-1"
    assert first.time == "afternoon"
    assert first.cost == 25.0
    assert second.id == "act-0-2"
    assert second.cost == 0.0
    assert second.time == "afternoon"


def test_duplicate_activity_ids_are_renamed():
    days = [
        {"date": "2024-06-01", "activities": [_activity("x")]},
        {"date": "2024-06-02", "activities": [_activity("x")]},
    ]
    window = TripWindow("Rome", dt.date(2024, 6, 1), dt.date(2024, 6, 2))
    itinerary, _ = normalize_itinerary(_candidate(days), window)
    assert [d.activities[0].id for d in itinerary.days] == ["x", "x-2"]


def test_dates_follow_the_request():
    itinerary, fixes = normalize_itinerary(_candidate([], dates=None), WINDOW_1)
    assert itinerary.dates.start == itinerary.dates.end == dt.date(2024, 6, 1)
    assert "dates_from_request" in fixes


def test_budget_total_is_passed_through():
    budget = {"accommodation": 10, "food": 10, "activities": 10, "transport": 10, "total": 999}
    itinerary, _ = normalize_itinerary(_candidate([], budget=budget), WINDOW_1)
    assert itinerary.budget.total == 999


def test_missing_budget_total_is_filled_from_components():
    budget = {"accommodation": "100", "food": 50, "activities": "$25", "transport": None}
    itinerary, fixes = normalize_itinerary(_candidate([], budget=budget), WINDOW_1)
    assert itinerary.budget.total == 175
    assert "budget_total_filled" in fixes


def test_option_prices_are_numeric():
    itinerary, _ = normalize_itinerary(_candidate([]), WINDOW_1)
    payload = itinerary.to_payload()
    assert payload["accommodation"][0]["pricePerNight"] == 120.0
    assert payload["transportation"][0]["estimatedCost"] == 30.0


def test_number_helpers():
    assert to_number("10-20") == 10.0
    assert to_number("$1,250.50") == 1250.5
    assert to_number(True) is None
    assert coerce_cost(-5) == 0.0
    assert coerce_cost(float("nan")) == 0.0
    assert parse_loose_date("Saturday, June 1, 2024") == dt.date(2024, 6, 1)
    assert parse_loose_date("06/01/2024") == dt.date(2024, 6, 1)
    assert parse_loose_date("soon") is None


def test_engine_recovers_wrapped_and_malformed_output():
    text = (
        "Sure! Here's the itinerary:\n"
        '{title: "Rome", destination: "Rome", dates: {"start": "2024-06-01", "end": "2024-06-01"}, '
        '"days": [{"date": "2024-06-01", "activities": [{"id": "a", "time": Morning, "title": "Forum", '
        '"coordinates": [41.89, 12.48], "cost": $18,}]}]}'
    )
    outcome = OutputRepairEngine().repair(text, WINDOW_1)
    activity = outcome.itinerary.days[0].activities[0]
    assert outcome.strategy == "syntactic_repair"
    assert activity.cost == 18.0
    assert activity.coordinates.lat == 41.89
    assert activity.time == "morning"


def test_option_text_fields_are_coerced_to_strings():
    candidate = _candidate(
        [],
        accommodation=[{"name": "Hotel", "description": None, "location": 12, "pricePerNight": 100}],
        transportation=[{"type": 5, "description": None, "estimatedCost": "$8"}],
    )
    itinerary, fixes = normalize_itinerary(candidate, WINDOW_1)
    payload = itinerary.to_payload()
    assert payload["accommodation"][0]["description"] == ""
    assert payload["accommodation"][0]["location"] == "12"
    assert payload["transportation"][0]["type"] == "5"
    assert payload["transportation"][0]["estimatedCost"] == 8.0
    assert "coerced_text:estimatedCost.type" in fixes


def test_oversized_numbers_fall_back_to_defaults():
    huge = 10**400
    candidate = _candidate(
        [{"date": "2024-06-01", "activities": [_activity("a", cost=huge, coordinates={"lat": huge, "lng": 2.0})]}],
        budget={"accommodation": huge, "food": 10},
    )
    assert to_number(huge) is None
    itinerary, _ = normalize_itinerary(candidate, WINDOW_1)
    activity = itinerary.days[0].activities[0]
    assert activity.cost == 0.0
    assert (activity.coordinates.lat, activity.coordinates.lng) == (DEFAULT_LAT, 2.0)
    assert itinerary.budget.accommodation == 0.0


def test_engine_keeps_fields_after_a_bare_dollar_cost():
    text = (
        '{"days": [{"date": "2024-06-01", "activities": [{"title": "Louvre", "cost": $25, '
        '"location": "Paris"}]}]}'
    )
    outcome = OutputRepairEngine().repair(text, WINDOW_1)
    activity = outcome.itinerary.days[0].activities[0]
    assert activity.cost == 25.0
    assert activity.location == "Paris"
