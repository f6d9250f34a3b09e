"""Repair ladder and normalization for raw model itinerary output."""

from itinerary_jobs.repair.engine import OutputRepairEngine, RepairOutcome
from itinerary_jobs.repair.normalize import TripWindow, normalize_itinerary
from itinerary_jobs.repair.strategies import LADDER, ParseAttempt, first_success
from itinerary_jobs.repair.syntax import repair_syntax

__all__ = [
    "LADDER",
    "OutputRepairEngine",
    "ParseAttempt",
    "RepairOutcome",
    "TripWindow",
    "first_success",
    "normalize_itinerary",
    "repair_syntax",
]
