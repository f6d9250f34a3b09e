"""Prompt construction for itinerary generation."""

from itinerary_jobs.planner.dates import expected_dates, format_long_date, inclusive_day_count
from itinerary_jobs.planner.prompt_builder import SYSTEM_PROMPT, GenerationPrompt, build_prompt

__all__ = [
    "GenerationPrompt",
    "SYSTEM_PROMPT",
    "build_prompt",
    "expected_dates",
    "format_long_date",
    "inclusive_day_count",
]
