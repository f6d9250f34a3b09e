"""Survey → generation prompt.

Pure: no I/O, no clock. The returned ``day_count`` is the same inclusive count
the repair pass later reconciles the model output against.
"""

from __future__ import annotations

from dataclasses import dataclass

from itinerary_jobs.domain.enums import BudgetLevel, TripPurpose
from itinerary_jobs.domain.models import SurveyInput
from itinerary_jobs.planner.dates import format_long_date, inclusive_day_count

SYSTEM_PROMPT = (
    "You are an expert travel planner. Generate a detailed travel itinerary based on the user's "
    "preferences. Return your response in a structured JSON format only, with no additional text, "
    "explanation, or markdown formatting. Do not wrap the JSON in code blocks. Ensure all property "
    'names use double quotes. IMPORTANT: Every activity MUST include a valid "coordinates" object '
    'with "lat" and "lng" numerical values - never omit coordinates or use empty objects. Return a '
    "valid JSON object that can be parsed by a strict JSON parser."
)

_BUDGET_PHRASES = {
    BudgetLevel.BUDGET.value: (
        "budget-friendly options, looking for economical accommodations, affordable dining, "
        "and free or low-cost activities"
    ),
    BudgetLevel.MODERATE.value: (
        "mid-range options, with comfortable accommodations, good quality restaurants, "
        "and a mix of paid and free activities"
    ),
    BudgetLevel.LUXURY.value: "high-end options, with luxury accommodations, fine dining, and premium experiences",
}
_DEFAULT_BUDGET_PHRASE = "a mix of affordable and premium options"

_PURPOSE_PHRASES = {
    TripPurpose.VACATION.value: "a relaxing vacation",
    TripPurpose.HONEYMOON.value: "their honeymoon, so include romantic activities and settings",
    TripPurpose.FAMILY.value: "a family trip, so include family-friendly activities",
    TripPurpose.SOLO.value: "a solo adventure, with opportunities for both exploration and meeting people",
    TripPurpose.BUSINESS.value: "a business trip with some leisure time",
    TripPurpose.WEEKEND.value: "a quick weekend getaway",
    TripPurpose.ROADTRIP.value: "a road trip, including notable stops and routes",
}
_DEFAULT_PURPOSE_PHRASE = "a vacation"

_JSON_TEMPLATE = """{
  "title": "Trip title",
  "destination": "Destination name",
  "dates": {
    "start": "YYYY-MM-DD",
    "end": "YYYY-MM-DD"
  },
  "days": [
    {
      "date": "YYYY-MM-DD",
      "activities": [
        {
          "id": "unique-id",
          "time": "Morning/Afternoon/Evening",
          "title": "Activity name",
          "description": "Detailed description",
          "location": "Address or area",
          "coordinates": { "lat": 41.3851, "lng": 2.1734 },
          "cost": 0
        }
      ]
    }
  ],
  "accommodation": [
    {
      "name": "Accommodation name",
      "description": "Description",
      "location": "Address",
      "pricePerNight": 0
    }
  ],
  "transportation": [
    {
      "type": "Type of transport",
      "description": "Description",
      "estimatedCost": 0
    }
  ],
  "budget": {
    "accommodation": 0,
    "food": 0,
    "activities": 0,
    "transport": 0,
    "total": 0
  }
}"""


@dataclass(frozen=True)
class GenerationPrompt:
    system_prompt: str
    user_prompt: str
    day_count: int


def budget_phrase(budget: str) -> str:
    return _BUDGET_PHRASES.get(str(budget).strip().lower(), _DEFAULT_BUDGET_PHRASE)


def purpose_phrase(purpose: str) -> str:
    return _PURPOSE_PHRASES.get(str(purpose).strip().lower(), _DEFAULT_PURPOSE_PHRASE)


def preferences_sentence(preferences: list[str]) -> str:
    cleaned = [p.strip() for p in preferences if p and p.strip()]
    if not cleaned:
        return ""
    return f"They particularly enjoy {', '.join(cleaned)}."


def build_prompt(survey: SurveyInput) -> GenerationPrompt:
    day_count = inclusive_day_count(survey.start_date, survey.end_date)
    start_iso = survey.start_date.isoformat()
    end_iso = survey.end_date.isoformat()

    intro = (
        f"Create a detailed {day_count}-day travel itinerary for a trip to {survey.destination} "
        f"from {format_long_date(survey.start_date)} to {format_long_date(survey.end_date)}."
    )
    context = " ".join(
        part
        for part in (
            f"This trip is for {purpose_phrase(survey.purpose)}.",
            preferences_sentence(survey.preferences),
            f"The traveler is looking for {budget_phrase(survey.budget)}.",
        )
        if part
    )

    user_prompt = f"""
{intro}

{context}

IMPORTANT: You MUST create exactly {day_count} days in the itinerary, with dates from {start_iso} to {end_iso} inclusive.

For each day, provide:
1. Morning activity or attraction with: name, description, location, approximate cost
2. Lunch recommendation with: restaurant name, cuisine type, price range
3. Afternoon activity or attraction with: name, description, location, approximate cost
4. Dinner recommendation with: restaurant name, cuisine type, price range
5. Evening activity (if applicable) with: name, description, location, approximate cost

Also include:
- Recommended accommodation options with estimated nightly rates
- Transportation suggestions within the destination
- Total estimated budget breakdown for accommodation, food, activities, and transport

Return this as a JSON object exactly as shown below. Do not include any markdown formatting, code blocks, or additional text. Use ONLY double quotes for all property names and string values - never use single quotes.

VERY IMPORTANT:
- Do NOT use $ symbols in price fields. Instead use text descriptions like "Budget", "Moderate", "High-end" or numbers without currency symbols.
- For price ranges, use format like "10-20" or "Budget to Moderate" instead of "$10-$20".
- When mentioning locations with periods in their names (like St. Louis), make sure the JSON remains valid.

{_JSON_TEMPLATE}

Ensure all costs are in USD and are realistic estimates. For coordinates, use approximate latitude and longitude for each location. Remember to provide a properly formatted JSON response with all property names in double quotes.
"""
    return GenerationPrompt(system_prompt=SYSTEM_PROMPT, user_prompt=user_prompt, day_count=day_count)


__all__ = [
    "GenerationPrompt",
    "SYSTEM_PROMPT",
    "budget_phrase",
    "build_prompt",
    "preferences_sentence",
    "purpose_phrase",
]
