"""Completion clients for itinerary generation.

Provider resolution (first configured wins):
  DASHSCOPE_API_KEY  → DashScope OpenAI-compatible endpoint
  OPENAI_API_KEY     → OpenAI (key must look like ``sk-...``)
  LLM_API_KEY        → any OpenAI-compatible endpoint (with LLM_BASE_URL)

Without a key the offline template client is used when template mode is
allowed (development), otherwise every call fails with a credentials error.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Protocol

import httpx

from itinerary_jobs.config.settings import Settings
from itinerary_jobs.domain.constants import PLACEHOLDER_ACTIVITIES, TEMPLATE_NIGHTLY_RATE
from itinerary_jobs.planner.dates import expected_dates, inclusive_day_count
from itinerary_jobs.security.key_manager import KeyManager, get_key_manager
from itinerary_jobs.shared.exceptions import (
    ModelCredentialsError,
    ModelProviderError,
    ModelTimeoutError,
    ModelTransportError,
)

_logger = logging.getLogger("itinerary-jobs.llm")

INVALID_KEY_MESSAGE = "Invalid LLM API key configuration. Please check your environment variables."


class CompletionClient(Protocol):
    provider: str

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str: ...


def _provider_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or "API error"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if body.get("message"):
            return str(body["message"])
    return "API error"


class OpenAICompatibleClient:
    """``POST {base_url}/chat/completions`` over httpx."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float,
        provider: str = "openai",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        key_manager: Optional[KeyManager] = None,
    ):
        self.provider = provider
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._transport = transport
        self._km = key_manager or get_key_manager()

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post("/chat/completions", json=payload, headers=headers)
        except httpx.TimeoutException:
            raise ModelTimeoutError(self._timeout) from None
        except httpx.HTTPError as exc:
            raise ModelTransportError(self._km.scrub_text(f"Network request failed: {exc}")) from None

        if response.status_code in (401, 403):
            _logger.error(
                "Provider %s rejected credentials: %s",
                self.provider,
                self._km.scrub_text(_provider_message(response)),
            )
            raise ModelCredentialsError(INVALID_KEY_MESSAGE)
        if response.status_code >= 400:
            raise ModelProviderError(response.status_code, self._km.scrub_text(_provider_message(response)))

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise ModelProviderError(response.status_code, "Provider returned an unexpected response body") from None
        if not isinstance(content, str) or not content.strip():
            raise ModelProviderError(response.status_code, "Provider returned an empty completion")

        usage = data.get("usage") or {}
        _logger.info(
            "Completion from %s/%s: %s chars, %s tokens",
            self.provider,
            self._model,
            len(content),
            usage.get("total_tokens", "unknown"),
        )
        return content


class UnconfiguredClient:
    """Stands in when no usable key exists; every call is a credentials failure."""

    provider = "unconfigured"

    def __init__(self, reason: str = INVALID_KEY_MESSAGE):
        self._reason = reason

    async def complete(self, system_prompt: str, user_prompt: str, *, max_tokens: int, temperature: float) -> str:
        raise ModelCredentialsError(self._reason)


_PROMPT_DESTINATION_RE = re.compile(r"itinerary for a trip to (?P<destination>.+?) from ")
_PROMPT_DATES_RE = re.compile(r"dates from (?P<start>\d{4}-\d{2}-\d{2}) to (?P<end>\d{4}-\d{2}-\d{2}) inclusive")


def _budget_level_from_prompt(user_prompt: str) -> str:
    if "budget-friendly" in user_prompt:
        return "budget"
    if "high-end" in user_prompt and "luxury accommodations" in user_prompt:
        return "luxury"
    return "moderate"


def template_itinerary(destination: str, start: str, end: str, budget_level: str = "moderate") -> dict[str, Any]:
    """Deterministic itinerary used for offline development runs."""
    day_count = inclusive_day_count(start, end)
    days = []
    for index, date in enumerate(expected_dates(start, end)):
        activities = []
        for slot, (time, title, description, location, lat, lng, cost) in enumerate(PLACEHOLDER_ACTIVITIES, start=1):
            activities.append(
                {
                    "id": f"act-{index}-{slot}",
                    "time": time.capitalize(),
                    "title": title.format(destination=destination, day=index + 1),
                    "description": description,
                    "location": location.format(destination=destination),
                    "coordinates": {"lat": lat, "lng": lng},
                    "cost": cost,
                }
            )
        days.append({"date": date.isoformat(), "activities": activities})

    nightly = TEMPLATE_NIGHTLY_RATE.get(budget_level, TEMPLATE_NIGHTLY_RATE["moderate"])
    accommodation = nightly * day_count
    food = 60.0 * day_count
    activities_total = 90.0 * day_count
    transport = 30.0 * day_count
    return {
        "title": f"{destination} Trip",
        "destination": destination,
        "dates": {"start": start, "end": end},
        "days": days,
        "accommodation": [
            {
                "name": f"{destination} Hotel",
                "description": "A comfortable hotel in a convenient location.",
                "location": f"Central {destination}",
                "pricePerNight": nightly,
            },
            {
                "name": f"{destination} Boutique Stay",
                "description": "A charming boutique accommodation with local character.",
                "location": f"Historic District, {destination}",
                "pricePerNight": round(nightly * 1.2, 2),
            },
        ],
        "transportation": [
            {
                "type": "Public Transit",
                "description": "Convenient and affordable public transportation network.",
                "estimatedCost": transport * 0.5,
            },
            {
                "type": "Taxi/Rideshare",
                "description": "On-demand rides for convenience.",
                "estimatedCost": transport * 0.5,
            },
        ],
        "budget": {
            "accommodation": accommodation,
            "food": food,
            "activities": activities_total,
            "transport": transport,
            "total": accommodation + food + activities_total + transport,
        },
    }


class TemplateItineraryClient:
    """Offline client: reads the trip window back out of the prompt and answers with a template."""

    provider = "template"

    async def complete(self, system_prompt: str, user_prompt: str, *, max_tokens: int, temperature: float) -> str:
        destination_match = _PROMPT_DESTINATION_RE.search(user_prompt)
        dates_match = _PROMPT_DATES_RE.search(user_prompt)
        if destination_match is None or dates_match is None:
            raise ModelProviderError(400, "Template provider could not read the trip window from the prompt")
        itinerary = template_itinerary(
            destination_match.group("destination"),
            dates_match.group("start"),
            dates_match.group("end"),
            _budget_level_from_prompt(user_prompt),
        )
        return json.dumps(itinerary, ensure_ascii=False)


def build_completion_client(settings: Settings, key_manager: Optional[KeyManager] = None) -> CompletionClient:
    km = key_manager or get_key_manager()
    resolved = km.get_llm_key()
    if resolved is None:
        if settings.template_mode_allowed:
            _logger.info("No LLM key configured; using offline template itineraries")
            return TemplateItineraryClient()
        _logger.warning("No LLM key configured; generation jobs will fail")
        return UnconfiguredClient()

    key_name, api_key = resolved
    if key_name == "OPENAI_API_KEY" and not api_key.startswith("sk-"):
        _logger.error("OPENAI_API_KEY is set but malformed (%s)", km.redact(api_key))
        return UnconfiguredClient("Invalid OpenAI API key configuration. Please check your environment variables.")

    return OpenAICompatibleClient(
        api_key=api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        timeout=settings.llm_timeout_seconds,
        provider=settings.llm_provider,
        key_manager=km,
    )


__all__ = [
    "CompletionClient",
    "INVALID_KEY_MESSAGE",
    "OpenAICompatibleClient",
    "TemplateItineraryClient",
    "UnconfiguredClient",
    "build_completion_client",
    "template_itinerary",
]
