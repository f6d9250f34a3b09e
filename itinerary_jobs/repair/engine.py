"""Raw model text → validated itinerary."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from pydantic import ValidationError

from itinerary_jobs.domain.constants import ERROR_CONTEXT_CHARS, RAW_SAMPLE_CHARS
from itinerary_jobs.domain.exceptions import ItineraryRepairError
from itinerary_jobs.domain.models import Itinerary
from itinerary_jobs.repair.normalize import TripWindow, normalize_itinerary
from itinerary_jobs.repair.strategies import LADDER, ParseAttempt, Strategy, first_success

_logger = logging.getLogger("itinerary-jobs.repair")


@dataclass(frozen=True)
class RepairOutcome:
    itinerary: Itinerary
    strategy: str
    rewrites: tuple[str, ...] = ()
    fixes: tuple[str, ...] = ()


def _error_context(text: str, position: int | None) -> str:
    if position is None:
        return ""
    start = max(0, position - ERROR_CONTEXT_CHARS)
    return text[start : min(len(text), position + ERROR_CONTEXT_CHARS)]


class OutputRepairEngine:
    def __init__(self, strategies: Sequence[tuple[str, Strategy]] = LADDER):
        self._strategies = tuple(strategies)

    def parse(self, text: str) -> ParseAttempt:
        winner, attempts = first_success(text or "", self._strategies)
        for attempt in attempts:
            if not attempt.ok:
                _logger.debug("Strategy %s failed: %s", attempt.strategy, attempt.error)
        if winner is not None:
            return winner

        first = attempts[0] if attempts else ParseAttempt(strategy="none", error="No strategies configured")
        raise ItineraryRepairError(
            first.error or "Unable to parse model output",
            raw_sample=(text or "")[:RAW_SAMPLE_CHARS],
            error_context=_error_context(text or "", first.position),
            attempts=[f"{a.strategy}: {a.error}" for a in attempts],
        )

    def repair(self, text: str, window: TripWindow) -> RepairOutcome:
        attempt = self.parse(text)
        if attempt.strategy != "direct":
            _logger.info("Recovered itinerary JSON via %s (rewrites=%s)", attempt.strategy, list(attempt.rewrites))
        try:
            itinerary, fixes = normalize_itinerary(attempt.value or {}, window)
        except ValidationError as exc:
            raise ItineraryRepairError(
                f"Normalized itinerary failed validation: {exc.error_count()} error(s)",
                raw_sample=(text or "")[:RAW_SAMPLE_CHARS],
                attempts=[f"{attempt.strategy}: ok", f"normalize: {exc.errors()[0]['msg']}"],
            ) from exc
        if fixes:
            _logger.info("Normalization applied %d fix(es): %s", len(fixes), ", ".join(fixes[:20]))
        return RepairOutcome(
            itinerary=itinerary,
            strategy=attempt.strategy,
            rewrites=attempt.rewrites,
            fixes=tuple(fixes),
        )


__all__ = ["OutputRepairEngine", "RepairOutcome"]
