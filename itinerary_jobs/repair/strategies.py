"""Parse strategies for raw model output, tried in order until one succeeds.

Every strategy is total: it returns a ``ParseAttempt`` instead of raising.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from itinerary_jobs.domain.constants import RESCAN_WINDOW
from itinerary_jobs.repair.syntax import repair_syntax


@dataclass(frozen=True)
class ParseAttempt:
    strategy: str
    value: Optional[dict[str, Any]] = None
    error: str = ""
    position: Optional[int] = None
    rewrites: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.value is not None


Strategy = Callable[[str], ParseAttempt]


def _loads_object(text: str, strategy: str, *, offset: int = 0, rewrites: Sequence[str] = ()) -> ParseAttempt:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        return ParseAttempt(strategy=strategy, error=exc.msg, position=offset + exc.pos, rewrites=tuple(rewrites))
    except (TypeError, ValueError, RecursionError) as exc:
        return ParseAttempt(strategy=strategy, error=str(exc), rewrites=tuple(rewrites))
    if not isinstance(parsed, dict):
        return ParseAttempt(strategy=strategy, error="Parsed result is not a valid object", rewrites=tuple(rewrites))
    return ParseAttempt(strategy=strategy, value=parsed, rewrites=tuple(rewrites))


def _brace_span(text: str, start_at: int = 0) -> tuple[int, int] | None:
    start = text.find("{", start_at)
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return start, end + 1


def parse_direct(text: str) -> ParseAttempt:
    return _loads_object(text.strip(), "direct")


def parse_brace_extraction(text: str) -> ParseAttempt:
    span = _brace_span(text)
    if span is None:
        return ParseAttempt(strategy="brace_extraction", error="No JSON object found in response")
    start, end = span
    return _loads_object(text[start:end], "brace_extraction", offset=start)


def parse_syntactic_repair(text: str) -> ParseAttempt:
    span = _brace_span(text)
    start, end = span if span is not None else (0, len(text))
    repaired, applied = repair_syntax(text[start:end])
    if not applied:
        return ParseAttempt(strategy="syntactic_repair", error="No applicable syntax repairs")
    return _loads_object(repaired, "syntactic_repair", rewrites=applied)


def parse_windowed_rescan(text: str, window: int = RESCAN_WINDOW) -> ParseAttempt:
    """Retry extraction from each ``{`` that opens within the first ``window`` chars."""
    last = ParseAttempt(strategy="windowed_rescan", error="No JSON object found in scan window")
    first_brace = text.find("{")
    if first_brace < 0:
        return last

    # The first brace was already covered by brace extraction.
    position = text.find("{", first_brace + 1)
    while 0 <= position < window:
        span = _brace_span(text, position)
        if span is None:
            break
        start, end = span
        attempt = _loads_object(text[start:end], "windowed_rescan", offset=start)
        if attempt.ok:
            return attempt
        repaired, applied = repair_syntax(text[start:end])
        if applied:
            attempt = _loads_object(repaired, "windowed_rescan", rewrites=applied)
            if attempt.ok:
                return attempt
        last = attempt
        position = text.find("{", position + 1)
    return last


LADDER: tuple[tuple[str, Strategy], ...] = (
    ("direct", parse_direct),
    ("brace_extraction", parse_brace_extraction),
    ("syntactic_repair", parse_syntactic_repair),
    ("windowed_rescan", parse_windowed_rescan),
)


def first_success(
    text: str,
    strategies: Sequence[tuple[str, Strategy]] = LADDER,
) -> tuple[Optional[ParseAttempt], list[ParseAttempt]]:
    """Run ``strategies`` in order; return the winner (or None) and every attempt made."""
    attempts: list[ParseAttempt] = []
    for _name, strategy in strategies:
        attempt = strategy(text)
        attempts.append(attempt)
        if attempt.ok:
            return attempt, attempts
    return None, attempts


__all__ = [
    "LADDER",
    "ParseAttempt",
    "first_success",
    "parse_brace_extraction",
    "parse_direct",
    "parse_syntactic_repair",
    "parse_windowed_rescan",
]
