"""Textual rewrites for the malformations the model emits most often.

Each rewrite is a plain ``str -> str`` function; ``repair_syntax`` applies them
in a fixed order and reports which ones changed the text. Rewrites that must
not touch string contents run on the segments between string literals only.
"""

from __future__ import annotations

import re
from typing import Callable

from itinerary_jobs.domain.constants import DEFAULT_LAT, DEFAULT_LNG

_STRING_LITERAL_RE = re.compile(r'"(?:[^"\\\n]|\\.)*"')

_UNQUOTED_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)")
_BARE_VALUE_RE = re.compile(r"(:\s*)([A-Za-z][^,{}\[\]:\n]*?)(\s*)(?=[,}\]\n]|$)")
_ADJACENT_OBJECTS_RE = re.compile(r"\}(\s*)\{")
_ADJACENT_ARRAYS_RE = re.compile(r"\](\s*)\[")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")

_NUMBER = r"(-?\d+(?:\.\d+)?)"
_COORD_PAIR_ARRAY_RE = re.compile(rf'"coordinates"\s*:\s*\[\s*{_NUMBER}\s*,\s*{_NUMBER}\s*\]')
_COORD_PAIR_STRING_RE = re.compile(rf'"coordinates"\s*:\s*"\s*{_NUMBER}\s*,\s*{_NUMBER}\s*"')
_COORD_EMPTY_RE = re.compile(
    r'"coordinates"\s*:\s*(?:"[^"\n]*"|\{\s*\}|\[\s*\]|null|(?=\s*[,}]))'
)

_PRICE_KEY = r'"[A-Za-z_]*(?:[cC]ost|[pP]rice|[rR]ate|[tT]otal|[bB]udget)[A-Za-z_]*"'
_QUOTED_PRICE_RE = re.compile(rf'({_PRICE_KEY}\s*:\s*")([^"\n]*)"')
_BARE_CURRENCY_RE = re.compile(r"(:\s*)[$€£]\s*((?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?)")
_CURRENCY_CHARS_RE = re.compile(r"[$€£]")

_LITERAL_WORDS = {"true", "false", "null"}

Rewrite = Callable[[str], str]


def _outside_strings(text: str, rewrite: Rewrite) -> str:
    parts: list[str] = []
    last = 0
    for match in _STRING_LITERAL_RE.finditer(text):
        parts.append(rewrite(text[last : match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(rewrite(text[last:]))
    return "".join(parts)


def neutralize_currency(text: str) -> str:
    """Drop ``$``/``€``/``£`` from price-like values, quoted or bare."""

    def _strip_quoted(match: re.Match[str]) -> str:
        cleaned = _CURRENCY_CHARS_RE.sub("", match.group(2)).strip()
        return f'{match.group(1)}{cleaned}"'

    text = _QUOTED_PRICE_RE.sub(_strip_quoted, text)
    return _BARE_CURRENCY_RE.sub(lambda m: m.group(1) + m.group(2).replace(",", ""), text)


def quote_unquoted_keys(text: str) -> str:
    return _outside_strings(text, lambda seg: _UNQUOTED_KEY_RE.sub(r'\1"\2"\3', seg))


def coerce_coordinates(text: str) -> str:
    """Turn empty, string, null or array ``coordinates`` into ``{lat, lng}`` objects."""
    text = _COORD_PAIR_ARRAY_RE.sub(r'"coordinates": {"lat": \1, "lng": \2}', text)
    text = _COORD_PAIR_STRING_RE.sub(r'"coordinates": {"lat": \1, "lng": \2}', text)
    placeholder = f'"coordinates": {{"lat": {DEFAULT_LAT}, "lng": {DEFAULT_LNG}}}'
    return _COORD_EMPTY_RE.sub(placeholder, text)


def quote_bare_values(text: str) -> str:
    def _quote(match: re.Match[str]) -> str:
        word = match.group(2).strip()
        if word in _LITERAL_WORDS:
            return match.group(0)
        escaped = word.replace("\\", "\\\\").replace('"', '\\"')
        return f'{match.group(1)}"{escaped}"{match.group(3)}'

    return _outside_strings(text, lambda seg: _BARE_VALUE_RE.sub(_quote, seg))


def insert_missing_commas(text: str) -> str:
    def _rewrite(segment: str) -> str:
        segment = _ADJACENT_OBJECTS_RE.sub(r"},\1{", segment)
        return _ADJACENT_ARRAYS_RE.sub(r"],\1[", segment)

    return _outside_strings(text, _rewrite)


def drop_trailing_commas(text: str) -> str:
    return _outside_strings(text, lambda seg: _TRAILING_COMMA_RE.sub(r"\1", seg))


REWRITES: tuple[tuple[str, Rewrite], ...] = (
    ("quote_unquoted_keys", quote_unquoted_keys),
    ("coerce_coordinates", coerce_coordinates),
    ("neutralize_currency", neutralize_currency),
    ("quote_bare_values", quote_bare_values),
    ("insert_missing_commas", insert_missing_commas),
    ("drop_trailing_commas", drop_trailing_commas),
)


def repair_syntax(text: str) -> tuple[str, list[str]]:
    applied: list[str] = []
    for name, rewrite in REWRITES:
        rewritten = rewrite(text)
        if rewritten != text:
            applied.append(name)
            text = rewritten
    return text, applied


__all__ = [
    "REWRITES",
    "coerce_coordinates",
    "drop_trailing_commas",
    "insert_missing_commas",
    "neutralize_currency",
    "quote_bare_values",
    "quote_unquoted_keys",
    "repair_syntax",
]
