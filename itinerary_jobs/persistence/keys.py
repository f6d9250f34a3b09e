"""String job handle → numeric durable-tier key.

The mapping is pure and stable across processes: write and read paths must
call ``durable_key`` and nothing else.
"""

from __future__ import annotations

import re

_PREFIXED_TIMESTAMP_RE = re.compile(r"^(job|debug|test)_(\d+)")
_INT32_MASK = 0xFFFFFFFF
_HASH_PRIME = 31


def _java_string_hash(value: str) -> int:
    h = 0
    for char in value:
        h = (h * _HASH_PRIME + ord(char)) & _INT32_MASK
    # Reinterpret as signed 32-bit.
    return h - (1 << 32) if h & 0x80000000 else h


def durable_key(job_id: str) -> int:
    """``"42"`` → 42; ``"job_1717236000000_x"`` → 1717236000000; else ``abs(hash31(id))``."""
    raw = str(job_id).strip()
    if raw.isdigit():
        return int(raw)
    match = _PREFIXED_TIMESTAMP_RE.match(raw)
    if match:
        return int(match.group(2))
    return abs(_java_string_hash(raw))


__all__ = ["durable_key"]
