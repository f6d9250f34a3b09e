"""Redaction for text that leaves the process: job error strings and event logs.

Provider error bodies and transport exceptions are the usual carriers of
secrets here: they echo request headers, query strings or the Redis DSN.
"""

from __future__ import annotations

import re

_REDACTED = "***REDACTED***"

# Job error strings are returned to pollers verbatim; provider bodies can be large.
JOB_ERROR_MAX_CHARS = 300

# (pattern, keep_prefix): prefix-keeping patterns replace only the ``value`` group.
_RULES: tuple[tuple[re.Pattern[str], bool], ...] = (
    (re.compile(r"(?i)(?P<prefix>\bauthorization\s*:\s*(?:bearer|basic|token)\s+)(?P<value>[^\s,;]+)"), True),
    (re.compile(r"(?i)(?P<prefix>\bbearer\s+)(?P<value>[A-Za-z0-9._~+/=-]+)"), True),
    (
        re.compile(
            r"(?i)(?P<prefix>[\"']?\b(?:api[_-]?key|key|token|secret|password)[\"']?\s*[:=]\s*[\"']?)"
            r"(?P<value>[^&\s\"',}]+)"
        ),
        True,
    ),
    (re.compile(r"(?i)(?P<prefix>\brediss?://)(?P<value>[^@/\s]+)(?=@)"), True),
    (re.compile(r"\bsk-[A-Za-z0-9_-]{8,}\b"), False),
)


def redact_sensitive(text: str) -> str:
    """Redact API keys, bearer tokens and DSN credentials, keeping the surrounding text."""
    if not text:
        return text
    redacted = str(text)
    for pattern, keep_prefix in _RULES:
        if keep_prefix:
            redacted = pattern.sub(lambda m: f"{m.group('prefix')}{_REDACTED}", redacted)
        else:
            redacted = pattern.sub(_REDACTED, redacted)
    return redacted


def clip_job_error(text: str, limit: int = JOB_ERROR_MAX_CHARS) -> str:
    """Single-line, bounded form of an error message stored on a job record."""
    flat = " ".join(str(text or "").split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3].rstrip() + "..."


__all__ = ["JOB_ERROR_MAX_CHARS", "clip_job_error", "redact_sensitive"]
