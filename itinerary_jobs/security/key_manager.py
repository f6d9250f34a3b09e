"""Central access to provider credentials.

LLM keys are read here rather than through scattered ``os.getenv`` calls so
that every value handed out can later be scrubbed from log lines and job
error messages.
"""

from __future__ import annotations

import os
from typing import Optional

from itinerary_jobs.security.redact import redact_sensitive
from itinerary_jobs.shared.exceptions import KeyMissingError

LLM_KEY_NAMES = ("DASHSCOPE_API_KEY", "OPENAI_API_KEY", "LLM_API_KEY")


class KeyManager:
    def __init__(self):
        self._keys: dict[str, str] = {}

    def get(self, name: str, *, required: bool = False) -> Optional[str]:
        value = self._keys.get(name)
        if value is None:
            raw = os.getenv(name, "").strip()
            if raw:
                self._keys[name] = raw
                value = raw
            elif required:
                raise KeyMissingError(name)
        return value

    def get_llm_key(self) -> tuple[str, str] | None:
        """Return ``(env_name, key)`` for the highest-priority configured LLM key."""
        for name in LLM_KEY_NAMES:
            value = self.get(name)
            if value:
                return name, value
        return None

    @staticmethod
    def redact(value: str) -> str:
        if not value or len(value) <= 8:
            return "****"
        return value[:4] + "****" + value[-4:]

    def scrub_text(self, text: str) -> str:
        result = str(text) if text is not None else ""
        for name, value in self._keys.items():
            if value and value in result:
                result = result.replace(value, f"[{name}:***REDACTED***]")
        return redact_sensitive(result)

    def reload(self, name: str) -> None:
        raw = os.getenv(name, "").strip()
        if raw:
            self._keys[name] = raw
        else:
            self._keys.pop(name, None)


_manager: Optional[KeyManager] = None


def get_key_manager() -> KeyManager:
    global _manager
    if _manager is None:
        _manager = KeyManager()
    return _manager


def reset_key_manager() -> None:
    global _manager
    _manager = None
