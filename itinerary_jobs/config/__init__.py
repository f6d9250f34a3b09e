"""Runtime configuration."""

from itinerary_jobs.config.settings import Settings, load_settings, resolve_llm_provider

__all__ = ["Settings", "load_settings", "resolve_llm_provider"]
