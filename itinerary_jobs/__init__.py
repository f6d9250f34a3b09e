"""Itinerary generation jobs: async LLM itinerary synthesis with polling."""

__version__ = "1.0.0"
