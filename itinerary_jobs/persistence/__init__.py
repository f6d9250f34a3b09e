"""Durable tier backends and the job record codec."""

from itinerary_jobs.persistence.durable import DurableTier, build_durable_tier
from itinerary_jobs.persistence.keys import durable_key
from itinerary_jobs.persistence.records import job_to_record, record_to_job

__all__ = [
    "DurableTier",
    "build_durable_tier",
    "durable_key",
    "job_to_record",
    "record_to_job",
]
