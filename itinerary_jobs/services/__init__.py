"""Service layer public exports."""

from itinerary_jobs.services.job_service import describe_job_id, generate_job_id, get_job_status, submit_generation

__all__ = ["describe_job_id", "generate_job_id", "get_job_status", "submit_generation"]
