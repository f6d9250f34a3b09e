"""Pydantic domain models."""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from itinerary_jobs.domain.enums import JobStatus


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def coerce_date(value: Any) -> dt.date:
    """Accept ``YYYY-MM-DD``, ISO datetimes, ``date`` and ``datetime`` values."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    raw = str(value or "").strip()
    if not raw:
        raise ValueError("date is required")
    try:
        return dt.date.fromisoformat(raw[:10])
    except ValueError as exc:
        raise ValueError(f"invalid date: {raw!r}") from exc


# ── Survey input ──────────────────────────────────────


class SurveyInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destination: str = Field(min_length=1, max_length=200)
    start_date: dt.date = Field(alias="startDate")
    end_date: dt.date = Field(alias="endDate")
    purpose: str = Field(default="vacation", max_length=50)
    budget: str = Field(default="moderate", max_length=50)
    preferences: list[str] = Field(default_factory=list, max_length=30)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> dt.date:
        return coerce_date(value)

    @field_validator("destination")
    @classmethod
    def _strip_destination(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("destination must not be blank")
        return stripped

    @model_validator(mode="after")
    def _check_range(self) -> "SurveyInput":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


# ── Itinerary ─────────────────────────────────────────


class Coordinates(BaseModel):
    lat: float
    lng: float

    @field_validator("lat", "lng")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinate must be a finite number")
        return value


class Activity(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    time: str = "morning"
    title: str = ""
    description: str = ""
    location: str = ""
    coordinates: Coordinates
    cost: float = Field(default=0.0, ge=0)


class ItineraryDay(BaseModel):
    model_config = ConfigDict(extra="allow")

    date: dt.date
    activities: list[Activity] = Field(default_factory=list)


class ItineraryDates(BaseModel):
    start: dt.date
    end: dt.date


class AccommodationOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    description: str = ""
    location: str = ""
    price_per_night: float = Field(default=0.0, alias="pricePerNight")


class TransportationOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str = ""
    description: str = ""
    estimated_cost: float = Field(default=0.0, alias="estimatedCost")


class BudgetBreakdown(BaseModel):
    accommodation: float = 0.0
    food: float = 0.0
    activities: float = 0.0
    transport: float = 0.0
    total: float = 0.0

    @property
    def component_sum(self) -> float:
        return self.accommodation + self.food + self.activities + self.transport


class Itinerary(BaseModel):
    title: str = ""
    destination: str = ""
    dates: ItineraryDates
    days: list[ItineraryDay] = Field(default_factory=list)
    accommodation: list[AccommodationOption] = Field(default_factory=list)
    transportation: list[TransportationOption] = Field(default_factory=list)
    budget: BudgetBreakdown = Field(default_factory=BudgetBreakdown)

    @model_validator(mode="after")
    def _check_days(self) -> "Itinerary":
        expected = (self.dates.end - self.dates.start).days + 1
        if len(self.days) != expected:
            raise ValueError(f"itinerary has {len(self.days)} days, expected {expected}")
        for offset, day in enumerate(self.days):
            if day.date != self.dates.start + dt.timedelta(days=offset):
                raise ValueError(f"day {offset + 1} is dated {day.date}, out of order")
        seen: set[str] = set()
        for day in self.days:
            for activity in day.activities:
                if activity.id in seen:
                    raise ValueError(f"duplicate activity id: {activity.id}")
                seen.add(activity.id)
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ── Jobs ──────────────────────────────────────────────


class JobResult(BaseModel):
    itinerary: dict[str, Any]
    prompt: str = ""


class Job(BaseModel):
    id: str = Field(min_length=1)
    status: JobStatus
    result: Optional[JobResult] = None
    error: Optional[str] = None
    diagnostics: Optional[dict[str, Any]] = None
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _check_payload_invariant(self) -> "Job":
        if self.status == JobStatus.NOT_FOUND:
            raise ValueError("not_found is a read sentinel, not a job status")
        if (self.result is not None) != (self.status == JobStatus.COMPLETED):
            raise ValueError("result must be set if and only if status is completed")
        if (self.error is not None) != (self.status == JobStatus.FAILED):
            raise ValueError("error must be set if and only if status is failed")
        return self


class JobView(BaseModel):
    """What a status poll observes; ``status`` may be ``not_found``."""

    job_id: str
    status: JobStatus
    result: Optional[JobResult] = None
    error: Optional[str] = None
    diagnostics: Optional[dict[str, Any]] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @property
    def found(self) -> bool:
        return self.status != JobStatus.NOT_FOUND

    @classmethod
    def not_found(cls, job_id: str) -> "JobView":
        return cls(job_id=job_id, status=JobStatus.NOT_FOUND)

    @classmethod
    def from_job(cls, job: Job) -> "JobView":
        return cls(
            job_id=job.id,
            status=job.status,
            result=job.result,
            error=job.error,
            diagnostics=job.diagnostics,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )
