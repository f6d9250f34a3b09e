"""API request/response models."""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, Field

from itinerary_jobs.domain.models import SurveyInput

GenerateItineraryRequest = SurveyInput


class CreateJobResponse(BaseModel):
    jobId: str
    status: str = Field(default="queued", description="queued / processing")
    message: str = ""


class JobStatusResponse(BaseModel):
    status: str = Field(description="queued / processing / completed / failed")
    result: Optional[dict[str, Any]] = Field(default=None, description="{itinerary, prompt} once completed")
    error: Optional[str] = None
    diagnostics: Optional[dict[str, Any]] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class ErrorResponse(BaseModel):
    error: str
    status: Optional[str] = None


class DebugJobIdResponse(BaseModel):
    originalJobId: str
    dbCompatibleId: int


class HealthResponse(BaseModel):
    status: str = "ok"
