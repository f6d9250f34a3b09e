"""FastAPI application: job submission and status polling."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import BackgroundTasks, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from itinerary_jobs import __version__
from itinerary_jobs.api.schemas import (
    CreateJobResponse,
    DebugJobIdResponse,
    ErrorResponse,
    GenerateItineraryRequest,
    HealthResponse,
    JobStatusResponse,
)
from itinerary_jobs.application.context import AppContext, close_app_context, get_app_context
from itinerary_jobs.application.scheduling import BackgroundTaskScheduler
from itinerary_jobs.services.job_service import describe_job_id, get_job_status, submit_generation
from itinerary_jobs.shared.exceptions import JobCreationError

_api_logger = logging.getLogger("itinerary-jobs.api")

load_dotenv()


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    await close_app_context()


app = FastAPI(
    title="itinerary-jobs",
    version=__version__,
    docs_url="/docs" if os.getenv("ENABLE_DOCS", "false").lower() == "true" else None,
    redoc_url=None,
    lifespan=_lifespan,
)


# ── Security middleware ───────────────────────────────


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


app.add_middleware(SecurityHeadersMiddleware)

_cors_origins = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def get_context() -> AppContext:
    return get_app_context()


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@app.get("/diagnostics")
def diagnostics(ctx: AppContext = Depends(get_context)):
    """Store backend and job counts (protect behind auth in production)."""
    return {
        "store": ctx.store.stats(),
        "llm_provider": getattr(ctx.pipeline.client, "provider", "unknown"),
        "app_env": ctx.settings.app_env,
    }


@app.post(
    "/api/generate-itinerary",
    response_model=CreateJobResponse,
    responses={500: {"model": ErrorResponse}},
)
async def generate_itinerary(
    req: GenerateItineraryRequest,
    background_tasks: BackgroundTasks,
    ctx: AppContext = Depends(get_context),
):
    try:
        return await submit_generation(ctx, req, BackgroundTaskScheduler(background_tasks))
    except JobCreationError as exc:
        _safe_log_exception(ctx, "generate-itinerary: job creation failed", exc)
        return JSONResponse(status_code=500, content={"error": "Failed to create job"})


@app.get(
    "/api/job-status",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def job_status(
    jobId: Optional[str] = Query(default=None, max_length=128),
    ctx: AppContext = Depends(get_context),
):
    job_id = (jobId or "").strip()
    if not job_id:
        return JSONResponse(status_code=400, content={"error": "Job ID is required"})

    view = await get_job_status(ctx, job_id)
    if not view.found:
        return JSONResponse(status_code=404, content={"error": "Job not found", "status": view.status.value})

    return JobStatusResponse(
        status=view.status.value,
        result=view.result.model_dump(mode="json") if view.result is not None else None,
        error=view.error,
        diagnostics=view.diagnostics,
        created_at=view.created_at,
        updated_at=view.updated_at,
    )


@app.get("/api/debug-job-id", response_model=DebugJobIdResponse, responses={400: {"model": ErrorResponse}})
def debug_job_id(jobId: Optional[str] = Query(default=None, max_length=128)):
    job_id = (jobId or "").strip()
    if not job_id:
        return JSONResponse(status_code=400, content={"error": "Job ID is required"})
    return describe_job_id(job_id)


def _safe_log_exception(ctx: AppContext, context: str, exc: Exception) -> None:
    _api_logger.error("%s: %s", context, ctx.key_manager.scrub_text(str(exc)))
