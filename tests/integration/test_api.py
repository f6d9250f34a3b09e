"""API tests: submit a job, poll its status."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from itinerary_jobs.api.main import app, get_context
from itinerary_jobs.application.context import make_app_context
from itinerary_jobs.config.settings import Settings
from itinerary_jobs.infrastructure.llm_client import INVALID_KEY_MESSAGE, TemplateItineraryClient
from itinerary_jobs.security.key_manager import KeyManager

SURVEY = {
    "destination": "Paris",
    "startDate": "2024-06-01",
    "endDate": "2024-06-03",
    "purpose": "honeymoon",
    "budget": "luxury",
    "preferences": ["food", "art"],
}


def _make_client(ctx):
    app.dependency_overrides[get_context] = lambda: ctx
    return TestClient(app)


@pytest.fixture
def ctx():
    return make_app_context(
        Settings(app_env="development", store_backoff_base_seconds=0),
        durable=None,
        client=TemplateItineraryClient(),
        key_manager=KeyManager(),
    )


@pytest.fixture
def client(ctx):
    with _make_client(ctx) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"


def test_generate_then_poll_completed(client):
    r = client.post("/api/generate-itinerary", json=SURVEY)
    assert r.status_code == 200
    body = r.json()
    assert body["jobId"].startswith("job_")
    assert body["status"] == "queued"
    assert "being generated" in body["message"]

    # TestClient runs background tasks before returning the response.
    status = client.get("/api/job-status", params={"jobId": body["jobId"]})
    assert status.status_code == 200
    data = status.json()
    assert data["status"] == "completed"
    assert "error" not in data
    assert data["created_at"] and data["updated_at"]
    itinerary = data["result"]["itinerary"]
    assert itinerary["dates"] == {"start": "2024-06-01", "end": "2024-06-03"}
    assert [d["date"] for d in itinerary["days"]] == ["2024-06-01", "2024-06-02", "2024-06-03"]
    assert itinerary["accommodation"][0]["pricePerNight"] == 300.0
    assert "exactly 3 days" in data["result"]["prompt"]


def test_job_status_requires_job_id(client):
    r = client.get("/api/job-status")
    assert r.status_code == 400
    assert r.json() == {"error": "Job ID is required"}


def test_unknown_job_is_404(client):
    r = client.get("/api/job-status", params={"jobId": "job_1_unknown"})
    assert r.status_code == 404
    assert r.json()["status"] == "not_found"


def test_invalid_survey_is_422(client):
    bad = dict(SURVEY, startDate="2024-06-05", endDate="2024-06-01")
    assert client.post("/api/generate-itinerary", json=bad).status_code == 422
    assert client.post("/api/generate-itinerary", json={"destination": "Paris"}).status_code == 422


def test_debug_job_id(client):
    r = client.get("/api/debug-job-id", params={"jobId": "job_1717236000000_abc"})
    assert r.json() == {"originalJobId": "job_1717236000000_abc", "dbCompatibleId": 1717236000000}
    assert client.get("/api/debug-job-id").status_code == 400


def test_diagnostics_reports_store(client):
    client.post("/api/generate-itinerary", json=SURVEY)
    data = client.get("/diagnostics").json()
    assert data["store"]["backend"] == "memory"
    assert data["store"]["jobs"] == 1
    assert data["store"]["by_status"] == {"completed": 1}
    assert data["llm_provider"] == "template"


def test_creation_failure_returns_500(ctx, client, monkeypatch):
    async def never(job_id, attempts=None):
        return False

    monkeypatch.setattr(ctx.lifecycle, "create_with_retry", never)
    r = client.post("/api/generate-itinerary", json=SURVEY)
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to create job"}
    assert ctx.store.stats()["by_status"] == {"failed": 1}


def test_missing_credentials_fail_the_job_not_the_request():
    ctx = make_app_context(Settings(app_env="production"), durable=None, key_manager=KeyManager())
    with _make_client(ctx) as test_client:
        job_id = test_client.post("/api/generate-itinerary", json=SURVEY).json()["jobId"]
        data = test_client.get("/api/job-status", params={"jobId": job_id}).json()
    app.dependency_overrides.clear()
    assert data["status"] == "failed"
    assert data["error"] == INVALID_KEY_MESSAGE
    assert "result" not in data
