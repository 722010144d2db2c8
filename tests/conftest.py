"""
Shared fixtures: a fresh file-backed store per test and an in-process API client.

The app is built with zero latency and no simulated failures so API tests are
deterministic; tests that exercise the simulated network build their own app.
"""

from typing import List

import httpx
import pytest

from talentflow.config import Settings
from talentflow.database import DocumentStore
from talentflow.main import create_app
from talentflow.models import Job
from talentflow.schemas import CandidateCreate, JobCreate
from talentflow.services.candidates import CandidateService
from talentflow.services.jobs import JobService


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite:///{tmp_path / 'talentflow.db'}",
        "latency_min_ms": 0,
        "latency_max_ms": 0,
        "failure_rate": 0.0,
        "network_seed": 7,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
async def store(settings):
    store = DocumentStore(settings.database_url)
    await store.create_all()
    yield store
    await store.dispose()


@pytest.fixture
def job_service(store) -> JobService:
    return JobService(store)


@pytest.fixture
def candidate_service(store) -> CandidateService:
    return CandidateService(store)


@pytest.fixture
def seed_jobs(job_service):
    """Factory creating `count` jobs titled "Job 0", "Job 1", ... in board order."""

    async def seed(count: int, **fields) -> List[Job]:
        jobs = []
        for i in range(count):
            jobs.append(await job_service.create(JobCreate(title=f"Job {i}", **fields)))
        return jobs

    return seed


@pytest.fixture
def seed_candidate(candidate_service):
    async def seed(job_id: str, name: str = "Ada Lovelace", email: str = "ada@example.com"):
        return await candidate_service.create(CandidateCreate(name=name, email=email, job_id=job_id))

    return seed


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
async def api(app):
    """httpx client talking to the app in-process."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def app_factory(tmp_path, store):
    """Build an app over the shared store with different settings, e.g. failure_rate=1.0."""

    def build(**overrides):
        return create_app(settings=make_settings(tmp_path, **overrides), store=store)

    return build
