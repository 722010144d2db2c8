"""
Tests for the HTTP transport facade.

Run with: pytest tests/test_api.py -v

Tests cover:
- Jobs: create, list/paginate, patch, reorder
- Candidates: create, stage change, timeline, notes
- Assessments: upsert, submit (valid and invalid), responses
- Error rendering: 400 / 404 / 409 / 422 bodies
- Simulated network failures, stats and the metrics endpoint
"""

import httpx
import pytest

from talentflow.models import Job
from talentflow.schemas import JobUpdate

ASSESSMENT = {
    "title": "Frontend screen",
    "sections": [
        {
            "id": "s1",
            "title": "Logistics",
            "questions": [
                {
                    "id": "mode",
                    "type": "single-choice",
                    "text": "Work mode",
                    "required": True,
                    "options": ["Onsite", "Hybrid", "Remote"],
                },
                {
                    "id": "office",
                    "type": "short-text",
                    "text": "Preferred office",
                    "required": True,
                    "maxLength": 20,
                    "conditionalOn": {"questionId": "mode", "equalsValue": "Hybrid"},
                },
            ],
        }
    ],
}


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, api):
        response = await api.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_metrics_exposed(self, api):
        await api.get("/api/jobs")
        response = await api.get("/metrics")
        assert response.status_code == 200
        assert "talentflow_requests_total" in response.text


class TestJobsApi:
    """Jobs board endpoints."""

    @pytest.mark.asyncio
    async def test_create_job(self, api):
        response = await api.post(
            "/api/jobs", json={"title": "Senior Frontend Engineer", "tags": ["react", " react "]}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "senior-frontend-engineer"
        assert body["order"] == 0
        assert body["status"] == "active"
        assert body["tags"] == ["react"]
        assert "createdAt" in body

    @pytest.mark.asyncio
    async def test_blank_title_is_invalid_input(self, api):
        response = await api.post("/api/jobs", json={"title": "   "})
        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_page_past_end(self, api, seed_jobs):
        await seed_jobs(25)
        response = await api.get("/api/jobs", params={"page": 100, "pageSize": 10})
        assert response.status_code == 200
        body = response.json()
        assert body["data"] == []
        assert body["total"] == 25
        assert body["totalPages"] == 3
        assert body["pageSize"] == 10

    @pytest.mark.asyncio
    async def test_default_page_size(self, api, seed_jobs):
        await seed_jobs(12)
        body = (await api.get("/api/jobs")).json()
        assert len(body["data"]) == 10
        assert [j["order"] for j in body["data"]] == list(range(10))

    @pytest.mark.asyncio
    async def test_zero_page_size_rejected(self, api):
        response = await api.get("/api/jobs", params={"pageSize": 0})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_sort_rejected(self, api):
        response = await api.get("/api/jobs", params={"sort": "salary"})
        assert response.status_code == 400
        assert "Unknown sort" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_search_status_and_sort(self, api, seed_jobs, job_service):
        jobs = await seed_jobs(3)
        await job_service.update(jobs[1].id, JobUpdate(status="archived"))

        active = (await api.get("/api/jobs", params={"status": "active", "sort": "title_desc"})).json()
        assert [j["title"] for j in active["data"]] == ["Job 2", "Job 0"]

        found = (await api.get("/api/jobs", params={"search": "JOB 1"})).json()
        assert [j["id"] for j in found["data"]] == [jobs[1].id]

    @pytest.mark.asyncio
    async def test_get_missing_job(self, api):
        response = await api.get("/api/jobs/job-missing")
        assert response.status_code == 404
        assert "job-missing" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_patch_title_reslugs(self, api, seed_jobs):
        jobs = await seed_jobs(1)
        response = await api.patch(f"/api/jobs/{jobs[0].id}", json={"title": "Platform Engineer"})
        assert response.status_code == 200
        assert response.json()["slug"] == "platform-engineer"
        assert response.json()["order"] == 0

    @pytest.mark.asyncio
    async def test_reorder(self, api, seed_jobs):
        jobs = await seed_jobs(4)
        ids = [j.id for j in jobs]

        response = await api.patch(f"/api/jobs/{ids[3]}/reorder", json={"fromOrder": 3, "toOrder": 0})

        assert response.status_code == 200
        body = response.json()
        assert body["job"]["order"] == 0
        assert body["previousOrder"] == ids
        assert body["currentOrder"] == [ids[3], ids[0], ids[1], ids[2]]

    @pytest.mark.asyncio
    async def test_stale_reorder_conflicts(self, api, seed_jobs):
        jobs = await seed_jobs(4)
        response = await api.patch(f"/api/jobs/{jobs[0].id}/reorder", json={"fromOrder": 2, "toOrder": 3})
        assert response.status_code == 409
        assert "error" in response.json()


class TestCandidatesApi:
    """Candidate endpoints, stage changes and the timeline."""

    @pytest.fixture
    async def job_id(self, seed_jobs):
        return (await seed_jobs(1))[0].id

    @pytest.mark.asyncio
    async def test_create_for_unknown_job(self, api):
        response = await api.post(
            "/api/candidates", json={"name": "Ada", "email": "ada@example.com", "jobId": "job-missing"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_stage_change_logs_timeline(self, api, job_id):
        created = await api.post(
            "/api/candidates", json={"name": "Ada", "email": "ada@example.com", "jobId": job_id}
        )
        assert created.status_code == 201
        candidate_id = created.json()["id"]
        assert created.json()["stage"] == "applied"

        patched = await api.patch(f"/api/candidates/{candidate_id}", json={"stage": "screen"})
        assert patched.status_code == 200
        assert patched.json()["stage"] == "screen"

        timeline = (await api.get(f"/api/candidates/{candidate_id}/timeline")).json()
        assert len(timeline) == 2
        assert timeline[0]["type"] == "stage_change"
        assert timeline[0]["from"] == "applied"
        assert timeline[0]["to"] == "screen"
        assert timeline[1]["createdBy"] == "System"

    @pytest.mark.asyncio
    async def test_unknown_stage_is_invalid_input(self, api, job_id, seed_candidate):
        candidate = await seed_candidate(job_id)
        response = await api.patch(f"/api/candidates/{candidate.id}", json={"stage": "interview"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_notes(self, api, job_id, seed_candidate):
        candidate = await seed_candidate(job_id)

        empty = await api.post(f"/api/candidates/{candidate.id}/notes", json={"note": "  "})
        assert empty.status_code == 400

        added = await api.post(f"/api/candidates/{candidate.id}/notes", json={"note": "Great call"})
        assert added.status_code == 201
        assert added.json()["type"] == "note"
        assert added.json()["createdBy"] == "HR Team"

    @pytest.mark.asyncio
    async def test_list_filters(self, api, job_id, seed_candidate, seed_jobs):
        other_job = (await seed_jobs(1))[0].id
        await seed_candidate(job_id, name="Ada Lovelace", email="ada@example.com")
        await seed_candidate(other_job, name="Grace Hopper", email="grace@example.com")

        by_job = (await api.get("/api/candidates", params={"jobId": job_id})).json()
        assert [c["name"] for c in by_job["data"]] == ["Ada Lovelace"]

        by_search = (await api.get("/api/candidates", params={"search": "GRACE"})).json()
        assert [c["name"] for c in by_search["data"]] == ["Grace Hopper"]

        newest_first = (await api.get("/api/candidates")).json()
        assert [c["name"] for c in newest_first["data"]] == ["Grace Hopper", "Ada Lovelace"]
        assert newest_first["pageSize"] == 50


class TestAssessmentsApi:
    """Assessment builder persistence and submissions."""

    @pytest.fixture
    async def candidate(self, seed_jobs, seed_candidate):
        job = (await seed_jobs(1))[0]
        return await seed_candidate(job.id)

    @pytest.mark.asyncio
    async def test_missing_assessment(self, api, candidate):
        response = await api.get(f"/api/assessments/{candidate.job_id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_put_creates_then_replaces(self, api, candidate):
        created = await api.put(f"/api/assessments/{candidate.job_id}", json=ASSESSMENT)
        assert created.status_code == 201
        body = created.json()
        assert body["jobId"] == candidate.job_id
        assert body["sections"][0]["questions"][1]["conditionalOn"] == {
            "questionId": "mode",
            "equalsValue": "Hybrid",
        }

        replaced = await api.put(f"/api/assessments/{candidate.job_id}", json={**ASSESSMENT, "title": "v2"})
        assert replaced.status_code == 200
        assert replaced.json()["id"] == body["id"]
        assert (await api.get(f"/api/assessments/{candidate.job_id}")).json()["title"] == "v2"

    @pytest.mark.asyncio
    async def test_put_for_unknown_job(self, api):
        response = await api.put("/api/assessments/job-missing", json=ASSESSMENT)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_put_rejects_forward_condition(self, api, candidate):
        questions = list(reversed(ASSESSMENT["sections"][0]["questions"]))
        document = {"title": "Broken", "sections": [{"id": "s1", "title": "S", "questions": questions}]}
        response = await api.put(f"/api/assessments/{candidate.job_id}", json=document)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_submission(self, api, candidate):
        await api.put(f"/api/assessments/{candidate.job_id}", json=ASSESSMENT)

        response = await api.post(
            f"/api/assessments/{candidate.job_id}/submit",
            json={"candidateId": candidate.id, "responses": {"mode": "Hybrid"}},
        )

        assert response.status_code == 422
        assert response.json()["errors"] == [{"questionId": "office", "message": "This field is required"}]
        responses = (await api.get(f"/api/assessments/{candidate.job_id}/responses")).json()
        assert responses == []

    @pytest.mark.asyncio
    async def test_valid_submission_logs_timeline(self, api, candidate):
        await api.put(f"/api/assessments/{candidate.job_id}", json=ASSESSMENT)

        response = await api.post(
            f"/api/assessments/{candidate.job_id}/submit",
            json={"candidateId": candidate.id, "responses": {"mode": "Hybrid", "office": "London"}},
        )

        assert response.status_code == 201
        assert response.json()["responses"] == {"mode": "Hybrid", "office": "London"}

        timeline = (await api.get(f"/api/candidates/{candidate.id}/timeline")).json()
        assert timeline[0]["type"] == "assessment"
        assert timeline[0]["createdBy"] == candidate.name

        responses = (await api.get(f"/api/assessments/{candidate.job_id}/responses")).json()
        assert len(responses) == 1

    @pytest.mark.asyncio
    async def test_oversized_number_is_validation_error(self, api, candidate):
        document = {
            "title": "Experience",
            "sections": [{
                "id": "s1",
                "title": "Background",
                "questions": [{"id": "years", "type": "numeric", "text": "Years", "required": True}],
            }],
        }
        await api.put(f"/api/assessments/{candidate.job_id}", json=document)

        # 400-digit integer literal, valid JSON
        body = '{"candidateId": "%s", "responses": {"years": 1%s}}' % (candidate.id, "0" * 400)
        response = await api.post(
            f"/api/assessments/{candidate.job_id}/submit",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["errors"] == [{"questionId": "years", "message": "Must be a number"}]

    @pytest.mark.asyncio
    async def test_submission_for_unknown_candidate(self, api, candidate):
        await api.put(f"/api/assessments/{candidate.job_id}", json=ASSESSMENT)
        response = await api.post(
            f"/api/assessments/{candidate.job_id}/submit",
            json={"candidateId": "candidate-missing", "responses": {"mode": "Remote"}},
        )
        assert response.status_code == 404


class TestStatsApi:
    @pytest.mark.asyncio
    async def test_counts(self, api, seed_jobs, seed_candidate, job_service, candidate_service):
        jobs = await seed_jobs(3)
        await job_service.update(jobs[2].id, JobUpdate(status="archived"))
        await seed_candidate(jobs[0].id)
        hired = await seed_candidate(jobs[0].id, name="Grace", email="grace@example.com")
        await candidate_service.timeline.record_stage_change(hired.id, None, "hired")

        stats = (await api.get("/api/stats")).json()

        assert stats["totalJobs"] == 3
        assert stats["activeJobs"] == 2
        assert stats["jobsByStatus"] == {"active": 2, "archived": 1}
        assert stats["totalCandidates"] == 2
        assert stats["activeCandidates"] == 1
        assert stats["candidatesByStage"]["hired"] == 1
        assert stats["candidatesByStage"]["offer"] == 0


class TestSimulatedNetwork:
    """Transient failures happen before any handler runs."""

    @pytest.mark.asyncio
    async def test_failed_mutation_applies_nothing(self, app_factory, store):
        app = app_factory(failure_rate=1.0)
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/jobs", json={"title": "Never stored"})

            assert response.status_code == 503
            assert response.json()["transient"] is True
            assert (await client.get("/api/jobs")).status_code == 200

        assert await store.snapshot(Job) == []

    @pytest.mark.asyncio
    async def test_non_api_paths_unaffected(self, app_factory):
        app = app_factory(failure_rate=1.0)
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            assert (await client.get("/health")).status_code == 200
