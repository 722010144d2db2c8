from fastapi import APIRouter, Depends
from sqlalchemy import select, func

from talentflow.api.deps import get_store
from talentflow.database import DocumentStore
from talentflow.models import Candidate, Job, CANDIDATE_STAGES, CLOSED_STAGES, JOB_STATUSES

router = APIRouter()


@router.get("")
async def get_stats(store: DocumentStore = Depends(get_store)):
    async with store.read() as db:
        # Jobs by status - single GROUP BY query instead of N+1
        status_result = await db.execute(select(Job.status, func.count(Job.id)).group_by(Job.status))
        jobs_by_status = {row[0]: row[1] for row in status_result.all()}

        stage_result = await db.execute(
            select(Candidate.stage, func.count(Candidate.id)).group_by(Candidate.stage)
        )
        candidates_by_stage = {row[0]: row[1] for row in stage_result.all()}

    # Ensure all statuses and stages are present with default 0
    for status in JOB_STATUSES:
        jobs_by_status.setdefault(status, 0)
    for stage in CANDIDATE_STAGES:
        candidates_by_stage.setdefault(stage, 0)

    total_candidates = sum(candidates_by_stage.values())
    closed = sum(candidates_by_stage[stage] for stage in CLOSED_STAGES)

    return {
        "totalJobs": sum(jobs_by_status.values()),
        "activeJobs": jobs_by_status["active"],
        "jobsByStatus": jobs_by_status,
        "totalCandidates": total_candidates,
        "activeCandidates": total_candidates - closed,
        "candidatesByStage": candidates_by_stage,
    }
