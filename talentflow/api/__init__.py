from fastapi import APIRouter
from talentflow.api import assessments, candidates, jobs, stats

api_router = APIRouter(prefix="/api")
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(candidates.router, prefix="/candidates", tags=["candidates"])
api_router.include_router(assessments.router, prefix="/assessments", tags=["assessments"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
