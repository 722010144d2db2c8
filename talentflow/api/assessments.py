from fastapi import APIRouter, Depends, Response
from typing import List

from talentflow.api.deps import get_assessment_service
from talentflow.schemas import (
    AssessmentDocument,
    AssessmentOut,
    SubmissionCreate,
    SubmissionOut,
)
from talentflow.services.assessments import AssessmentService

router = APIRouter()


@router.get("/{job_id}", response_model=AssessmentOut)
async def get_assessment(
    job_id: str,
    service: AssessmentService = Depends(get_assessment_service),
):
    return AssessmentOut.model_validate(await service.get_for_job(job_id))


@router.put("/{job_id}", response_model=AssessmentOut)
async def upsert_assessment(
    job_id: str,
    document: AssessmentDocument,
    response: Response,
    service: AssessmentService = Depends(get_assessment_service),
):
    assessment, created = await service.upsert(job_id, document)
    if created:
        response.status_code = 201
    return AssessmentOut.model_validate(assessment)


@router.post("/{job_id}/submit", response_model=SubmissionOut, status_code=201)
async def submit_assessment(
    job_id: str,
    submission: SubmissionCreate,
    service: AssessmentService = Depends(get_assessment_service),
):
    return SubmissionOut.model_validate(await service.submit(job_id, submission))


@router.get("/{job_id}/responses", response_model=List[SubmissionOut])
async def list_submissions(
    job_id: str,
    service: AssessmentService = Depends(get_assessment_service),
):
    return [SubmissionOut.model_validate(r) for r in await service.list_responses(job_id)]
