from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from talentflow.api.deps import get_app_settings, get_candidate_service
from talentflow.config import Settings
from talentflow.schemas import (
    CandidateCreate,
    CandidateResponse,
    CandidateUpdate,
    NoteCreate,
    PageResponse,
    TimelineEventResponse,
)
from talentflow.services.candidates import CandidateService
from talentflow.services.query import QueryParams

router = APIRouter()


@router.get("", response_model=PageResponse[CandidateResponse])
async def list_candidates(
    search: str = Query(""),
    stage: Optional[str] = Query(None),
    job_id: Optional[str] = Query(None, alias="jobId"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    service: CandidateService = Depends(get_candidate_service),
    settings: Settings = Depends(get_app_settings),
):
    params = QueryParams(
        search=search,
        page=page,
        page_size=settings.candidates_page_size if page_size is None else page_size,
    )
    result = await service.list(params, stage=stage or None, job_id=job_id or None)

    return PageResponse[CandidateResponse](
        data=[CandidateResponse.model_validate(c) for c in result.data],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.post("", response_model=CandidateResponse, status_code=201)
async def create_candidate(
    data: CandidateCreate,
    service: CandidateService = Depends(get_candidate_service),
):
    return CandidateResponse.model_validate(await service.create(data))


@router.get("/{candidate_id}", response_model=CandidateResponse)
async def get_candidate(
    candidate_id: str,
    service: CandidateService = Depends(get_candidate_service),
):
    return CandidateResponse.model_validate(await service.get(candidate_id))


@router.patch("/{candidate_id}", response_model=CandidateResponse)
async def update_candidate(
    candidate_id: str,
    update: CandidateUpdate,
    service: CandidateService = Depends(get_candidate_service),
):
    return CandidateResponse.model_validate(await service.update(candidate_id, update))


@router.get("/{candidate_id}/timeline", response_model=List[TimelineEventResponse])
async def get_timeline(
    candidate_id: str,
    service: CandidateService = Depends(get_candidate_service),
):
    events = await service.timeline_for(candidate_id)
    return [TimelineEventResponse.model_validate(e) for e in events]


@router.post("/{candidate_id}/notes", response_model=TimelineEventResponse, status_code=201)
async def add_note(
    candidate_id: str,
    body: NoteCreate,
    service: CandidateService = Depends(get_candidate_service),
):
    return TimelineEventResponse.model_validate(await service.add_note(candidate_id, body.note))
