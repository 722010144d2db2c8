from fastapi import APIRouter, Depends, Query
from typing import Optional

from talentflow.api.deps import get_app_settings, get_job_service
from talentflow.config import Settings
from talentflow.schemas import (
    JobCreate,
    JobResponse,
    JobUpdate,
    PageResponse,
    ReorderRequest,
    ReorderResponse,
)
from talentflow.services.jobs import JobService
from talentflow.services.query import QueryParams, parse_sort

router = APIRouter()


@router.get("", response_model=PageResponse[JobResponse])
async def list_jobs(
    search: str = Query(""),
    status: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    sort: str = Query("order"),
    service: JobService = Depends(get_job_service),
    settings: Settings = Depends(get_app_settings),
):
    params = QueryParams(
        search=search,
        sort=parse_sort(sort),
        page=page,
        page_size=settings.jobs_page_size if page_size is None else page_size,
    )
    result = await service.list(params, status=status or None)

    return PageResponse[JobResponse](
        data=[JobResponse.model_validate(job) for job in result.data],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    service: JobService = Depends(get_job_service),
):
    return JobResponse.model_validate(await service.get(job_id))


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    service: JobService = Depends(get_job_service),
):
    return JobResponse.model_validate(await service.create(data))


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    update: JobUpdate,
    service: JobService = Depends(get_job_service),
):
    return JobResponse.model_validate(await service.update(job_id, update))


@router.patch("/{job_id}/reorder", response_model=ReorderResponse)
async def reorder_job(
    job_id: str,
    body: ReorderRequest,
    service: JobService = Depends(get_job_service),
):
    result = await service.reorder(job_id, body.from_order, body.to_order)
    return ReorderResponse(
        job=JobResponse.model_validate(result.job),
        previous_order=result.previous_order,
        current_order=result.current_order,
    )
