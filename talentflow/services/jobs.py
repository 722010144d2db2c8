"""
Job Service - create, update, query and reorder job postings

New jobs are appended to the end of the board (order = N) inside the same
transaction that counts the collection, so concurrent creates never share
an order value. Reordering is delegated to JobOrderingService.
"""

import logging
from typing import Optional

from talentflow.database import DocumentStore, shielded, utcnow
from talentflow.models import Job, slugify
from talentflow.schemas import JobCreate, JobUpdate
from talentflow.services.ordering import JobOrderingService, ReorderResult
from talentflow.services.query import Page, QueryParams, run_query

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "slug")


class JobService:
    def __init__(self, store: DocumentStore):
        self.store = store
        self.ordering = JobOrderingService(store)

    async def list(self, params: QueryParams, status: Optional[str] = None) -> Page[Job]:
        params.filters = {**params.filters, "status": status}
        jobs = await self.store.snapshot(Job)
        return run_query(jobs, params, search_fields=SEARCH_FIELDS, natural_field="order")

    async def get(self, job_id: str) -> Job:
        return await self.store.get(Job, job_id)

    @shielded
    async def create(self, data: JobCreate) -> Job:
        # TODO: enforce slug uniqueness; duplicates are currently accepted
        now = utcnow()
        async with self.store.transaction("jobs") as session:
            job = Job(
                title=data.title,
                slug=data.slug or slugify(data.title),
                status=data.status,
                tags=data.tags,
                description=data.description,
                order=await self.ordering.next_order(session),
                created_at=now,
                updated_at=now,
            )
            session.add(job)
        logger.info(f"Created job {job.id} at order {job.order}")
        return job

    @shielded
    async def update(self, job_id: str, data: JobUpdate) -> Job:
        update_data = data.model_dump(exclude_unset=True)
        # Only description may be cleared; the other fields are NOT NULL
        update_data = {k: v for k, v in update_data.items() if v is not None or k == "description"}
        if "title" in update_data and "slug" not in update_data:
            update_data["slug"] = slugify(update_data["title"])

        async with self.store.transaction("jobs") as session:
            job = await self.store.get(Job, job_id, session=session)
            for field, value in update_data.items():
                setattr(job, field, value)
            job.updated_at = utcnow()
        return job

    async def reorder(self, job_id: str, from_order: int, to_order: int) -> ReorderResult:
        return await self.ordering.reorder(job_id, from_order, to_order)
