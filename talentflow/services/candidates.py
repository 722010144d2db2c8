"""
Candidate Service - candidate records and their pipeline stage

Stage changes never touch `Candidate.stage` directly: they go through
TimelineService so the event and the new stage commit together.
"""

import logging
from typing import List, Optional

from talentflow.database import DocumentStore, shielded, utcnow
from talentflow.models import Candidate, Job, TimelineEvent
from talentflow.schemas import CandidateCreate, CandidateUpdate
from talentflow.services.query import Page, QueryParams, run_query
from talentflow.services.timeline import TimelineService

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "email")


class CandidateService:
    """
    Attributes:
        store: DocumentStore with candidates, jobs and timeline
        timeline: TimelineService used for every stage change
        system_actor: created_by for the initial "applied" event
    """

    def __init__(
        self,
        store: DocumentStore,
        actor: str = "HR Team",
        system_actor: str = "System",
    ):
        self.store = store
        self.timeline = TimelineService(store, actor=actor)
        self.system_actor = system_actor

    async def list(
        self,
        params: QueryParams,
        stage: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> Page[Candidate]:
        params.filters = {**params.filters, "stage": stage, "job_id": job_id}
        candidates = await self.store.snapshot(Candidate)
        # Newest applications first
        return run_query(
            candidates,
            params,
            search_fields=SEARCH_FIELDS,
            natural_field="applied_at",
            natural_descending=True,
            title_field="name",
            date_field="applied_at",
        )

    async def get(self, candidate_id: str) -> Candidate:
        return await self.store.get(Candidate, candidate_id)

    @shielded
    async def create(self, data: CandidateCreate) -> Candidate:
        """
        Create a candidate in the "applied" stage with its first timeline event.

        Raises:
            NotFoundError: If the referenced job does not exist
        """
        now = utcnow()
        async with self.store.transaction("candidates", "timeline") as session:
            await self.store.get(Job, data.job_id, session=session)
            candidate = Candidate(
                name=data.name,
                email=data.email,
                phone=data.phone or None,
                job_id=data.job_id,
                notes=data.notes,
                stage="applied",
                applied_at=now,
                updated_at=now,
            )
            session.add(candidate)
            await session.flush()
            session.add(self.timeline.initial_event(candidate, self.system_actor))
        logger.info(f"Created candidate {candidate.id} for job {data.job_id}")
        return candidate

    @shielded
    async def update(self, candidate_id: str, data: CandidateUpdate, actor: Optional[str] = None) -> Candidate:
        """
        Partial update. A stage change is logged in the same transaction.

        Raises:
            NotFoundError: If the candidate, or a newly referenced job, is missing
        """
        update_data = data.model_dump(exclude_unset=True)
        new_stage = update_data.pop("stage", None)

        async with self.store.transaction("candidates", "timeline") as session:
            candidate = await self.store.get(Candidate, candidate_id, session=session)

            if update_data.get("job_id") and update_data["job_id"] != candidate.job_id:
                await self.store.get(Job, update_data["job_id"], session=session)

            for field, value in update_data.items():
                if value is None and field in ("name", "email", "job_id"):
                    continue
                setattr(candidate, field, value)
            candidate.updated_at = utcnow()

            if new_stage and new_stage != candidate.stage:
                await self.timeline.append_stage_change(session, candidate, new_stage, actor)
        return candidate

    async def timeline_for(self, candidate_id: str) -> List[TimelineEvent]:
        return await self.timeline.list_timeline(candidate_id)

    async def add_note(self, candidate_id: str, note: str, actor: Optional[str] = None) -> TimelineEvent:
        return await self.timeline.record_note(candidate_id, note, actor)
