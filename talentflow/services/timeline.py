"""
Timeline Service - append-only event log of candidate activity

Every stage change writes its TimelineEvent and the candidate's new stage in
the same transaction: the event row is flushed first, then the candidate is
updated, and both commit together. No reader sees one without the other.

Events are never updated or deleted; this module exposes no such operation.

Ordering:
    list_timeline() returns newest first (created_at descending). Events
    with equal created_at keep their insertion order.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from talentflow.database import DocumentStore, shielded, utcnow
from talentflow.errors import ConflictError, InvalidInputError
from talentflow.models import CANDIDATE_STAGES, Candidate, TimelineEvent

logger = logging.getLogger(__name__)


class TimelineService:
    """
    Records stage changes, notes and assessment submissions for candidates.

    Attributes:
        store: DocumentStore holding candidates and timeline
        actor: Default `created_by` for events when none is given
    """

    def __init__(self, store: DocumentStore, actor: str = "HR Team"):
        self.store = store
        self.actor = actor

    @shielded
    async def record_stage_change(
        self,
        candidate_id: str,
        from_stage: Optional[str],
        to_stage: str,
        actor: Optional[str] = None,
    ) -> TimelineEvent:
        """
        Move a candidate to a new stage and log it.

        Args:
            candidate_id: Candidate to move
            from_stage: Stage the caller observed, or None to accept the stored one
            to_stage: New stage
            actor: Who made the change

        Raises:
            NotFoundError: If the candidate does not exist
            ConflictError: If from_stage is given and differs from the stored stage
            InvalidInputError: If to_stage is unknown or equals the current stage
        """
        async with self.store.transaction("candidates", "timeline") as session:
            candidate = await self.store.get(Candidate, candidate_id, session=session)
            event = await self.append_stage_change(
                session, candidate, to_stage, actor, expected_from=from_stage
            )
        return event

    async def append_stage_change(
        self,
        session: AsyncSession,
        candidate: Candidate,
        to_stage: str,
        actor: Optional[str] = None,
        expected_from: Optional[str] = None,
    ) -> TimelineEvent:
        """
        Stage change inside a caller-owned transaction.

        The event is flushed before the candidate row changes.
        """
        if to_stage not in CANDIDATE_STAGES:
            raise InvalidInputError(f"Unknown stage '{to_stage}'")
        if expected_from is not None and expected_from != candidate.stage:
            raise ConflictError(
                f"Candidate '{candidate.id}' is in stage '{candidate.stage}', not '{expected_from}'"
            )
        if to_stage == candidate.stage:
            raise InvalidInputError(f"Candidate '{candidate.id}' is already in stage '{to_stage}'")

        now = utcnow()
        event = TimelineEvent(
            candidate_id=candidate.id,
            type="stage_change",
            from_stage=candidate.stage,
            to_stage=to_stage,
            created_at=now,
            created_by=actor or self.actor,
        )
        session.add(event)
        await session.flush()

        candidate.stage = to_stage
        candidate.updated_at = now
        logger.info(f"Candidate {candidate.id}: {event.from_stage} -> {to_stage}")
        return event

    def initial_event(self, candidate: Candidate, actor: str) -> TimelineEvent:
        """The `applied` event a new candidate starts with (no prior stage)."""
        return TimelineEvent(
            candidate_id=candidate.id,
            type="stage_change",
            to_stage=candidate.stage,
            created_at=candidate.applied_at,
            created_by=actor,
        )

    @shielded
    async def record_note(
        self,
        candidate_id: str,
        text: str,
        actor: Optional[str] = None,
    ) -> TimelineEvent:
        """
        Append a note to a candidate's timeline.

        Raises:
            InvalidInputError: If the note is empty after trimming
            NotFoundError: If the candidate does not exist
        """
        text = (text or "").strip()
        if not text:
            raise InvalidInputError("Note cannot be empty")

        async with self.store.transaction("timeline") as session:
            await self.store.get(Candidate, candidate_id, session=session)
            event = TimelineEvent(
                candidate_id=candidate_id,
                type="note",
                note=text,
                created_at=utcnow(),
                created_by=actor or self.actor,
            )
            session.add(event)
        return event

    def assessment_event(self, candidate_id: str, note: str, actor: Optional[str] = None) -> TimelineEvent:
        """Event logged when a candidate submits an assessment."""
        return TimelineEvent(
            candidate_id=candidate_id,
            type="assessment",
            note=note,
            created_at=utcnow(),
            created_by=actor or self.actor,
        )

    async def list_timeline(self, candidate_id: str) -> List[TimelineEvent]:
        """
        Events for a candidate, newest first.

        Raises:
            NotFoundError: If the candidate does not exist
        """
        async with self.store.read() as session:
            await self.store.get(Candidate, candidate_id, session=session)
            query = (
                select(TimelineEvent)
                .where(TimelineEvent.candidate_id == candidate_id)
                .order_by(TimelineEvent.created_at.desc(), TimelineEvent.seq.asc())
            )
            result = await session.execute(query)
            return list(result.scalars().all())
