"""
Ordering Engine - dense order index over the jobs board

Invariant: for N jobs the `order` values are exactly {0, ..., N-1}.

Moving one job from `from_order` to `to_order`:
    from < to (later):   orders in (from, to] shift down by one
    from > to (earlier): orders in [to, from) shift up by one
    from == to:          no-op
The moved job then takes `to_order`. The shift and the assignment run in one
transaction, so readers never observe a gap or a duplicate.

The caller passes the `from_order` it observed. If the stored order differs,
its view is stale and the move is rejected with ConflictError instead of being
applied from the wrong base. ReorderResult carries the full ordering before
and after the move so a client holding an optimistic view can reconcile or
roll back.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from prometheus_client import Counter
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from talentflow.database import DocumentStore, shielded, utcnow
from talentflow.errors import ConflictError, InvalidInputError
from talentflow.models import Job

logger = logging.getLogger(__name__)

REORDER_CONFLICTS = Counter(
    "job_reorder_conflicts_total",
    "Reorders rejected because the caller's fromOrder was stale",
)


@dataclass
class ReorderResult:
    """
    Outcome of a reorder.

    Attributes:
        job: The moved job, with its new order
        previous_order: Job ids sorted by order before the move
        current_order: Job ids sorted by order after the move
    """

    job: Job
    previous_order: List[str]
    current_order: List[str]

    @property
    def changed(self) -> bool:
        return self.previous_order != self.current_order


class JobOrderingService:
    """
    Maintains the dense order index of the jobs collection.

    Attributes:
        store: DocumentStore holding the jobs collection
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    @shielded
    async def reorder(self, job_id: str, from_order: int, to_order: int) -> ReorderResult:
        """
        Move one job to a new position.

        Args:
            job_id: Job to move
            from_order: Order value the caller observed for the job
            to_order: Target order value

        Returns:
            ReorderResult with the moved job and the old/new orderings

        Raises:
            NotFoundError: If the job does not exist
            ConflictError: If from_order is not the job's stored order
            InvalidInputError: If to_order is outside [0, N-1]
        """
        async with self.store.transaction("jobs") as session:
            job = await self.store.get(Job, job_id, session=session)

            if job.order != from_order:
                REORDER_CONFLICTS.inc()
                raise ConflictError(
                    f"Job '{job_id}' is at order {job.order}, not {from_order}; refresh and retry"
                )

            total = await self.count(session)
            if not 0 <= to_order < total:
                raise InvalidInputError(f"toOrder must be between 0 and {total - 1}")

            previous = await self.ordered_ids(session)
            if from_order == to_order:
                return ReorderResult(job=job, previous_order=previous, current_order=previous)

            if from_order < to_order:
                shift = (
                    update(Job)
                    .where(Job.order > from_order, Job.order <= to_order)
                    .values(order=Job.order - 1)
                )
            else:
                shift = (
                    update(Job)
                    .where(Job.order >= to_order, Job.order < from_order)
                    .values(order=Job.order + 1)
                )
            await session.execute(shift.execution_options(synchronize_session="fetch"))

            job.order = to_order
            job.updated_at = utcnow()
            current = await self.ordered_ids(session)

        logger.info(f"Moved job {job_id} from order {from_order} to {to_order}")
        return ReorderResult(job=job, previous_order=previous, current_order=current)

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Job.id)))
        return result.scalar() or 0

    async def next_order(self, session: AsyncSession) -> int:
        """Order value for a job appended at the end of the board."""
        return await self.count(session)

    async def ordered_ids(self, session: Optional[AsyncSession] = None) -> List[str]:
        if session is None:
            async with self.store.read() as own_session:
                return await self.ordered_ids(own_session)

        result = await session.execute(select(Job.id).order_by(Job.order))
        return [row[0] for row in result.all()]

    async def check_invariant(self, session: Optional[AsyncSession] = None) -> bool:
        """True if the stored orders are exactly 0..N-1."""
        if session is None:
            async with self.store.read() as own_session:
                return await self.check_invariant(own_session)

        result = await session.execute(select(Job.order).order_by(Job.order))
        orders = [row[0] for row in result.all()]
        return orders == list(range(len(orders)))
