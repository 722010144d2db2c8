"""
Tests for the Ordering Engine.

Tests cover:
- Moves up and down the board shift exactly the jobs in between
- Stale fromOrder and out-of-range toOrder are rejected without mutation
- The dense 0..N-1 invariant after many random moves
- Readers running alongside moves never see a gap or duplicate
- New jobs append at the end
- A cancelled caller does not leave a half-applied move
"""

import asyncio
import random

import pytest

from talentflow.errors import ConflictError, InvalidInputError, NotFoundError
from talentflow.models import Job
from talentflow.schemas import JobCreate


def moved(ids, from_order, to_order):
    ids = list(ids)
    ids.insert(to_order, ids.pop(from_order))
    return ids


class TestReorder:
    """Single moves on a ten-job board."""

    @pytest.mark.asyncio
    async def test_move_earlier_shifts_block_down(self, job_service, seed_jobs):
        """Moving order 5 to 2 pushes jobs 2-4 up by one and leaves the rest."""
        jobs = await seed_jobs(10)
        ids = [j.id for j in jobs]

        result = await job_service.reorder(ids[5], 5, 2)

        assert result.job.id == ids[5]
        assert result.job.order == 2
        assert result.previous_order == ids
        assert result.current_order == ids[:2] + [ids[5]] + ids[2:5] + ids[6:]
        assert await job_service.ordering.ordered_ids() == result.current_order

    @pytest.mark.asyncio
    async def test_move_later_shifts_block_up(self, job_service, seed_jobs):
        jobs = await seed_jobs(10)
        ids = [j.id for j in jobs]

        result = await job_service.reorder(ids[2], 2, 7)

        assert result.current_order == moved(ids, 2, 7)
        assert (await job_service.get(ids[3])).order == 2
        assert (await job_service.get(ids[8])).order == 8

    @pytest.mark.asyncio
    async def test_same_position_is_noop(self, job_service, seed_jobs):
        jobs = await seed_jobs(4)
        result = await job_service.reorder(jobs[1].id, 1, 1)
        assert not result.changed
        assert result.current_order == [j.id for j in jobs]

    @pytest.mark.asyncio
    async def test_stale_from_order_conflicts_without_mutation(self, job_service, seed_jobs):
        jobs = await seed_jobs(5)
        before = await job_service.ordering.ordered_ids()

        with pytest.raises(ConflictError):
            await job_service.reorder(jobs[3].id, 1, 0)

        assert await job_service.ordering.ordered_ids() == before

    @pytest.mark.asyncio
    @pytest.mark.parametrize("to_order", [-1, 5])
    async def test_out_of_range_target_rejected(self, job_service, seed_jobs, to_order):
        jobs = await seed_jobs(5)
        before = await job_service.ordering.ordered_ids()

        with pytest.raises(InvalidInputError):
            await job_service.reorder(jobs[0].id, 0, to_order)

        assert await job_service.ordering.ordered_ids() == before

    @pytest.mark.asyncio
    async def test_unknown_job(self, job_service, seed_jobs):
        await seed_jobs(2)
        with pytest.raises(NotFoundError):
            await job_service.reorder("job-missing", 0, 1)


class TestOrderInvariant:
    """Orders stay exactly 0..N-1."""

    @pytest.mark.asyncio
    async def test_random_moves_keep_orders_dense(self, job_service, seed_jobs):
        jobs = await seed_jobs(8)
        expected = [j.id for j in jobs]
        rng = random.Random(1234)

        for _ in range(40):
            from_order = rng.randrange(len(expected))
            to_order = rng.randrange(len(expected))
            await job_service.reorder(expected[from_order], from_order, to_order)
            expected = moved(expected, from_order, to_order)

        assert await job_service.ordering.check_invariant()
        assert await job_service.ordering.ordered_ids() == expected

    @pytest.mark.asyncio
    async def test_concurrent_readers_never_see_gaps(self, store, job_service, seed_jobs):
        """Snapshots taken while moves run always hold exactly 0..N-1."""
        jobs = await seed_jobs(20)
        expected = [j.id for j in jobs]
        rng = random.Random(99)
        moves = []
        for _ in range(25):
            from_order = rng.randrange(len(expected))
            to_order = rng.randrange(len(expected))
            moves.append((expected[from_order], from_order, to_order))
            expected = moved(expected, from_order, to_order)

        async def writer():
            for job_id, from_order, to_order in moves:
                await job_service.reorder(job_id, from_order, to_order)
                await asyncio.sleep(0)

        observed = []

        async def reader():
            for _ in range(150):
                snapshot = await store.snapshot(Job)
                observed.append(sorted(j.order for j in snapshot))
                await asyncio.sleep(0)

        await asyncio.gather(writer(), reader(), reader())

        assert len(observed) == 300
        assert all(orders == list(range(20)) for orders in observed)
        assert await job_service.ordering.ordered_ids() == expected

    @pytest.mark.asyncio
    async def test_create_appends_at_end(self, job_service, seed_jobs):
        await seed_jobs(3)
        job = await job_service.create(JobCreate(title="Staff Engineer"))
        assert job.order == 3
        assert await job_service.ordering.check_invariant()

    @pytest.mark.asyncio
    async def test_concurrent_moves_from_same_view(self, job_service, seed_jobs):
        """Two moves computed from the same snapshot: the second one sees it is stale."""
        jobs = await seed_jobs(5)

        results = await asyncio.gather(
            job_service.reorder(jobs[0].id, 0, 3),
            job_service.reorder(jobs[1].id, 1, 2),
            return_exceptions=True,
        )

        assert not isinstance(results[0], Exception)
        assert isinstance(results[1], ConflictError)
        assert await job_service.ordering.check_invariant()


class TestCancellation:
    """A caller that stops waiting does not interrupt the transaction."""

    @pytest.mark.asyncio
    async def test_cancelled_reorder_still_applies(self, job_service, seed_jobs):
        jobs = await seed_jobs(5)
        task = asyncio.create_task(job_service.reorder(jobs[0].id, 0, 4))
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        for _ in range(200):
            ids = await job_service.ordering.ordered_ids()
            if ids[4] == jobs[0].id:
                break
            await asyncio.sleep(0.01)

        assert ids == moved([j.id for j in jobs], 0, 4)
        assert await job_service.ordering.check_invariant()
