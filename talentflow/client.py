"""
TalentFlow API Client

Async httpx client for the TalentFlow API. It is the caller side of the
simulated network:

- Transient failures (503 from the simulated network, or a dropped
  connection) are retried with exponential backoff. Nothing was applied, so
  retrying is safe.
- Every other error status is raised as the matching domain error
  (NotFoundError, ConflictError, ...) and is never retried.

OptimisticJobOrder keeps a local copy of the board order, applies a move
immediately, and restores the last known-good order if the server rejects it.

Usage:
    async with TalentFlowClient("http://localhost:8000") as client:
        page = await client.list_jobs(status="active", pageSize=20)
        board = await OptimisticJobOrder.load(client)
        await board.move("job-3", 0)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from talentflow.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    TalentFlowError,
    TransientTransportError,
    ValidationFailedError,
)
from talentflow.services.assessment_schema import FieldError

logger = logging.getLogger(__name__)


def error_from_response(response: httpx.Response) -> Optional[TalentFlowError]:
    """Domain error for a non-2xx response, or None for other statuses."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("error") or str(body.get("detail") or response.reason_phrase)

    status = response.status_code
    if status == 404:
        return NotFoundError("resource", response.request.url.path, message=message)
    if status == 409:
        return ConflictError(message)
    if status == 400:
        return InvalidInputError(message)
    if status == 422:
        if "errors" in body:
            errors = [FieldError(e["questionId"], e["message"]) for e in body["errors"]]
            return ValidationFailedError(errors, message=message)
        # FastAPI request-body validation
        return InvalidInputError(message)
    if status == 503:
        return TransientTransportError(message)
    return None


class TalentFlowClient:
    """
    Attributes:
        max_retries: Retries after the first attempt for transient failures
        backoff: Base delay in seconds, doubled on each retry
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: int = 3,
        backoff: float = 0.2,
        timeout: float = 30.0,
    ):
        self.max_retries = max_retries
        self.backoff = backoff
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "TalentFlowClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Send a request, retrying transient failures only.

        Raises:
            TransientTransportError: If every attempt failed transiently
            TalentFlowError: For any other error response
        """
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.TransportError as e:
                error: TalentFlowError = TransientTransportError(f"{method} {path}: {e}")
            else:
                if response.is_success:
                    return response.json()
                error = error_from_response(response)
                if error is None:
                    response.raise_for_status()
                if not isinstance(error, TransientTransportError):
                    raise error

            attempt += 1
            if attempt > self.max_retries:
                raise error
            delay = self.backoff * 2 ** (attempt - 1)
            logger.info(f"{method} {path} failed transiently, retry {attempt}/{self.max_retries} in {delay:.2f}s")
            await asyncio.sleep(delay)

    # ==================== Jobs ====================

    async def list_jobs(self, **params: Any) -> Dict[str, Any]:
        return await self.request("GET", "/api/jobs", params=params)

    async def get_job(self, job_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/api/jobs/{job_id}")

    async def create_job(self, job: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", "/api/jobs", json=job)

    async def update_job(self, job_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PATCH", f"/api/jobs/{job_id}", json=changes)

    async def reorder_job(self, job_id: str, from_order: int, to_order: int) -> Dict[str, Any]:
        body = {"fromOrder": from_order, "toOrder": to_order}
        return await self.request("PATCH", f"/api/jobs/{job_id}/reorder", json=body)

    # ==================== Candidates ====================

    async def list_candidates(self, **params: Any) -> Dict[str, Any]:
        return await self.request("GET", "/api/candidates", params=params)

    async def get_candidate(self, candidate_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/api/candidates/{candidate_id}")

    async def create_candidate(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", "/api/candidates", json=candidate)

    async def update_candidate(self, candidate_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PATCH", f"/api/candidates/{candidate_id}", json=changes)

    async def get_timeline(self, candidate_id: str) -> List[Dict[str, Any]]:
        return await self.request("GET", f"/api/candidates/{candidate_id}/timeline")

    async def add_note(self, candidate_id: str, note: str) -> Dict[str, Any]:
        return await self.request("POST", f"/api/candidates/{candidate_id}/notes", json={"note": note})

    # ==================== Assessments ====================

    async def get_assessment(self, job_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/api/assessments/{job_id}")

    async def save_assessment(self, job_id: str, assessment: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PUT", f"/api/assessments/{job_id}", json=assessment)

    async def submit_assessment(
        self, job_id: str, candidate_id: str, responses: Dict[str, Any]
    ) -> Dict[str, Any]:
        body = {"candidateId": candidate_id, "responses": responses}
        return await self.request("POST", f"/api/assessments/{job_id}/submit", json=body)

    async def get_stats(self) -> Dict[str, Any]:
        return await self.request("GET", "/api/stats")


class OptimisticJobOrder:
    """
    Local view of the whole jobs board with optimistic moves.

    `job_ids[i]` is the job at order i, so the list must hold every job.
    """

    def __init__(self, client: TalentFlowClient, job_ids: List[str]):
        self.client = client
        self.job_ids = list(job_ids)

    @classmethod
    async def load(cls, client: TalentFlowClient, page_size: int = 1000) -> "OptimisticJobOrder":
        job_ids: List[str] = []
        page = 1
        while True:
            result = await client.list_jobs(page=page, pageSize=page_size, sort="order")
            job_ids.extend(job["id"] for job in result["data"])
            if page >= result["totalPages"]:
                break
            page += 1
        return cls(client, job_ids)

    async def move(self, job_id: str, to_order: int) -> List[str]:
        """
        Move a job, showing the new order before the server confirms it.

        On success the server's ordering replaces the local one. On any
        failure the last known-good ordering is restored and the error is
        re-raised; after a ConflictError the caller should reload.
        """
        known_good = list(self.job_ids)
        from_order = known_good.index(job_id)

        self.job_ids.remove(job_id)
        self.job_ids.insert(to_order, job_id)

        try:
            result = await self.client.reorder_job(job_id, from_order, to_order)
        except Exception:
            self.job_ids = known_good
            raise

        self.job_ids = list(result["currentOrder"])
        return self.job_ids
