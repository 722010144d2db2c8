"""
Assessment Service - per-job assessments and candidate submissions

Upsert:
    At most one assessment exists per job. The question list is checked for
    structural problems (duplicate ids, bad conditional references) before
    anything is written.

Submit:
    The stored assessment is compiled into a validator and the responses are
    checked against it. On failure nothing is written and the caller gets a
    ValidationFailedError carrying every error. On success the response and
    an "assessment" timeline event are stored in one transaction.
"""

import logging
from typing import List, Optional, Tuple

from prometheus_client import Counter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from talentflow.database import DocumentStore, shielded, utcnow
from talentflow.errors import InvalidInputError, NotFoundError, ValidationFailedError
from talentflow.models import Assessment, AssessmentResponse, Candidate, Job
from talentflow.schemas import AssessmentDocument, SubmissionCreate
from talentflow.services.assessment_schema import (
    AssessmentValidator,
    check_schema,
    compile_schema,
    flatten_questions,
)
from talentflow.services.timeline import TimelineService

logger = logging.getLogger(__name__)

VALIDATION_FAILURES = Counter(
    "assessment_validation_failures_total",
    "Assessment submissions rejected by schema validation",
)


class AssessmentService:
    """
    Attributes:
        store: DocumentStore with assessments, responses, candidates and timeline
        strict_choices: Reject choice answers that are not among the options
    """

    def __init__(self, store: DocumentStore, actor: str = "HR Team", strict_choices: bool = False):
        self.store = store
        self.timeline = TimelineService(store, actor=actor)
        self.strict_choices = strict_choices

    async def _find(self, session: AsyncSession, job_id: str) -> Optional[Assessment]:
        result = await session.execute(select(Assessment).where(Assessment.job_id == job_id))
        return result.scalar_one_or_none()

    async def get_for_job(self, job_id: str) -> Assessment:
        """
        Raises:
            NotFoundError: If the job has no assessment
        """
        async with self.store.read() as session:
            assessment = await self._find(session, job_id)
        if assessment is None:
            raise NotFoundError("assessment", job_id)
        return assessment

    @shielded
    async def upsert(self, job_id: str, document: AssessmentDocument) -> Tuple[Assessment, bool]:
        """
        Create or replace the assessment of a job.

        Returns:
            (assessment, created) where created is True for a new assessment

        Raises:
            NotFoundError: If the job does not exist
            InvalidInputError: If the question list breaks a structural invariant
        """
        problems = check_schema(flatten_questions(document.sections))
        if problems:
            raise InvalidInputError("; ".join(problems))

        payload = document.model_dump(by_alias=True, mode="json")
        now = utcnow()

        async with self.store.transaction("assessments") as session:
            await self.store.get(Job, job_id, session=session)
            assessment = await self._find(session, job_id)
            created = assessment is None
            if created:
                assessment = Assessment(job_id=job_id, created_at=now)
                session.add(assessment)
            assessment.title = payload["title"]
            assessment.description = payload["description"]
            assessment.sections = payload["sections"]
            assessment.updated_at = now

        logger.info(f"{'Created' if created else 'Updated'} assessment for job {job_id}")
        return assessment, created

    def validator_for(self, assessment: Assessment) -> AssessmentValidator:
        document = AssessmentDocument.model_validate(assessment)
        return compile_schema(flatten_questions(document.sections), strict_choices=self.strict_choices)

    @shielded
    async def submit(self, job_id: str, submission: SubmissionCreate) -> AssessmentResponse:
        """
        Validate and store a candidate's responses.

        Raises:
            NotFoundError: If the assessment or the candidate does not exist
            ValidationFailedError: If the responses fail the assessment schema
        """
        async with self.store.transaction("responses", "timeline") as session:
            assessment = await self._find(session, job_id)
            if assessment is None:
                raise NotFoundError("assessment", job_id)
            candidate = await self.store.get(Candidate, submission.candidate_id, session=session)

            result = self.validator_for(assessment)(submission.responses)
            if not result.valid:
                VALIDATION_FAILURES.inc()
                raise ValidationFailedError(result.errors)

            response = AssessmentResponse(
                assessment_id=assessment.id,
                candidate_id=candidate.id,
                responses=submission.responses,
                submitted_at=utcnow(),
            )
            session.add(response)
            session.add(self.timeline.assessment_event(
                candidate.id,
                f"Submitted assessment '{assessment.title}'",
                actor=candidate.name,
            ))

        logger.info(f"Candidate {candidate.id} submitted assessment {assessment.id}")
        return response

    async def list_responses(self, job_id: str) -> List[AssessmentResponse]:
        assessment = await self.get_for_job(job_id)
        responses = await self.store.snapshot(
            AssessmentResponse, AssessmentResponse.assessment_id == assessment.id
        )
        return sorted(responses, key=lambda r: r.submitted_at)
