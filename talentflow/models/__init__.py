from talentflow.models.job import Job, JOB_STATUSES, slugify
from talentflow.models.candidate import (
    Candidate,
    TimelineEvent,
    CANDIDATE_STAGES,
    CLOSED_STAGES,
    EVENT_TYPES,
)
from talentflow.models.assessment import Assessment, AssessmentResponse

__all__ = [
    "Job",
    "JOB_STATUSES",
    "slugify",
    "Candidate",
    "TimelineEvent",
    "CANDIDATE_STAGES",
    "CLOSED_STAGES",
    "EVENT_TYPES",
    "Assessment",
    "AssessmentResponse",
]
