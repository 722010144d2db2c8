from talentflow.schemas.common import CamelModel, PageResponse
from talentflow.schemas.job import (
    JobCreate,
    JobUpdate,
    JobResponse,
    ReorderRequest,
    ReorderResponse,
)
from talentflow.schemas.candidate import (
    CandidateCreate,
    CandidateUpdate,
    CandidateResponse,
    NoteCreate,
    TimelineEventResponse,
)
from talentflow.schemas.assessment import (
    Question,
    Section,
    ConditionalOn,
    NumericRange,
    AssessmentDocument,
    AssessmentOut,
    SubmissionCreate,
    SubmissionOut,
)

__all__ = [
    "CamelModel",
    "PageResponse",
    "JobCreate",
    "JobUpdate",
    "JobResponse",
    "ReorderRequest",
    "ReorderResponse",
    "CandidateCreate",
    "CandidateUpdate",
    "CandidateResponse",
    "NoteCreate",
    "TimelineEventResponse",
    "Question",
    "Section",
    "ConditionalOn",
    "NumericRange",
    "AssessmentDocument",
    "AssessmentOut",
    "SubmissionCreate",
    "SubmissionOut",
]
