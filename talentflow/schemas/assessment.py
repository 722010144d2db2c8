from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from talentflow.schemas.common import CamelModel

QuestionType = Literal[
    "single-choice",
    "multi-choice",
    "short-text",
    "long-text",
    "numeric",
    "file",
]


class NumericRange(CamelModel):
    min: Optional[float] = None
    max: Optional[float] = None


class ConditionalOn(CamelModel):
    question_id: str
    equals_value: str


class Question(CamelModel):
    id: str
    type: QuestionType
    text: str
    required: bool = False
    options: Optional[List[str]] = None
    numeric_range: Optional[NumericRange] = None
    max_length: Optional[int] = Field(None, ge=1)
    conditional_on: Optional[ConditionalOn] = None


class Section(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    questions: List[Question] = []


class AssessmentDocument(CamelModel):
    """Editable body of an assessment (what PUT /assessments/{jobId} accepts)."""

    title: str = "New Assessment"
    description: Optional[str] = None
    sections: List[Section] = []


class AssessmentOut(AssessmentDocument):
    id: str
    job_id: str
    created_at: datetime
    updated_at: datetime


class SubmissionCreate(CamelModel):
    candidate_id: str
    responses: Dict[str, Any] = {}


class SubmissionOut(CamelModel):
    id: str
    assessment_id: str
    candidate_id: str
    responses: Dict[str, Any]
    submitted_at: datetime
