from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from talentflow.schemas.common import CamelModel

Stage = Literal["applied", "screen", "tech", "offer", "hired", "rejected"]
EventType = Literal["stage_change", "note", "assessment"]


class CandidateCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None
    job_id: str
    notes: Optional[str] = None


class CandidateUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=3)
    phone: Optional[str] = None
    job_id: Optional[str] = None
    stage: Optional[Stage] = None
    notes: Optional[str] = None


class CandidateResponse(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    job_id: str
    stage: Stage
    notes: Optional[str] = None
    applied_at: datetime
    updated_at: datetime


class NoteCreate(CamelModel):
    note: str


class TimelineEventResponse(CamelModel):
    id: str
    candidate_id: str
    type: EventType
    from_stage: Optional[str] = Field(None, alias="from")
    to_stage: Optional[str] = Field(None, alias="to")
    note: Optional[str] = None
    created_at: datetime
    created_by: str
