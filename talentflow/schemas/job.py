from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from talentflow.schemas.common import CamelModel

JobStatus = Literal["active", "archived"]


def _clean_tags(tags: List[str]) -> List[str]:
    # Strip, drop blanks, keep first occurrence
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class JobBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    tags: List[str] = []
    status: JobStatus = "active"

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: List[str]) -> List[str]:
        return _clean_tags(value)


class JobCreate(JobBase):
    slug: Optional[str] = None


class JobUpdate(CamelModel):
    """Partial update. `order` is not patchable; use the reorder endpoint."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    slug: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[JobStatus] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Title is required")
        return None if value is None else value.strip()

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return None if value is None else _clean_tags(value)


class JobResponse(JobBase):
    id: str
    slug: str
    order: int
    created_at: datetime
    updated_at: datetime


class ReorderRequest(CamelModel):
    from_order: int
    to_order: int


class ReorderResponse(CamelModel):
    job: JobResponse
    previous_order: List[str]
    current_order: List[str]
