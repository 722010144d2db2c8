"""
Assessment Models - per-job questionnaires and submitted responses

An assessment is stored as one document: its sections and questions live
in a JSON column and are validated through the pydantic
`AssessmentDocument` schema on the way in and out.
"""

from sqlalchemy import Column, String, Text, DateTime, JSON
from talentflow.database import Base, new_id, utcnow


class Assessment(Base):
    """
    Assessment for a single job (at most one per job_id).

    Attributes:
        sections: JSON list of sections, each with an ordered question list
    """

    __tablename__ = "assessments"

    id = Column(String, primary_key=True, default=lambda: new_id("assessment"))
    job_id = Column(String, nullable=False, unique=True, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    sections = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class AssessmentResponse(Base):
    """One submission of an assessment by a candidate. Never mutated."""

    __tablename__ = "responses"

    id = Column(String, primary_key=True, default=lambda: new_id("response"))
    assessment_id = Column(String, nullable=False, index=True)
    candidate_id = Column(String, nullable=False, index=True)
    responses = Column(JSON, nullable=False, default=dict)
    submitted_at = Column(DateTime, nullable=False, default=utcnow)
