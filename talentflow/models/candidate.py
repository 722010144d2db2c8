"""
Candidate and TimelineEvent Models

A candidate moves through the hiring pipeline; each move is recorded as a
TimelineEvent in the same transaction as the stage change, so the timeline
is a faithful log of the candidate's stage history.

Stage Flow:
    applied → screen → tech → offer → hired
    (rejected reachable from any stage)

Timeline events are append-only. `seq` is an autoincrement insertion
counter that breaks ties between events sharing a `created_at`.
"""

from sqlalchemy import CheckConstraint, Column, String, Integer, Text, DateTime
from sqlalchemy.orm import validates

from talentflow.database import Base, new_id, utcnow
from talentflow.errors import InvalidInputError

CANDIDATE_STAGES = ("applied", "screen", "tech", "offer", "hired", "rejected")
CLOSED_STAGES = ("hired", "rejected")
EVENT_TYPES = ("stage_change", "note", "assessment")


class Candidate(Base):
    """
    Candidate entity.

    Attributes:
        id: Prefixed random id ("candidate-...")
        job_id: Job the candidate applied to (indexed)
        stage: Current pipeline stage (indexed)
        applied_at: Application time, the natural sort key
    """

    __tablename__ = "candidates"

    id = Column(String, primary_key=True, default=lambda: new_id("candidate"))
    name = Column(String(500), nullable=False, index=True)
    email = Column(String(500), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    job_id = Column(String, nullable=False, index=True)
    stage = Column(String(20), nullable=False, default="applied", index=True)
    notes = Column(Text, nullable=True)
    applied_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class TimelineEvent(Base):
    """
    Immutable log entry for a candidate.

    `from_stage` is set only for stage changes that had a prior stage.
    """

    __tablename__ = "timeline"
    __table_args__ = (
        CheckConstraint(
            "type IN (" + ", ".join(f"'{t}'" for t in EVENT_TYPES) + ")",
            name="ck_timeline_event_type",
        ),
    )

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, nullable=False, unique=True, default=lambda: new_id("timeline"))
    candidate_id = Column(String, nullable=False, index=True)
    type = Column(String(20), nullable=False)
    from_stage = Column("from", String(20), nullable=True)
    to_stage = Column("to", String(20), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    created_by = Column(String(200), nullable=False)

    @validates("type")
    def validate_type(self, key: str, value: str) -> str:
        if value not in EVENT_TYPES:
            raise InvalidInputError(f"Unknown timeline event type '{value}'")
        return value
