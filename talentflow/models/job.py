"""
Job Model - SQLAlchemy ORM model for job postings

Jobs form one ordered list shown on the jobs board. `order` is dense and
unique across the whole collection: for N jobs the orders are exactly
0..N-1. The column is indexed but not declared unique, because a reorder
shifts a block of rows with a single UPDATE and SQLite checks uniqueness
row by row. The ordering engine owns the invariant.

Status Flow:
    active ⇄ archived
"""

import re

from sqlalchemy import Column, String, Integer, Text, DateTime, JSON
from talentflow.database import Base, new_id, utcnow

JOB_STATUSES = ("active", "archived")


def slugify(title: str) -> str:
    """
    Derive a URL slug from a job title.

    Example:
        >>> slugify("Senior Frontend Engineer")
        'senior-frontend-engineer'
    """
    slug = re.sub(r"\s+", "-", title.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


class Job(Base):
    """
    Job posting entity.

    Attributes:
        id: Prefixed random id ("job-...")
        title: Job title (max 500 chars)
        slug: Derived from title; uniqueness is not enforced
        status: "active" or "archived" (indexed)
        tags: JSON list of tag strings
        order: Position on the jobs board (indexed)
        description: Free-text description
    """

    __tablename__ = "jobs"

    id = Column(String, primary_key=True, default=lambda: new_id("job"))
    title = Column(String(500), nullable=False)
    slug = Column(String(500), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    tags = Column(JSON, nullable=False, default=list)
    order = Column("order", Integer, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
