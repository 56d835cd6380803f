"""Database schema definition and ORM models.

ORM models convert to and from the pydantic domain models. Timestamps are
stored as ISO 8601 UTC strings so ordering by the column is chronological on
every backend.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobboard.domain.models import (
    Application,
    JobPosting,
    SalaryRange,
    UserAccount,
)
from jobboard.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


class UserModel(Base):
    """ORM model for users table."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    role = Column(String(20), nullable=False)
    company_name = Column(String(255), nullable=True)

    def to_domain(self) -> UserAccount:
        return UserAccount(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            company_name=self.company_name,
        )

    @classmethod
    def from_domain(cls, user: UserAccount) -> "UserModel":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            company_name=user.company_name,
        )


class JobPostingModel(Base):
    """ORM model for job_postings table.

    applications_count and views are only written through SQL-level
    increments (see JobPostingRepository.increment_counter).
    """

    __tablename__ = "job_postings"

    id = Column(String(64), primary_key=True, nullable=False)
    employer_id = Column(String(64), ForeignKey("users.id"), nullable=False)

    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    employment_type = Column(String(50), nullable=False)
    location = Column(String(255), nullable=False)
    remote = Column(Boolean, nullable=False, default=False)

    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    salary_currency = Column(String(3), nullable=False, default="USD")
    salary_period = Column(String(20), nullable=False, default="yearly")

    experience_level = Column(String(50), nullable=False)
    skills = Column(JSON, nullable=False, default=list)
    benefits = Column(JSON, nullable=False, default=list)

    application_deadline = Column(String(50), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    featured = Column(Boolean, nullable=False, default=False)

    applications_count = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)

    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_job_postings_employer", "employer_id"),
        Index("idx_job_postings_filters", "category", "location", "employment_type"),
        Index("idx_job_postings_created", "created_at"),
    )

    def to_domain(self) -> JobPosting:
        return JobPosting(
            id=self.id,
            title=self.title,
            description=self.description,
            requirements=self.requirements,
            employer_id=self.employer_id,
            category=self.category,
            employment_type=self.employment_type,
            location=self.location,
            remote=self.remote,
            salary=SalaryRange(
                min=self.salary_min,
                max=self.salary_max,
                currency=self.salary_currency,
                period=self.salary_period,
            ),
            experience_level=self.experience_level,
            skills=list(self.skills or []),
            benefits=list(self.benefits or []),
            application_deadline=_parse_datetime(self.application_deadline),
            is_active=self.is_active,
            featured=self.featured,
            applications_count=self.applications_count,
            views=self.views,
            created_at=_parse_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, posting: JobPosting) -> "JobPostingModel":
        return cls(
            id=posting.id,
            employer_id=posting.employer_id,
            title=posting.title,
            description=posting.description,
            requirements=posting.requirements,
            category=posting.category.value,
            employment_type=posting.employment_type.value,
            location=posting.location,
            remote=posting.remote,
            salary_min=posting.salary.min,
            salary_max=posting.salary.max,
            salary_currency=posting.salary.currency,
            salary_period=posting.salary.period.value,
            experience_level=posting.experience_level.value,
            skills=list(posting.skills),
            benefits=list(posting.benefits),
            application_deadline=_format_datetime(posting.application_deadline),
            is_active=posting.is_active,
            featured=posting.featured,
            applications_count=posting.applications_count,
            views=posting.views,
            created_at=_format_datetime(posting.created_at),
        )


class ApplicationModel(Base):
    """ORM model for applications table.

    The (job_id, candidate_id) unique constraint is the authoritative
    duplicate guard; the lifecycle pre-check only gives a friendlier error.
    """

    __tablename__ = "applications"

    id = Column(String(64), primary_key=True, nullable=False)
    job_id = Column(String(64), ForeignKey("job_postings.id"), nullable=False)
    candidate_id = Column(String(64), ForeignKey("users.id"), nullable=False)

    cover_letter = Column(Text, nullable=True)
    resume = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    notes = Column(Text, nullable=True)

    applied_at = Column(String(50), nullable=False)
    reviewed_at = Column(String(50), nullable=True)
    reviewed_by = Column(String(64), ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        UniqueConstraint("job_id", "candidate_id", name="uq_applications_job_candidate"),
        Index("idx_applications_candidate", "candidate_id", "applied_at"),
        Index("idx_applications_job", "job_id", "applied_at"),
    )

    def to_domain(self) -> Application:
        return Application(
            id=self.id,
            job_id=self.job_id,
            candidate_id=self.candidate_id,
            cover_letter=self.cover_letter,
            resume=self.resume,
            status=self.status,
            notes=self.notes,
            applied_at=_parse_datetime(self.applied_at),
            reviewed_at=_parse_datetime(self.reviewed_at),
            reviewed_by=self.reviewed_by,
        )

    @classmethod
    def from_domain(cls, application: Application) -> "ApplicationModel":
        return cls(
            id=application.id,
            job_id=application.job_id,
            candidate_id=application.candidate_id,
            cover_letter=application.cover_letter,
            resume=application.resume,
            status=application.status.value,
            notes=application.notes,
            applied_at=_format_datetime(application.applied_at),
            reviewed_at=_format_datetime(application.reviewed_at),
            reviewed_by=application.reviewed_by,
        )


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 UTC string (microsecond precision) for storage."""
    if dt is None:
        return None
    return format_timestamp(dt, include_microseconds=True)


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back into aware UTC."""
    if not dt_str:
        return None
    return parse_iso_datetime(dt_str)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
