"""Core domain models for postings, applications and the people behind them.

- JobPosting: an open role owned by one employer
- Application: one candidate's submission to one posting
- UserAccount: contact details needed to address notifications
- Requester: identity performing a lifecycle operation
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jobboard.utils.timestamps import ensure_utc


class ApplicationStatus(str, Enum):
    """Application workflow states."""

    PENDING = "pending"
    REVIEWING = "reviewing"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"
    REJECTED = "rejected"
    HIRED = "hired"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({ApplicationStatus.REJECTED, ApplicationStatus.HIRED})


class UserRole(str, Enum):
    CANDIDATE = "candidate"
    EMPLOYER = "employer"
    ADMIN = "admin"


class JobCategory(str, Enum):
    TECHNOLOGY = "Technology"
    HEALTHCARE = "Healthcare"
    FINANCE = "Finance"
    EDUCATION = "Education"
    MARKETING = "Marketing"
    SALES = "Sales"
    CUSTOMER_SERVICE = "Customer Service"
    OPERATIONS = "Operations"
    HR = "HR"
    DESIGN = "Design"
    ENGINEERING = "Engineering"
    OTHER = "Other"


class EmploymentType(str, Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    FREELANCE = "Freelance"
    INTERNSHIP = "Internship"


class ExperienceLevel(str, Enum):
    ENTRY = "Entry Level"
    ONE_TO_THREE = "1-3 years"
    THREE_TO_FIVE = "3-5 years"
    FIVE_PLUS = "5+ years"
    SENIOR = "Senior Level"


class SalaryPeriod(str, Enum):
    HOURLY = "hourly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SalaryRange(BaseModel):
    """Advertised pay band."""

    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)
    currency: str = "USD"
    period: SalaryPeriod = SalaryPeriod.YEARLY

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("salary min cannot exceed salary max")
        return self


class UserAccount(BaseModel):
    """Addressable user: who to email and how to greet them."""

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    role: UserRole
    company_name: Optional[str] = Field(None, description="Employer's company name")

    @field_validator("name", "email")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @property
    def display_company(self) -> str:
        """Company name for employers, falling back to the user's name."""
        return self.company_name or self.name


class Requester(BaseModel):
    """Identity performing a lifecycle operation."""

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class JobPosting(BaseModel):
    """An open role.

    applications_count and views are derived counters; they are only ever
    changed through the repository's atomic increment, never assigned here.
    """

    id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=5000)
    requirements: str = Field(..., min_length=1, max_length=3000)
    employer_id: str
    category: JobCategory
    employment_type: EmploymentType
    location: str = Field(..., min_length=1)
    remote: bool = False
    salary: SalaryRange = Field(default_factory=SalaryRange)
    experience_level: ExperienceLevel
    skills: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    application_deadline: datetime
    is_active: bool = True
    featured: bool = False
    applications_count: int = Field(0, ge=0)
    views: int = Field(0, ge=0)
    created_at: Optional[datetime] = None

    @field_validator("title", "location")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("skills", "benefits")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        """Strip tags and drop blanks and repeats, keeping first-seen order."""
        tags = []
        for tag in v:
            stripped = tag.strip()
            if stripped and stripped not in tags:
                tags.append(stripped)
        return tags

    @field_validator("application_deadline", "created_at")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    def is_open_at(self, moment: datetime) -> bool:
        """True when the posting is active and the deadline has not passed."""
        return self.is_active and moment <= self.application_deadline


class Application(BaseModel):
    """One candidate's submission to one posting."""

    id: Optional[str] = None
    job_id: str
    candidate_id: str
    cover_letter: Optional[str] = None
    resume: str = Field(..., min_length=1)
    status: ApplicationStatus = ApplicationStatus.PENDING
    notes: Optional[str] = None
    applied_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    @field_validator("applied_at", "reviewed_at")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
