"""Domain models for the job board core."""

from .models import (
    TERMINAL_STATUSES,
    Application,
    ApplicationStatus,
    EmploymentType,
    ExperienceLevel,
    JobCategory,
    JobPosting,
    Requester,
    SalaryPeriod,
    SalaryRange,
    UserAccount,
    UserRole,
)

__all__ = [
    "Application",
    "ApplicationStatus",
    "TERMINAL_STATUSES",
    "JobPosting",
    "JobCategory",
    "EmploymentType",
    "ExperienceLevel",
    "SalaryPeriod",
    "SalaryRange",
    "UserAccount",
    "UserRole",
    "Requester",
]
