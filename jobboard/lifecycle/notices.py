"""Notification hand-off records built inside a lifecycle transaction.

Everything a message needs (names, addresses, job title, company) is copied
out of the session here, so delivery after commit never touches the database.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from jobboard.domain.models import Application, JobPosting, UserAccount
from jobboard.notifications.models import MessageKind


@dataclass
class Notice:
    """A message queued for delivery once the transaction commits."""

    kind: MessageKind
    recipient: str
    template_data: Dict[str, Any] = field(default_factory=dict)


def application_confirmation(
    application: Application, posting: JobPosting, candidate: UserAccount, employer: UserAccount
) -> Notice:
    return Notice(
        kind=MessageKind.APPLICATION_CONFIRMATION,
        recipient=candidate.email,
        template_data={
            "candidate_name": candidate.name,
            "job_title": posting.title,
            "company_name": employer.display_company,
            "application_id": application.id,
        },
    )


def employer_new_application(
    application: Application, posting: JobPosting, candidate: UserAccount, employer: UserAccount
) -> Notice:
    return Notice(
        kind=MessageKind.EMPLOYER_NEW_APPLICATION,
        recipient=employer.email,
        template_data={
            "employer_name": employer.name,
            "candidate_name": candidate.name,
            "job_title": posting.title,
            "application_id": application.id,
        },
    )


def status_update(
    application: Application,
    posting: JobPosting,
    candidate: UserAccount,
    employer: UserAccount,
    notes: Optional[str] = None,
) -> Notice:
    """Status-update notice; carries only the notes sent with this transition."""
    return Notice(
        kind=MessageKind.STATUS_UPDATE,
        recipient=candidate.email,
        template_data={
            "candidate_name": candidate.name,
            "job_title": posting.title,
            "company_name": employer.display_company,
            "status": application.status.value,
            "notes": notes,
            "application_id": application.id,
        },
    )
