"""Wording used by status-update emails, keyed by application status."""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class StatusCopy:
    title: str
    message: str
    badge_class: str
    emoji: str
    color: str
    encouragement: str
    subject_prefix: str


STATUS_COPY: Dict[str, StatusCopy] = {
    "pending": StatusCopy(
        title="Application Received",
        message="is waiting for the hiring team to pick it up",
        badge_class="status-badge info-badge",
        emoji="📥",
        color="#4299e1",
        encouragement="Your application is in the queue. We'll let you know as soon as it moves.",
        subject_prefix="📬 Application Update",
    ),
    "reviewing": StatusCopy(
        title="Application Under Review",
        message="is currently being carefully reviewed by our hiring team",
        badge_class="status-badge info-badge",
        emoji="👀",
        color="#4299e1",
        encouragement="Hang tight! The team is taking time to properly evaluate your qualifications.",
        subject_prefix="📬 Application Update",
    ),
    "shortlisted": StatusCopy(
        title="Great News - You've Been Shortlisted!",
        message="has been shortlisted! You're among the top candidates",
        badge_class="status-badge success-badge",
        emoji="🎉",
        color="#48bb78",
        encouragement="Congratulations! You're one step closer to landing this role.",
        subject_prefix="🎉 Great News!",
    ),
    "interview": StatusCopy(
        title="Interview Invitation",
        message="has progressed to the interview stage",
        badge_class="status-badge success-badge",
        emoji="🤝",
        color="#4299e1",
        encouragement="This is exciting! Time to prepare and show them what you've got.",
        subject_prefix="🗓️ Interview Invitation",
    ),
    "rejected": StatusCopy(
        title="Application Update",
        message="was not selected for this position",
        badge_class="status-badge danger-badge",
        emoji="💪",
        color="#f56565",
        encouragement='Don\'t let this discourage you! Every "no" brings you closer to the right "yes".',
        subject_prefix="📄 Application Update",
    ),
    "hired": StatusCopy(
        title="Congratulations - You Got the Job!",
        message="has been accepted! Welcome to your new role",
        badge_class="status-badge success-badge",
        emoji="🎊",
        color="#48bb78",
        encouragement="Amazing! We're so excited for you and your new journey.",
        subject_prefix="🎊 Congratulations!",
    ),
}

FALLBACK_STATUS = "reviewing"


def status_copy_for(status: str) -> StatusCopy:
    """Copy for a status; unknown statuses read as "reviewing"."""
    return STATUS_COPY.get(status, STATUS_COPY[FALLBACK_STATUS])
