"""Payload resolution for notification templates.

Builds the context dictionary each template renders with: the shared layout
fields (brand, footer links, header title and colour) merged with the
kind-specific fields the caller supplied.
"""

from datetime import datetime
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urlparse

from jobboard.config.environment import EnvironmentConfig
from jobboard.config.models import EmailConfig
from jobboard.errors import ValidationError
from jobboard.utils.timestamps import utc_now

from .models import MessageKind
from .status_copy import status_copy_for

REQUIRED_FIELDS = {
    MessageKind.WELCOME: ("name",),
    MessageKind.APPLICATION_CONFIRMATION: ("candidate_name", "job_title", "company_name"),
    MessageKind.STATUS_UPDATE: ("candidate_name", "job_title", "company_name", "status"),
    MessageKind.PASSWORD_RESET: ("name", "reset_token"),
    MessageKind.EMPLOYER_NEW_APPLICATION: ("employer_name", "candidate_name", "job_title"),
}

# (header title, header colour); status-update takes both from the status copy
LAYOUT_HEADERS = {
    MessageKind.WELCOME: ("Welcome to Your Career Journey!", "#4299e1"),
    MessageKind.APPLICATION_CONFIRMATION: ("Application Submitted Successfully!", "#48bb78"),
    MessageKind.PASSWORD_RESET: ("Password Reset Request", "#f56565"),
    MessageKind.EMPLOYER_NEW_APPLICATION: ("New Application Received", "#4299e1"),
}

DASHBOARD_PATHS = {
    MessageKind.WELCOME: "/dashboard",
    MessageKind.APPLICATION_CONFIRMATION: "/applications",
    MessageKind.STATUS_UPDATE: "/applications",
    MessageKind.EMPLOYER_NEW_APPLICATION: "/employer/applications",
}


def is_http_url(value: Any) -> bool:
    """Whether a caller-supplied link is an absolute http(s) URL safe for href."""
    if not isinstance(value, str):
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def build_notification_context(
    kind: MessageKind,
    template_data: Mapping[str, Any],
    email_config: EmailConfig,
    env_config: EnvironmentConfig,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build the template context for one message.

    Args:
        kind: Message kind being rendered
        template_data: Caller-supplied fields (names, job title, status, ...)
        email_config: Branding and support settings
        env_config: Frontend URL used for links
        now: Render time (defaults to current UTC time)

    Returns:
        Dictionary with every variable the kind's templates reference

    Raises:
        ValidationError: If a required field is missing or blank
    """
    missing = [
        field
        for field in REQUIRED_FIELDS[kind]
        if template_data.get(field) is None or not str(template_data.get(field)).strip()
    ]
    if missing:
        raise ValidationError(
            f"Missing template data for {kind.value}: {', '.join(missing)}",
            reason="missing_template_data",
        )

    now = now or utc_now()
    base_url = template_data.get("base_url")
    if not is_http_url(base_url):
        base_url = env_config.frontend_url
    base_url = base_url.strip().rstrip("/")

    context: Dict[str, Any] = {
        "brand_name": email_config.brand_name,
        "support_email": email_config.support_email,
        "current_year": now.year,
        "base_url": base_url,
        "privacy_url": f"{base_url}/privacy",
        "unsubscribe_url": f"{base_url}/unsubscribe",
        "notes": None,
        "next_steps": None,
        "application_id": None,
    }
    context.update({key: value for key, value in template_data.items() if value is not None})
    context["base_url"] = base_url
    for link, default in (
        ("privacy_url", f"{base_url}/privacy"),
        ("unsubscribe_url", f"{base_url}/unsubscribe"),
    ):
        if not is_http_url(context[link]):
            context[link] = default

    if kind in DASHBOARD_PATHS and not is_http_url(context.get("dashboard_url")):
        context["dashboard_url"] = f"{base_url}{DASHBOARD_PATHS[kind]}"

    if kind == MessageKind.STATUS_UPDATE:
        status = template_data["status"]
        status = str(getattr(status, "value", status))
        copy = status_copy_for(status)
        context["status"] = status
        context["status_label"] = status.replace("_", " ").upper()
        context["copy"] = copy
        context["header_title"] = copy.title
        context["header_color"] = copy.color
    else:
        context["header_title"], context["header_color"] = LAYOUT_HEADERS[kind]

    if kind == MessageKind.PASSWORD_RESET:
        token = str(template_data["reset_token"])
        context["reset_url"] = f"{base_url}/reset-password?token={quote(token, safe='')}"
        context["expiry_hours"] = int(template_data.get("expiry_hours") or 1)

    if kind == MessageKind.EMPLOYER_NEW_APPLICATION:
        context["received_on"] = now.strftime("%Y-%m-%d")

    return context
