"""Unit tests for email template rendering."""

from datetime import datetime, timezone

import pytest

from jobboard.config.environment import EnvironmentConfig
from jobboard.config.models import EmailConfig
from jobboard.notifications import (
    MessageKind,
    NotificationTemplateError,
    TemplateRenderer,
    build_notification_context,
)

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)

SAMPLE_DATA = {
    MessageKind.WELCOME: {"name": "Ada"},
    MessageKind.APPLICATION_CONFIRMATION: {
        "candidate_name": "Casey",
        "job_title": "Data Engineer",
        "company_name": "Acme Corp",
    },
    MessageKind.STATUS_UPDATE: {
        "candidate_name": "Casey",
        "job_title": "Data Engineer",
        "company_name": "Acme Corp",
        "status": "reviewing",
    },
    MessageKind.PASSWORD_RESET: {"name": "Ada", "reset_token": "abc123"},
    MessageKind.EMPLOYER_NEW_APPLICATION: {
        "employer_name": "Erin",
        "candidate_name": "Casey",
        "job_title": "Data Engineer",
    },
}


@pytest.fixture(scope="module")
def renderer():
    return TemplateRenderer()


def _render(renderer, kind, **overrides):
    data = {**SAMPLE_DATA[kind], **overrides}
    context = build_notification_context(
        kind,
        data,
        EmailConfig(brand_name="JobBoard"),
        EnvironmentConfig(frontend_url="https://app.jobboard.dev"),
        now=NOW,
    )
    return renderer.render(kind, context)


class TestEveryKind:
    """Every kind renders a one-line subject and a full HTML document."""

    @pytest.mark.parametrize("kind", list(MessageKind))
    def test_renders(self, renderer, kind):
        rendered = _render(renderer, kind)

        assert rendered["subject"]
        assert "\n" not in rendered["subject"]
        assert rendered["html_body"].lstrip().startswith("<!DOCTYPE html>")
        assert "The JobBoard Team" in rendered["html_body"]
        assert "https://app.jobboard.dev/unsubscribe" in rendered["html_body"]
        assert "&copy; 2026 JobBoard" in rendered["html_body"]

    def test_script_links_never_rendered(self, renderer):
        html = _render(
            renderer, MessageKind.APPLICATION_CONFIRMATION, dashboard_url="javascript:alert(1)"
        )["html_body"]

        assert "javascript:" not in html
        assert 'href="https://app.jobboard.dev/applications"' in html


class TestSubjects:
    def test_welcome(self, renderer):
        subject = _render(renderer, MessageKind.WELCOME)["subject"]

        assert subject == "🎉 Welcome to JobBoard - Your Career Journey Starts Now!"

    def test_confirmation(self, renderer):
        subject = _render(renderer, MessageKind.APPLICATION_CONFIRMATION)["subject"]

        assert subject == "✅ Application Confirmed: Data Engineer at Acme Corp"

    @pytest.mark.parametrize(
        "status,prefix",
        [
            ("interview", "🗓️ Interview Invitation"),
            ("hired", "🎊 Congratulations!"),
            ("shortlisted", "🎉 Great News!"),
            ("rejected", "📄 Application Update"),
            ("reviewing", "📬 Application Update"),
        ],
    )
    def test_status_update_prefix(self, renderer, status, prefix):
        subject = _render(renderer, MessageKind.STATUS_UPDATE, status=status)["subject"]

        assert subject == f"{prefix} Data Engineer at Acme Corp"

    def test_subject_not_html_escaped(self, renderer):
        """Test subjects are plain text, so ampersands stay literal."""
        subject = _render(renderer, MessageKind.APPLICATION_CONFIRMATION, company_name="Smith & Sons")["subject"]

        assert subject.endswith("at Smith & Sons")


class TestStatusUpdateBody:
    """Tests for status-specific sections of the status-update email."""

    def test_interview_tips(self, renderer):
        html = _render(renderer, MessageKind.STATUS_UPDATE, status="interview")["html_body"]

        assert "Interview Preparation Tips" in html
        assert "INTERVIEW" in html

    def test_rejected_encouragement(self, renderer):
        html = _render(renderer, MessageKind.STATUS_UPDATE, status="rejected")["html_body"]

        assert "Keep Moving Forward!" in html
        assert "Interview Preparation Tips" not in html

    def test_unknown_status_reads_as_reviewing(self, renderer):
        rendered = _render(renderer, MessageKind.STATUS_UPDATE, status="on_hold")

        assert "Application Under Review" in rendered["html_body"]
        assert "ON HOLD" in rendered["html_body"]
        assert rendered["subject"].startswith("📬 Application Update")

    def test_notes_and_next_steps(self, renderer):
        html = _render(
            renderer,
            MessageKind.STATUS_UPDATE,
            notes="Loved your portfolio",
            next_steps="Pick an interview slot",
        )["html_body"]

        assert "Message from Acme Corp:" in html
        assert "Loved your portfolio" in html
        assert "Pick an interview slot" in html

    def test_notes_section_omitted_without_notes(self, renderer):
        html = _render(renderer, MessageKind.STATUS_UPDATE)["html_body"]

        assert "Message from" not in html


class TestEscaping:
    """User-supplied text must never inject markup into HTML bodies."""

    def test_script_in_notes_escaped(self, renderer):
        html = _render(
            renderer, MessageKind.STATUS_UPDATE, notes="<script>alert('x')</script>"
        )["html_body"]

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_candidate_name_escaped(self, renderer):
        html = _render(renderer, MessageKind.EMPLOYER_NEW_APPLICATION, candidate_name="<b>Eve</b>")["html_body"]

        assert "<b>Eve</b>" not in html
        assert "&lt;b&gt;Eve&lt;/b&gt;" in html


class TestPasswordReset:
    def test_reset_link_encodes_token(self, renderer):
        html = _render(renderer, MessageKind.PASSWORD_RESET, reset_token="a+b/c=d")["html_body"]

        assert "https://app.jobboard.dev/reset-password?token=a%2Bb%2Fc%3Dd" in html

    @pytest.mark.parametrize("hours,text", [(1, "1 hour "), (24, "24 hours")])
    def test_expiry_wording(self, renderer, hours, text):
        html = _render(renderer, MessageKind.PASSWORD_RESET, expiry_hours=hours)["html_body"]

        assert f"expire in {text}" in html


class TestRendererErrors:
    def test_undefined_variable(self, renderer):
        """Test StrictUndefined turns a missing variable into a template error."""
        with pytest.raises(NotificationTemplateError):
            renderer.render(MessageKind.WELCOME, {"name": "Ada"})
