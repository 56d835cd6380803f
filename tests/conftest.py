"""Shared fixtures: configuration objects, an in-memory database and seeded records."""

import pytest

from jobboard.config.environment import EnvironmentConfig
from jobboard.config.models import EmailConfig, LifecycleConfig
from jobboard.logging.context import clear_log_context
from jobboard.persistence import (
    JobPostingRepository,
    UserRepository,
    close_database,
    get_session,
    init_database,
)
from tests.helpers import RecordingMailClient, make_posting, make_user

ENV_VARS = (
    "APP_ENV",
    "EMAIL_FROM",
    "FRONTEND_URL",
    "DATABASE_URL",
    "LOG_LEVEL",
    "RESEND_PRODUCTION_ENABLED",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "MAIL_API_KEY",
    "MAIL_API_URL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host environment variables and log context out of every test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def email_config():
    return EmailConfig(max_retries=3, retry_delay_ms=1000)


@pytest.fixture
def lifecycle_config():
    return LifecycleConfig(notification_workers=0)


@pytest.fixture
def dev_env():
    return EnvironmentConfig(app_env="development", frontend_url="https://app.jobboard.dev")


@pytest.fixture
def prod_env():
    return EnvironmentConfig(
        app_env="production",
        email_from="JobBoard <noreply@jobboard.dev>",
        frontend_url="https://app.jobboard.dev",
    )


@pytest.fixture
def mail_client():
    return RecordingMailClient()


@pytest.fixture
def database():
    """Fresh in-memory database per test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def users(database):
    """Two candidates, two employers and an admin, keyed by role label."""
    accounts = {
        "candidate": make_user("C1", name="Casey Candidate", email="casey@example.com"),
        "candidate2": make_user("C2", name="Robin Candidate", email="robin@example.com"),
        "employer": make_user(
            "E1", role="employer", name="Erin Employer", email="erin@acme.dev", company_name="Acme Corp"
        ),
        "other_employer": make_user(
            "E2", role="employer", name="Olly Other", email="olly@globex.dev", company_name="Globex"
        ),
        "admin": make_user("A1", role="admin", name="Ada Admin", email="ada@jobboard.dev"),
    }
    with get_session() as session:
        repo = UserRepository(session)
        for account in accounts.values():
            repo.create(account)
    return accounts


@pytest.fixture
def posting(users):
    """Active posting J1 owned by employer E1, deadline tomorrow."""
    with get_session() as session:
        return JobPostingRepository(session).create(make_posting("J1", employer_id="E1"))
