"""Integration tests for concurrent submissions against a file-backed database.

In-memory SQLite gives each thread its own database, so these tests use a
real file to exercise write locking across connections.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from jobboard.config.models import LifecycleConfig
from jobboard.domain.models import Requester
from jobboard.errors import DuplicateSubmission
from jobboard.lifecycle import ApplicationLifecycleManager
from jobboard.notifications import NotificationDispatcher
from jobboard.persistence import (
    JobPostingRepository,
    UserRepository,
    close_database,
    get_session,
    init_database,
)
from tests.helpers import make_posting, make_user

CANDIDATES = [f"C{i}" for i in range(1, 9)]


@pytest.fixture
def file_database(tmp_path):
    """File database seeded with eight candidates, one employer and posting J1."""
    init_database(f"sqlite:///{tmp_path / 'concurrency.db'}")
    with get_session() as session:
        users = UserRepository(session)
        users.create(make_user("E1", role="employer", company_name="Acme Corp"))
        for candidate_id in CANDIDATES:
            users.create(make_user(candidate_id))
        JobPostingRepository(session).create(make_posting("J1", employer_id="E1"))
    yield
    close_database()


@pytest.fixture
def manager(email_config, dev_env, mail_client):
    return ApplicationLifecycleManager(
        NotificationDispatcher(email_config, dev_env, mail_client=mail_client),
        lifecycle_config=LifecycleConfig(notification_workers=0),
    )


def _posting():
    with get_session() as session:
        return JobPostingRepository(session).get_by_id("J1")


def test_parallel_distinct_candidates(file_database, manager):
    """Test N parallel submissions leave applications_count at exactly N."""
    with ThreadPoolExecutor(max_workers=len(CANDIDATES)) as pool:
        futures = [
            pool.submit(manager.submit, "J1", candidate_id, "resume text")
            for candidate_id in CANDIDATES
        ]
        applications = [future.result() for future in futures]

    assert len({application.id for application in applications}) == len(CANDIDATES)
    assert _posting().applications_count == len(CANDIDATES)
    assert len(manager.list_for_job("J1", Requester(user_id="E1", role="employer"))) == len(CANDIDATES)


def test_parallel_duplicates_admit_exactly_one(file_database, manager):
    """Test racing submissions for one pair create a single application."""
    with ThreadPoolExecutor(max_workers=6) as pool:
        futures = [pool.submit(manager.submit, "J1", "C1", "resume text") for _ in range(6)]

    successes, duplicates = 0, 0
    for future in futures:
        try:
            future.result()
            successes += 1
        except DuplicateSubmission:
            duplicates += 1

    assert (successes, duplicates) == (1, 5)
    assert _posting().applications_count == 1
    assert len(manager.list_for_candidate("C1")) == 1
