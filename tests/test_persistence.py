"""Tests for the persistence layer.

Covers database initialization, session transaction handling and the user,
posting and application repositories against an in-memory SQLite database.
"""

from datetime import timedelta

import pytest
from sqlalchemy import inspect

from jobboard.domain.models import Application, ApplicationStatus, UserAccount
from jobboard.persistence import (
    ApplicationRepository,
    DatabaseConnectionError,
    DuplicateRecordError,
    JobPostingRepository,
    RecordExcludedError,
    RecordNotFoundError,
    StaleRecordError,
    UserRepository,
    close_database,
    get_engine,
    get_session,
    init_database,
)
from jobboard.persistence.database import _redact_url
from jobboard.utils.timestamps import utc_now
from tests.helpers import make_posting, make_user


def _application(job_id="J1", candidate_id="C1", applied_at=None, **overrides):
    data = {
        "job_id": job_id,
        "candidate_id": candidate_id,
        "resume": "resume text",
        "applied_at": applied_at or utc_now(),
    }
    data.update(overrides)
    return Application(**data)


class TestDatabase:
    """Tests for engine and session management."""

    def test_schema_created(self, database):
        tables = set(inspect(get_engine()).get_table_names())

        assert {"users", "job_postings", "applications"} <= tables

    def test_session_before_init(self):
        close_database()

        with pytest.raises(DatabaseConnectionError):
            with get_session():
                pass

    def test_empty_url_rejected(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")

    def test_file_database_creates_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "jobboard.db"

        init_database(f"sqlite:///{db_path}")
        try:
            assert db_path.exists()
        finally:
            close_database()

    def test_session_rolls_back_on_error(self, users):
        """Test nothing from a failed block is committed."""
        with pytest.raises(RuntimeError):
            with get_session() as session:
                JobPostingRepository(session).create(make_posting("J9"))
                raise RuntimeError("abort")

        with get_session() as session:
            assert JobPostingRepository(session).get_by_id("J9") is None

    def test_redact_url(self):
        assert _redact_url("postgresql://app:secret@db:5432/jobs") == "postgresql://app:***@db:5432/jobs"
        assert _redact_url("sqlite:///./data/jobboard.db") == "sqlite:///./data/jobboard.db"


class TestUserRepository:
    def test_create_and_get(self, database):
        with get_session() as session:
            UserRepository(session).create(make_user("C1", name="Casey"))

        with get_session() as session:
            user = UserRepository(session).get_by_id("C1")

        assert user.name == "Casey"
        assert user.role.value == "candidate"

    def test_generated_id(self, database):
        with get_session() as session:
            user = UserRepository(session).create(
                UserAccount(name="No Id", email="x@jobboard.dev", role="candidate")
            )

        assert len(user.id) == 32

    def test_duplicate_email(self, users):
        with pytest.raises(DuplicateRecordError):
            with get_session() as session:
                UserRepository(session).create(make_user("C9", email="casey@example.com"))

    def test_missing_user(self, database):
        with get_session() as session:
            assert UserRepository(session).get_by_id("nobody") is None


class TestJobPostingRepository:
    """Tests for posting storage and counters."""

    def test_round_trip(self, posting):
        with get_session() as session:
            stored = JobPostingRepository(session).get_by_id("J1")

        assert stored.title == posting.title
        assert stored.application_deadline == posting.application_deadline
        assert stored.skills == ["Python", "SQL"]
        assert stored.created_at is not None

    def test_counters_start_at_zero(self, users):
        with get_session() as session:
            created = JobPostingRepository(session).create(
                make_posting("J5", applications_count=7, views=3)
            )

        assert (created.applications_count, created.views) == (0, 0)

    def test_get_active_distinguishes_missing_from_inactive(self, posting):
        with get_session() as session:
            repo = JobPostingRepository(session)
            assert repo.get_active("J1").id == "J1"

            with pytest.raises(RecordNotFoundError):
                repo.get_active("missing")

            repo.set_active("J1", False)
            with pytest.raises(RecordExcludedError):
                repo.get_active("J1")

            assert repo.get_by_id("J1").is_active is False

    def test_increment_counter(self, posting):
        with get_session() as session:
            repo = JobPostingRepository(session)
            repo.increment_counter("J1", "applications_count")
            repo.increment_counter("J1", "views", amount=5)

        with get_session() as session:
            stored = JobPostingRepository(session).get_by_id("J1")

        assert stored.applications_count == 1
        assert stored.views == 5

    def test_increment_unknown_field(self, posting):
        with get_session() as session:
            with pytest.raises(ValueError):
                JobPostingRepository(session).increment_counter("J1", "title")

    def test_increment_missing_posting(self, users):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                JobPostingRepository(session).increment_counter("missing", "views")

    def test_set_active_missing_posting(self, users):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                JobPostingRepository(session).set_active("missing", False)

    def test_list_by_employer(self, posting):
        with get_session() as session:
            repo = JobPostingRepository(session)
            repo.create(make_posting("J2", employer_id="E1", created_at=utc_now() + timedelta(hours=1)))
            repo.create(make_posting("J3", employer_id="E2"))

        with get_session() as session:
            ids = [p.id for p in JobPostingRepository(session).list_by_employer("E1")]

        assert ids == ["J2", "J1"]


class TestApplicationRepository:
    """Tests for application storage, the duplicate guard and guarded updates."""

    def test_create_and_lookup(self, posting):
        with get_session() as session:
            created = ApplicationRepository(session).create(_application(cover_letter="Hi"))

        with get_session() as session:
            repo = ApplicationRepository(session)
            by_id = repo.get_by_id(created.id)
            by_pair = repo.get_by_job_and_candidate("J1", "C1")

        assert by_id.id == by_pair.id == created.id
        assert by_id.status == ApplicationStatus.PENDING
        assert by_id.cover_letter == "Hi"

    def test_unique_job_candidate_pair(self, posting):
        """Test the database rejects a second application for the same pair."""
        with get_session() as session:
            ApplicationRepository(session).create(_application())

        with pytest.raises(DuplicateRecordError):
            with get_session() as session:
                ApplicationRepository(session).create(_application())

        with get_session() as session:
            assert len(ApplicationRepository(session).list_for_job("J1")) == 1

    def test_same_candidate_other_job_allowed(self, posting):
        with get_session() as session:
            JobPostingRepository(session).create(make_posting("J2", employer_id="E2"))
            repo = ApplicationRepository(session)
            repo.create(_application("J1"))
            repo.create(_application("J2"))

        with get_session() as session:
            assert len(ApplicationRepository(session).list_for_candidate("C1")) == 2

    def test_update_status(self, posting):
        """Test guarded update writes status, reviewer and time."""
        with get_session() as session:
            created = ApplicationRepository(session).create(_application(notes="keep me"))

        reviewed_at = utc_now()
        with get_session() as session:
            updated = ApplicationRepository(session).update_status(
                created.id,
                expected_status=ApplicationStatus.PENDING,
                new_status=ApplicationStatus.INTERVIEW,
                reviewed_at=reviewed_at,
                reviewed_by="E1",
            )

        assert updated.status == ApplicationStatus.INTERVIEW
        assert updated.reviewed_at == reviewed_at
        assert updated.reviewed_by == "E1"
        assert updated.notes == "keep me"

    def test_update_status_overwrites_notes_when_given(self, posting):
        with get_session() as session:
            created = ApplicationRepository(session).create(_application(notes="old"))

        with get_session() as session:
            updated = ApplicationRepository(session).update_status(
                created.id,
                ApplicationStatus.PENDING,
                ApplicationStatus.REVIEWING,
                utc_now(),
                "E1",
                notes="new",
            )

        assert updated.notes == "new"

    def test_update_status_stale(self, posting):
        """Test the update matches nothing when the expected status is outdated."""
        with get_session() as session:
            created = ApplicationRepository(session).create(_application())

        with pytest.raises(StaleRecordError):
            with get_session() as session:
                ApplicationRepository(session).update_status(
                    created.id,
                    expected_status=ApplicationStatus.REVIEWING,
                    new_status=ApplicationStatus.HIRED,
                    reviewed_at=utc_now(),
                    reviewed_by="E1",
                )

        with get_session() as session:
            assert ApplicationRepository(session).get_by_id(created.id).status == ApplicationStatus.PENDING

    def test_lists_newest_first(self, posting):
        start = utc_now()
        with get_session() as session:
            repo = ApplicationRepository(session)
            first = repo.create(_application(candidate_id="C1", applied_at=start))
            second = repo.create(_application(candidate_id="C2", applied_at=start + timedelta(seconds=1)))

        with get_session() as session:
            ids = [a.id for a in ApplicationRepository(session).list_for_job("J1")]

        assert ids == [second.id, first.id]

    def test_count_by_job(self, posting):
        with get_session() as session:
            JobPostingRepository(session).create(make_posting("J2", employer_id="E1"))
            repo = ApplicationRepository(session)
            repo.create(_application("J1", "C1"))
            repo.create(_application("J1", "C2"))
            repo.create(_application("J2", "C1"))

        with get_session() as session:
            repo = ApplicationRepository(session)
            assert repo.count_by_job(["J1", "J2", "J3"]) == {"J1": 2, "J2": 1}
            assert repo.count_by_job([]) == {}
