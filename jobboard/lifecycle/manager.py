"""Application lifecycle manager.

Owns every change to an application's status and the side effects that go
with it. Each operation runs in one database transaction; notifications are
built inside that transaction and delivered only after it commits, so a mail
failure can never undo or fail a persisted change.
"""

import contextvars
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union

from jobboard.config.models import LifecycleConfig
from jobboard.domain.models import (
    Application,
    ApplicationStatus,
    JobPosting,
    Requester,
    UserAccount,
    UserRole,
)
from jobboard.errors import (
    ConcurrentModification,
    DeadlinePassed,
    DuplicateSubmission,
    Forbidden,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from jobboard.logging import get_logger
from jobboard.logging.context import log_context
from jobboard.notifications.dispatcher import NotificationDispatcher
from jobboard.notifications.models import DeliveryOutcome, DeliveryResult, NotificationError
from jobboard.persistence.database import get_session
from jobboard.persistence.exceptions import (
    DuplicateRecordError,
    RecordExcludedError,
    RecordNotFoundError,
    StaleRecordError,
)
from jobboard.persistence.repositories import (
    ApplicationRepository,
    JobPostingRepository,
    UserRepository,
)
from jobboard.utils.timestamps import utc_now

from . import notices
from .notices import Notice

logger = get_logger(__name__, component="lifecycle")

SessionFactory = Callable[[], AbstractContextManager]


@dataclass
class EmployerStats:
    """Dashboard figures for one employer."""

    total_jobs: int
    active_jobs: int
    inactive_jobs: int
    total_applications: int


def create_notification_executor(config: LifecycleConfig) -> Optional[ThreadPoolExecutor]:
    """Thread pool for background delivery, or None to send inline.

    The caller owns the pool and shuts it down.
    """
    if config.notification_workers <= 0:
        return None
    return ThreadPoolExecutor(
        max_workers=config.notification_workers, thread_name_prefix="jobboard-notify"
    )


class ApplicationLifecycleManager:
    """Submits applications and moves them through the status workflow.

    States: pending, reviewing, shortlisted, interview, rejected, hired.
    hired and rejected are terminal; every other state may move to any state,
    including itself.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        session_factory: SessionFactory = get_session,
        lifecycle_config: Optional[LifecycleConfig] = None,
        executor: Optional[Executor] = None,
        on_notification: Optional[Callable[[DeliveryResult], None]] = None,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize manager.

        Args:
            dispatcher: Notification dispatcher used after commit
            session_factory: Context manager factory yielding a Session that
                commits on success and rolls back on error
            lifecycle_config: Length limits (defaults if None)
            executor: Runs deliveries in the background; inline if None
            on_notification: Called with every DeliveryResult, including failures
            clock: Source of the current UTC time
            logger_instance: Logger instance (uses module logger if None)
        """
        self.dispatcher = dispatcher
        self.session_factory = session_factory
        self.config = lifecycle_config or LifecycleConfig()
        self.executor = executor
        self.on_notification = on_notification
        self.clock = clock
        self.logger = logger_instance or logger

    def submit(
        self,
        job_id: str,
        candidate_id: str,
        resume: str,
        cover_letter: Optional[str] = None,
    ) -> Application:
        """Create a pending application and bump the posting's counter.

        Returns:
            The persisted Application with its id populated

        Raises:
            ValidationError: Blank resume or cover letter over the limit
            NotFound: Posting or candidate missing, or posting inactive
            Forbidden: The candidate account is not a candidate
            DeadlinePassed: The posting's deadline is in the past
            DuplicateSubmission: The candidate already applied to the posting
        """
        if resume is None or not resume.strip():
            raise ValidationError("Resume is required", reason="resume_required")
        if cover_letter is not None and len(cover_letter) > self.config.cover_letter_max_length:
            raise ValidationError(
                f"Cover letter cannot exceed {self.config.cover_letter_max_length} characters",
                reason="cover_letter_too_long",
            )

        with log_context(job_id=job_id, candidate_id=candidate_id):
            now = self.clock()

            with self.session_factory() as session:
                postings = JobPostingRepository(session)
                applications = ApplicationRepository(session)
                users = UserRepository(session)

                posting = self._active_posting(postings, job_id)
                if not posting.is_open_at(now):
                    raise DeadlinePassed(
                        f"Application deadline for job {job_id} has passed",
                        reason="deadline_passed",
                    )

                if applications.get_by_job_and_candidate(job_id, candidate_id) is not None:
                    raise DuplicateSubmission(
                        "You have already applied to this job", reason="pre_check"
                    )

                candidate = users.get_by_id(candidate_id)
                if candidate is None:
                    raise NotFound(f"Candidate {candidate_id} not found", reason="candidate_missing")
                if candidate.role != UserRole.CANDIDATE:
                    raise Forbidden("Only candidates can apply to jobs", reason="not_a_candidate")

                try:
                    application = applications.create(
                        Application(
                            job_id=job_id,
                            candidate_id=candidate_id,
                            resume=resume,
                            cover_letter=cover_letter,
                            status=ApplicationStatus.PENDING,
                            applied_at=now,
                        )
                    )
                except DuplicateRecordError as e:
                    raise DuplicateSubmission(
                        "You have already applied to this job", reason="unique_constraint"
                    ) from e

                postings.increment_counter(job_id, "applications_count")

                employer = users.get_by_id(posting.employer_id)
                pending = self._submission_notices(application, posting, candidate, employer)

            self.logger.info(
                f"Application {application.id} submitted for job {job_id}",
                extra={"event": "application.submitted", "application_id": application.id},
            )

        self._dispatch(pending)
        return application

    def transition(
        self,
        application_id: str,
        requester: Requester,
        new_status: Union[ApplicationStatus, str],
        notes: Optional[str] = None,
    ) -> Application:
        """Move an application to ``new_status``.

        Records the review time and reviewer. Notes are trimmed and stored
        only when non-blank; otherwise earlier notes stay.

        Raises:
            ValidationError: Unknown status or notes over the limit
            NotFound: The application does not exist
            Forbidden: Requester neither owns the posting nor is an admin
            InvalidTransition: The application is hired or rejected
            ConcurrentModification: The status changed during the transition
        """
        status = self._parse_status(new_status)
        if notes is not None:
            # Blank notes count as not provided
            notes = notes.strip() or None
        if notes is not None and len(notes) > self.config.notes_max_length:
            raise ValidationError(
                f"Notes cannot exceed {self.config.notes_max_length} characters",
                reason="notes_too_long",
            )

        with log_context(application_id=application_id, requester_id=requester.user_id):
            now = self.clock()

            with self.session_factory() as session:
                postings = JobPostingRepository(session)
                applications = ApplicationRepository(session)
                users = UserRepository(session)

                application = applications.get_by_id(application_id)
                if application is None:
                    raise NotFound(f"Application {application_id} not found")

                posting = postings.get_by_id(application.job_id)
                if posting is None:
                    raise NotFound(f"Job posting {application.job_id} not found")

                if not (requester.is_admin or posting.employer_id == requester.user_id):
                    raise Forbidden(
                        "Not authorized to update this application", reason="not_posting_owner"
                    )

                if application.is_terminal:
                    raise InvalidTransition(
                        f"Application is already {application.status.value} and cannot change",
                        reason="terminal_state",
                    )

                try:
                    updated = applications.update_status(
                        application_id,
                        expected_status=application.status,
                        new_status=status,
                        reviewed_at=now,
                        reviewed_by=requester.user_id,
                        notes=notes,
                    )
                except StaleRecordError as e:
                    raise ConcurrentModification(
                        "Application status changed during the update; reload and retry",
                        reason="stale_status",
                    ) from e

                candidate = users.get_by_id(application.candidate_id)
                employer = users.get_by_id(posting.employer_id)
                pending = []
                if candidate is not None and employer is not None:
                    pending.append(notices.status_update(updated, posting, candidate, employer, notes))
                else:
                    self.logger.warning(
                        "Skipping status-update notification: user record missing",
                        extra={"event": "notification.skip", "reason": "user_missing"},
                    )

            self.logger.info(
                f"Application {application_id} moved from {application.status.value} to {status.value}",
                extra={
                    "event": "application.transitioned",
                    "from_status": application.status.value,
                    "to_status": status.value,
                },
            )

        self._dispatch(pending)
        return updated

    def get(self, application_id: str, requester: Requester) -> Application:
        """Read an application as its candidate, the owning employer or an admin.

        Raises:
            NotFound: The application does not exist
            Forbidden: Requester has no claim on the application
        """
        with self.session_factory() as session:
            application = ApplicationRepository(session).get_by_id(application_id)
            if application is None:
                raise NotFound(f"Application {application_id} not found")

            if requester.is_admin or application.candidate_id == requester.user_id:
                return application

            posting = JobPostingRepository(session).get_by_id(application.job_id)
            if posting is not None and posting.employer_id == requester.user_id:
                return application

        raise Forbidden("Not authorized to view this application", reason="not_a_party")

    def list_for_candidate(self, candidate_id: str) -> List[Application]:
        """A candidate's applications, newest first."""
        with self.session_factory() as session:
            return ApplicationRepository(session).list_for_candidate(candidate_id)

    def list_for_job(self, job_id: str, requester: Requester) -> List[Application]:
        """Applications to a posting, for its employer or an admin.

        Raises:
            NotFound: The posting does not exist
            Forbidden: Requester neither owns the posting nor is an admin
        """
        with self.session_factory() as session:
            posting = JobPostingRepository(session).get_by_id(job_id)
            if posting is None:
                raise NotFound(f"Job posting {job_id} not found")
            if not (requester.is_admin or posting.employer_id == requester.user_id):
                raise Forbidden("Not authorized to view these applications", reason="not_posting_owner")
            return ApplicationRepository(session).list_for_job(job_id)

    def record_view(self, job_id: str) -> None:
        """Count one detail view of an active posting.

        Raises:
            NotFound: The posting is missing or inactive
        """
        with self.session_factory() as session:
            postings = JobPostingRepository(session)
            self._active_posting(postings, job_id)
            postings.increment_counter(job_id, "views")

    def employer_stats(self, employer_id: str) -> EmployerStats:
        """Posting and application totals across one employer's postings."""
        with self.session_factory() as session:
            postings = JobPostingRepository(session).list_by_employer(employer_id)
            counts = ApplicationRepository(session).count_by_job([p.id for p in postings])

        active = sum(1 for posting in postings if posting.is_active)
        return EmployerStats(
            total_jobs=len(postings),
            active_jobs=active,
            inactive_jobs=len(postings) - active,
            total_applications=sum(counts.values()),
        )

    @staticmethod
    def _active_posting(postings: JobPostingRepository, job_id: str) -> JobPosting:
        try:
            return postings.get_active(job_id)
        except RecordNotFoundError as e:
            raise NotFound(f"Job posting {job_id} not found", reason="posting_missing") from e
        except RecordExcludedError as e:
            raise NotFound(
                f"Job posting {job_id} is no longer accepting applications",
                reason="posting_inactive",
            ) from e

    @staticmethod
    def _parse_status(value: Union[ApplicationStatus, str]) -> ApplicationStatus:
        try:
            return ApplicationStatus(value)
        except ValueError as e:
            allowed = ", ".join(s.value for s in ApplicationStatus)
            raise ValidationError(
                f"Invalid status: {value}. Must be one of: {allowed}", reason="unknown_status"
            ) from e

    def _submission_notices(
        self,
        application: Application,
        posting: JobPosting,
        candidate: UserAccount,
        employer: Optional[UserAccount],
    ) -> List[Notice]:
        if employer is None:
            self.logger.warning(
                f"Employer {posting.employer_id} not found; skipping submission notifications",
                extra={"event": "notification.skip", "reason": "user_missing"},
            )
            return []
        return [
            notices.application_confirmation(application, posting, candidate, employer),
            notices.employer_new_application(application, posting, candidate, employer),
        ]

    def _dispatch(self, pending: List[Notice]) -> None:
        """Hand notices to the executor, or deliver them inline."""
        for notice in pending:
            if self.executor is None:
                self._deliver(notice)
                continue

            context = contextvars.copy_context()
            try:
                self.executor.submit(context.run, self._deliver, notice)
            except RuntimeError as e:
                # Executor already shut down
                self.logger.warning(
                    f"Notification executor unavailable ({e}); delivering inline",
                    extra={"event": "notification.executor_unavailable"},
                )
                self._deliver(notice)

    def _deliver(self, notice: Notice) -> None:
        """Send one notice; every failure is logged and reported, never raised."""
        try:
            result = self.dispatcher.notify(notice.kind, notice.recipient, notice.template_data)
        except NotificationError as e:
            result = e.result or self._failed_result(notice, e.message)
            self.logger.warning(
                f"Notification {notice.kind.value} to {notice.recipient} not delivered: {e.message}",
                extra={"event": "notification.best_effort_failure", "error_code": e.code},
            )
        except Exception as e:
            result = self._failed_result(notice, str(e))
            self.logger.error(
                f"Unexpected error delivering {notice.kind.value} to {notice.recipient}: {e}",
                exc_info=True,
                extra={"event": "notification.best_effort_failure", "error_type": type(e).__name__},
            )

        if self.on_notification is None:
            return
        try:
            self.on_notification(result)
        except Exception as e:
            self.logger.error(f"on_notification callback failed: {e}", exc_info=True)

    @staticmethod
    def _failed_result(notice: Notice, error: str) -> DeliveryResult:
        return DeliveryResult(
            kind=notice.kind.value,
            recipient=notice.recipient,
            outcome=DeliveryOutcome.FAILED.value,
            error=error,
        )
