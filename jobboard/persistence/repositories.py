"""Data access layer (repositories) for persistence operations.

Repositories wrap a caller-owned session and return domain models. They
flush but never commit; the caller's ``get_session()`` block decides the
transaction boundary so an application insert and its counter increment land
together or not at all.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobboard.domain.models import (
    Application,
    ApplicationStatus,
    JobPosting,
    UserAccount,
)
from jobboard.utils.timestamps import utc_now

from .exceptions import (
    DataIntegrityError,
    DuplicateRecordError,
    PersistenceError,
    RecordExcludedError,
    RecordNotFoundError,
    StaleRecordError,
)
from .schema import (
    ApplicationModel,
    JobPostingModel,
    UserModel,
    _format_datetime,
)

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Generate a record identifier."""
    return uuid4().hex


def _is_pair_violation(error: IntegrityError) -> bool:
    # SQLite names the columns, PostgreSQL names the constraint
    message = str(error.orig)
    return (
        "uq_applications_job_candidate" in message
        or "applications.job_id, applications.candidate_id" in message
    )


class UserRepository:
    """Repository for user contact records."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: str) -> Optional[UserAccount]:
        """Retrieve a user, or None if missing.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            user_model = self.session.get(UserModel, user_id)
            return user_model.to_domain() if user_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve user: {e}") from e

    def create(self, user: UserAccount) -> UserAccount:
        """Insert a user, assigning an id when none is set.

        Raises:
            DuplicateRecordError: If the email or id is already taken
            PersistenceError: If database error occurs
        """
        try:
            user_model = UserModel.from_domain(user)
            user_model.id = user.id or new_id()
            self.session.add(user_model)
            self.session.flush()
            return user_model.to_domain()
        except IntegrityError as e:
            raise DuplicateRecordError(f"User {user.email} already exists: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating user {user.email}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create user: {e}") from e


class JobPostingRepository:
    """Repository for job posting operations."""

    COUNTER_FIELDS = ("applications_count", "views")

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, job_id: str) -> Optional[JobPosting]:
        """Retrieve a posting regardless of its active flag, or None if missing.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            posting_model = self.session.get(JobPostingModel, job_id)
            return posting_model.to_domain() if posting_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job posting {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job posting: {e}") from e

    def get_active(self, job_id: str) -> JobPosting:
        """Retrieve a posting that must exist and be active.

        Raises:
            RecordNotFoundError: If no posting has this id
            RecordExcludedError: If the posting exists but is inactive
            PersistenceError: If database error occurs
        """
        posting = self.get_by_id(job_id)
        if posting is None:
            raise RecordNotFoundError(f"Job posting {job_id} not found")
        if not posting.is_active:
            raise RecordExcludedError(f"Job posting {job_id} is no longer active")
        return posting

    def create(self, posting: JobPosting) -> JobPosting:
        """Insert a posting. Counters always start at zero.

        Raises:
            DataIntegrityError: If a constraint is violated (e.g. unknown employer)
            PersistenceError: If database error occurs
        """
        try:
            posting_model = JobPostingModel.from_domain(posting)
            posting_model.id = posting.id or new_id()
            posting_model.created_at = _format_datetime(posting.created_at or utc_now())
            posting_model.applications_count = 0
            posting_model.views = 0
            self.session.add(posting_model)
            self.session.flush()
            return posting_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error creating job posting: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create job posting: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating job posting: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create job posting: {e}") from e

    def increment_counter(self, job_id: str, field: str, amount: int = 1) -> None:
        """Atomically add ``amount`` to a counter column.

        Issues ``UPDATE ... SET field = field + :amount`` so concurrent
        increments never lose updates.

        Raises:
            ValueError: If field is not a counter column
            RecordNotFoundError: If no posting has this id
            PersistenceError: If database error occurs
        """
        if field not in self.COUNTER_FIELDS:
            raise ValueError(f"Unknown counter field: {field}")

        try:
            column = getattr(JobPostingModel, field)
            stmt = (
                update(JobPostingModel)
                .where(JobPostingModel.id == job_id)
                .values({column: column + amount})
                .execution_options(synchronize_session=False)
            )
            result = self.session.execute(stmt)
            self.session.flush()
            self.session.expire_all()
        except SQLAlchemyError as e:
            logger.error(f"Error incrementing {field} for job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to increment {field}: {e}") from e

        if result.rowcount == 0:
            raise RecordNotFoundError(f"Job posting {job_id} not found")

    def set_active(self, job_id: str, is_active: bool) -> None:
        """Retire or reopen a posting. Postings are never hard-deleted.

        Raises:
            RecordNotFoundError: If no posting has this id
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                update(JobPostingModel)
                .where(JobPostingModel.id == job_id)
                .values(is_active=is_active)
                .execution_options(synchronize_session=False)
            )
            result = self.session.execute(stmt)
            self.session.flush()
            self.session.expire_all()
        except SQLAlchemyError as e:
            logger.error(f"Error updating active flag for job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update job posting: {e}") from e

        if result.rowcount == 0:
            raise RecordNotFoundError(f"Job posting {job_id} not found")

    def list_by_employer(self, employer_id: str) -> List[JobPosting]:
        """All postings of an employer, newest first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(JobPostingModel)
                .where(JobPostingModel.employer_id == employer_id)
                .order_by(JobPostingModel.created_at.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing postings for employer {employer_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list job postings: {e}") from e


class ApplicationRepository:
    """Repository for application records."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, application_id: str) -> Optional[Application]:
        """Retrieve an application, or None if missing.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            application_model = self.session.get(ApplicationModel, application_id)
            return application_model.to_domain() if application_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving application {application_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve application: {e}") from e

    def get_by_job_and_candidate(self, job_id: str, candidate_id: str) -> Optional[Application]:
        """Point lookup on the unique (job, candidate) pair.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(ApplicationModel).where(
                ApplicationModel.job_id == job_id,
                ApplicationModel.candidate_id == candidate_id,
            )
            application_model = self.session.execute(stmt).scalar_one_or_none()
            return application_model.to_domain() if application_model else None
        except SQLAlchemyError as e:
            logger.error(
                f"Error looking up application for job {job_id}, candidate {candidate_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to look up application: {e}") from e

    def create(self, application: Application) -> Application:
        """Insert an application, assigning an id when none is set.

        Raises:
            DuplicateRecordError: If the candidate already applied to the job
            DataIntegrityError: If another constraint is violated
            PersistenceError: If database error occurs
        """
        try:
            application_model = ApplicationModel.from_domain(application)
            application_model.id = application.id or new_id()
            self.session.add(application_model)
            self.session.flush()
            return application_model.to_domain()
        except IntegrityError as e:
            if _is_pair_violation(e):
                logger.info(
                    f"Duplicate application for job {application.job_id}, "
                    f"candidate {application.candidate_id} rejected by constraint"
                )
                raise DuplicateRecordError(
                    f"Candidate {application.candidate_id} already applied to job {application.job_id}"
                ) from e
            logger.error(f"Integrity error creating application: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create application: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating application: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create application: {e}") from e

    def update_status(
        self,
        application_id: str,
        expected_status: ApplicationStatus,
        new_status: ApplicationStatus,
        reviewed_at: datetime,
        reviewed_by: str,
        notes: Optional[str] = None,
    ) -> Application:
        """Change status only if it still equals ``expected_status``.

        Notes are written only when provided; otherwise prior notes stay.

        Raises:
            StaleRecordError: If the status changed since it was read
            PersistenceError: If database error occurs
        """
        values = {
            "status": new_status.value,
            "reviewed_at": _format_datetime(reviewed_at),
            "reviewed_by": reviewed_by,
        }
        if notes is not None:
            values["notes"] = notes

        try:
            stmt = (
                update(ApplicationModel)
                .where(
                    ApplicationModel.id == application_id,
                    ApplicationModel.status == expected_status.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = self.session.execute(stmt)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error updating status of application {application_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update application status: {e}") from e

        if result.rowcount == 0:
            raise StaleRecordError(
                f"Application {application_id} is no longer in status {expected_status.value}"
            )

        # Re-read past the identity map so the returned record reflects the UPDATE
        self.session.expire_all()
        return self.get_by_id(application_id)

    def list_for_candidate(self, candidate_id: str) -> List[Application]:
        """A candidate's applications, newest first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(ApplicationModel)
                .where(ApplicationModel.candidate_id == candidate_id)
                .order_by(ApplicationModel.applied_at.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing applications for candidate {candidate_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list applications: {e}") from e

    def list_for_job(self, job_id: str) -> List[Application]:
        """Applications to a posting, newest first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(ApplicationModel)
                .where(ApplicationModel.job_id == job_id)
                .order_by(ApplicationModel.applied_at.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing applications for job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list applications: {e}") from e

    def count_by_job(self, job_ids: List[str]) -> Dict[str, int]:
        """Number of applications per posting id (postings without any are omitted).

        Raises:
            PersistenceError: If database error occurs
        """
        if not job_ids:
            return {}

        try:
            stmt = (
                select(ApplicationModel.job_id, func.count(ApplicationModel.id))
                .where(ApplicationModel.job_id.in_(job_ids))
                .group_by(ApplicationModel.job_id)
            )
            return {job_id: count for job_id, count in self.session.execute(stmt).all()}
        except SQLAlchemyError as e:
            logger.error(f"Error counting applications: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count applications: {e}") from e
