"""Job application pipeline workflow."""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import InvalidTransition
from app.models import JobApplication
from app.models.enums import ApplicationStatus
from app.models.session import atomic
from app.models.types import utcnow
from app.repositories import JobApplicationRepository, JobApplicationStatusHistoryRepository

logger = logging.getLogger(__name__)


class JobApplicationService:
    """Moves applications through the pipeline and keeps their history.

    The status change and its history row are written in one transaction:
    either both are stored or neither is.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._applications = JobApplicationRepository(session)
        self._history = JobApplicationStatusHistoryRepository(session)

    def submit(
        self,
        *,
        job_posting_id: uuid.UUID,
        candidate_id: uuid.UUID,
        cover_letter: str | None = None,
        changed_by: uuid.UUID | None = None,
    ) -> JobApplication:
        with atomic(self._session):
            application = self._applications.create(
                job_posting_id=job_posting_id,
                candidate_id=candidate_id,
                cover_letter=cover_letter,
                status=ApplicationStatus.APPLIED,
            )
            self._history.create(
                job_application_id=application.id,
                from_status=None,
                to_status=ApplicationStatus.APPLIED,
                notes="Application submitted",
                changed_by=changed_by,
            )
        return application

    def transition_status(
        self,
        application: JobApplication | uuid.UUID,
        new_status: ApplicationStatus | str,
        notes: str | None = None,
        *,
        changed_by: uuid.UUID | None = None,
        now: dt.datetime | None = None,
    ) -> JobApplication:
        """Move ``application`` to ``new_status``.

        Raises:
            InvalidTransition: If the pipeline does not allow the move.
            RecordNotFound: If the application is not visible to the tenant.
        """

        record_id = application.id if isinstance(application, JobApplication) else application
        record = self._applications.get(record_id)
        target = ApplicationStatus(new_status)
        current = record.status
        if not current.can_transition_to(target):
            raise InvalidTransition(current.value, target.value)

        values: dict[str, Any] = {"status": target}
        if target.timestamp_field:
            values[target.timestamp_field] = now or utcnow()
        if target is ApplicationStatus.REJECTED and notes:
            values["rejection_reason"] = notes

        with atomic(self._session):
            self._history.create(
                job_application_id=record.id,
                from_status=current,
                to_status=target,
                notes=notes,
                changed_by=changed_by,
            )
            self._applications.update(record.id, **values)

        logger.info(
            "Job application %s moved from %s to %s", record.id, current.value, target.value
        )
        return record


__all__ = ["JobApplicationService"]
