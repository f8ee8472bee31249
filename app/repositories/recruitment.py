"""Repositories for the recruitment pipeline."""

from __future__ import annotations

import datetime as dt
import uuid

from app.models import (
    BackgroundCheck,
    BackgroundCheckDocument,
    Candidate,
    CandidateEducation,
    CandidateWorkExperience,
    Interview,
    InterviewPanelist,
    JobApplication,
    JobApplicationStatusHistory,
    JobPosting,
    Offer,
    OfferSignature,
)
from app.models.enums import ApplicationStatus
from app.models.scopes import Scope, published

from .base import TenantRepository


class JobPostingRepository(TenantRepository[JobPosting]):
    model = JobPosting

    def open_postings(self, now: dt.datetime | None = None, *scopes: Scope) -> list[JobPosting]:
        return self.list(
            published(JobPosting, now),
            *scopes,
            order_by=JobPosting.published_at.desc(),
        )


class CandidateRepository(TenantRepository[Candidate]):
    model = Candidate

    def find_by_email(self, email: str) -> Candidate | None:
        matches = self.list(email=email.strip(), limit=1)
        return matches[0] if matches else None


class CandidateEducationRepository(TenantRepository[CandidateEducation]):
    model = CandidateEducation


class CandidateWorkExperienceRepository(TenantRepository[CandidateWorkExperience]):
    model = CandidateWorkExperience


class JobApplicationRepository(TenantRepository[JobApplication]):
    model = JobApplication

    def for_posting(
        self, job_posting_id: uuid.UUID, status: ApplicationStatus | None = None
    ) -> list[JobApplication]:
        filters = {"job_posting_id": job_posting_id}
        if status is not None:
            filters["status"] = status
        return self.list(order_by=JobApplication.applied_at, **filters)


class JobApplicationStatusHistoryRepository(TenantRepository[JobApplicationStatusHistory]):
    model = JobApplicationStatusHistory

    def for_application(self, application_id: uuid.UUID) -> list[JobApplicationStatusHistory]:
        return self.list(job_application_id=application_id)


class InterviewRepository(TenantRepository[Interview]):
    model = Interview


class InterviewPanelistRepository(TenantRepository[InterviewPanelist]):
    model = InterviewPanelist


class OfferRepository(TenantRepository[Offer]):
    model = Offer


class OfferSignatureRepository(TenantRepository[OfferSignature]):
    model = OfferSignature


class BackgroundCheckRepository(TenantRepository[BackgroundCheck]):
    model = BackgroundCheck


class BackgroundCheckDocumentRepository(TenantRepository[BackgroundCheckDocument]):
    model = BackgroundCheckDocument


__all__ = [
    "BackgroundCheckDocumentRepository",
    "BackgroundCheckRepository",
    "CandidateEducationRepository",
    "CandidateRepository",
    "CandidateWorkExperienceRepository",
    "InterviewPanelistRepository",
    "InterviewRepository",
    "JobApplicationRepository",
    "JobApplicationStatusHistoryRepository",
    "JobPostingRepository",
    "OfferRepository",
    "OfferSignatureRepository",
]
