"""Recruitment pipeline entities, from job posting to signed offer."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .enums import (
    ApplicationStatus,
    BackgroundCheckStatus,
    EducationLevel,
    InterviewStatus,
    InterviewType,
    OfferStatus,
    SignerType,
)
from .mixins import PublicationWindow, TimestampMixin
from .organization import Employee
from .tenancy import TenantModel
from .types import DateOnly, EnumCodec, FixedDecimal, StrictBoolean, UTCDateTime, utcnow


class JobPosting(PublicationWindow, TimestampMixin, TenantModel):
    """Public vacancy; listed on the careers page while published."""

    __tablename__ = "job_postings"

    title: Mapped[str] = mapped_column(String(length=255), nullable=False)
    description: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    department: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    employment_type: Mapped[str | None] = mapped_column(String(length=64), nullable=True)
    salary_range_min: Mapped[Decimal | None] = mapped_column(FixedDecimal(15, 2), nullable=True)
    salary_range_max: Mapped[Decimal | None] = mapped_column(FixedDecimal(15, 2), nullable=True)
    is_remote: Mapped[bool] = mapped_column(StrictBoolean(), nullable=False, default=False)

    applications: Mapped[List["JobApplication"]] = relationship(back_populates="job_posting")


class Candidate(TimestampMixin, TenantModel):
    __tablename__ = "candidates"

    first_name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    email: Mapped[str] = mapped_column(String(length=320), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(length=64), nullable=True)
    source: Mapped[str | None] = mapped_column(String(length=64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    education: Mapped[List["CandidateEducation"]] = relationship(
        back_populates="candidate",
        order_by="CandidateEducation.end_date.desc()",
    )
    work_experiences: Mapped[List["CandidateWorkExperience"]] = relationship(
        back_populates="candidate",
        order_by="CandidateWorkExperience.start_date.desc()",
    )
    applications: Mapped[List["JobApplication"]] = relationship(back_populates="candidate")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class CandidateEducation(TimestampMixin, TenantModel):
    __tablename__ = "candidate_educations"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    institution: Mapped[str] = mapped_column(String(length=255), nullable=False)
    education_level: Mapped[EducationLevel] = mapped_column(
        EnumCodec(EducationLevel), nullable=False
    )
    field_of_study: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    start_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    end_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)

    candidate: Mapped[Candidate] = relationship(back_populates="education")


class CandidateWorkExperience(TimestampMixin, TenantModel):
    __tablename__ = "candidate_work_experiences"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    company: Mapped[str] = mapped_column(String(length=255), nullable=False)
    job_title: Mapped[str] = mapped_column(String(length=255), nullable=False)
    start_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    end_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    is_current: Mapped[bool] = mapped_column(StrictBoolean(), nullable=False, default=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)

    candidate: Mapped[Candidate] = relationship(back_populates="work_experiences")


class JobApplication(TimestampMixin, TenantModel):
    """A candidate's application to one posting.

    ``status`` only moves along :meth:`ApplicationStatus.allowed_transitions`;
    every move is recorded in :class:`JobApplicationStatusHistory` and stamps
    the matching ``*_at`` column.
    """

    __tablename__ = "job_applications"

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("job_postings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        EnumCodec(ApplicationStatus),
        nullable=False,
        default=ApplicationStatus.APPLIED,
    )
    cover_letter: Mapped[str | None] = mapped_column(Text(), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)
    applied_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    screening_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    interview_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    assessment_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    offer_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    hired_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    rejected_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    withdrawn_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    job_posting: Mapped[JobPosting] = relationship(back_populates="applications")
    candidate: Mapped[Candidate] = relationship(back_populates="applications")
    status_histories: Mapped[List["JobApplicationStatusHistory"]] = relationship(
        back_populates="job_application",
        order_by="JobApplicationStatusHistory.created_at",
    )
    interviews: Mapped[List["Interview"]] = relationship(
        back_populates="job_application",
        order_by="Interview.scheduled_at",
    )
    offers: Mapped[List["Offer"]] = relationship(back_populates="job_application")
    background_checks: Mapped[List["BackgroundCheck"]] = relationship(
        back_populates="job_application"
    )


class JobApplicationStatusHistory(TimestampMixin, TenantModel):
    """Append-only log of pipeline moves."""

    __tablename__ = "job_application_status_histories"

    job_application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("job_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status: Mapped[ApplicationStatus | None] = mapped_column(
        EnumCodec(ApplicationStatus), nullable=True
    )
    to_status: Mapped[ApplicationStatus] = mapped_column(
        EnumCodec(ApplicationStatus), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)
    changed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    job_application: Mapped[JobApplication] = relationship(back_populates="status_histories")


class Interview(TimestampMixin, TenantModel):
    __tablename__ = "interviews"

    job_application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("job_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    interview_type: Mapped[InterviewType] = mapped_column(
        EnumCodec(InterviewType), nullable=False
    )
    status: Mapped[InterviewStatus] = mapped_column(
        EnumCodec(InterviewStatus), nullable=False, default=InterviewStatus.SCHEDULED
    )
    scheduled_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer(), nullable=False, default=60)
    location: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    meeting_url: Mapped[str | None] = mapped_column(String(length=1024), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    job_application: Mapped[JobApplication] = relationship(back_populates="interviews")
    panelists: Mapped[List["InterviewPanelist"]] = relationship(back_populates="interview")


class InterviewPanelist(TimestampMixin, TenantModel):
    __tablename__ = "interview_panelists"

    interview_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("interviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_lead: Mapped[bool] = mapped_column(StrictBoolean(), nullable=False, default=False)
    rating: Mapped[int | None] = mapped_column(Integer(), nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text(), nullable=True)
    feedback_submitted_at: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )

    interview: Mapped[Interview] = relationship(back_populates="panelists")
    employee: Mapped[Employee] = relationship()


class Offer(TimestampMixin, TenantModel):
    """Employment offer letter and its lifecycle timestamps."""

    __tablename__ = "offers"

    job_application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("job_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[OfferStatus] = mapped_column(
        EnumCodec(OfferStatus), nullable=False, default=OfferStatus.DRAFT
    )
    content: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    position_title: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    salary: Mapped[Decimal | None] = mapped_column(FixedDecimal(15, 2), nullable=True)
    salary_currency: Mapped[str] = mapped_column(String(length=3), nullable=False, default="PHP")
    salary_frequency: Mapped[str | None] = mapped_column(String(length=32), nullable=True)
    start_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    expiry_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    sent_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    viewed_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    accepted_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    declined_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    revoked_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    decline_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)
    revoke_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    revoked_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    job_application: Mapped[JobApplication] = relationship(back_populates="offers")
    signatures: Mapped[List["OfferSignature"]] = relationship(
        back_populates="offer",
        order_by="OfferSignature.signed_at",
    )


class OfferSignature(TimestampMixin, TenantModel):
    __tablename__ = "offer_signatures"

    offer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    signer_type: Mapped[SignerType] = mapped_column(EnumCodec(SignerType), nullable=False)
    signer_name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    signer_email: Mapped[str] = mapped_column(String(length=320), nullable=False)
    signature_data: Mapped[str] = mapped_column(Text(), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(length=45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(length=512), nullable=True)
    signed_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    offer: Mapped[Offer] = relationship(back_populates="signatures")


class BackgroundCheck(TimestampMixin, TenantModel):
    __tablename__ = "background_checks"

    job_application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("job_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    check_type: Mapped[str] = mapped_column(String(length=64), nullable=False)
    provider: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    status: Mapped[BackgroundCheckStatus] = mapped_column(
        EnumCodec(BackgroundCheckStatus),
        nullable=False,
        default=BackgroundCheckStatus.PENDING,
    )
    started_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    completed_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    job_application: Mapped[JobApplication] = relationship(back_populates="background_checks")
    documents: Mapped[List["BackgroundCheckDocument"]] = relationship(
        back_populates="background_check"
    )


class BackgroundCheckDocument(TimestampMixin, TenantModel):
    __tablename__ = "background_check_documents"

    background_check_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("background_checks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(length=1024), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(length=128), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer(), nullable=True)
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    background_check: Mapped[BackgroundCheck] = relationship(back_populates="documents")


__all__ = [
    "BackgroundCheck",
    "BackgroundCheckDocument",
    "Candidate",
    "CandidateEducation",
    "CandidateWorkExperience",
    "Interview",
    "InterviewPanelist",
    "JobApplication",
    "JobApplicationStatusHistory",
    "JobPosting",
    "Offer",
    "OfferSignature",
]
