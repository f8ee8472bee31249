"""Closed value sets stored in enumeration columns.

Members are stored by ``value`` through :class:`~app.models.types.EnumCodec`;
a stored string outside the set fails the load with ``DecodeError``.
"""

from __future__ import annotations

import enum

__all__ = [
    "ApplicationStatus",
    "BackgroundCheckStatus",
    "DevelopmentPlanStatus",
    "EducationLevel",
    "EmploymentStatus",
    "GoalPriority",
    "GoalStatus",
    "GoalType",
    "GoalVisibility",
    "InterviewStatus",
    "InterviewType",
    "KpiAssignmentStatus",
    "Module",
    "OfferStatus",
    "SignerType",
]


class EducationLevel(str, enum.Enum):
    HIGH_SCHOOL = "high_school"
    VOCATIONAL = "vocational"
    ASSOCIATE = "associate"
    BACHELOR = "bachelor"
    MASTER = "master"
    DOCTORATE = "doctorate"


class EmploymentStatus(str, enum.Enum):
    PROBATIONARY = "probationary"
    REGULAR = "regular"
    RESIGNED = "resigned"
    TERMINATED = "terminated"


class ApplicationStatus(str, enum.Enum):
    """Pipeline stage of a job application."""

    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    ASSESSMENT = "assessment"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"

    def allowed_transitions(self) -> tuple["ApplicationStatus", ...]:
        return _APPLICATION_TRANSITIONS[self]

    def can_transition_to(self, target: "ApplicationStatus") -> bool:
        return target in _APPLICATION_TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not _APPLICATION_TRANSITIONS[self]

    @property
    def timestamp_field(self) -> str | None:
        """Name of the ``JobApplication`` column stamped on entering this stage."""

        return _APPLICATION_TIMESTAMPS.get(self)


_APPLICATION_TRANSITIONS: dict[ApplicationStatus, tuple[ApplicationStatus, ...]] = {
    ApplicationStatus.APPLIED: (
        ApplicationStatus.SCREENING,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ),
    ApplicationStatus.SCREENING: (
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ),
    ApplicationStatus.INTERVIEW: (
        ApplicationStatus.ASSESSMENT,
        ApplicationStatus.OFFER,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ),
    ApplicationStatus.ASSESSMENT: (
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.OFFER,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ),
    ApplicationStatus.OFFER: (
        ApplicationStatus.HIRED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ),
    ApplicationStatus.HIRED: (),
    ApplicationStatus.REJECTED: (),
    ApplicationStatus.WITHDRAWN: (),
}

_APPLICATION_TIMESTAMPS: dict[ApplicationStatus, str] = {
    ApplicationStatus.SCREENING: "screening_at",
    ApplicationStatus.INTERVIEW: "interview_at",
    ApplicationStatus.ASSESSMENT: "assessment_at",
    ApplicationStatus.OFFER: "offer_at",
    ApplicationStatus.HIRED: "hired_at",
    ApplicationStatus.REJECTED: "rejected_at",
    ApplicationStatus.WITHDRAWN: "withdrawn_at",
}


class OfferStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    REVOKED = "revoked"

    def allowed_transitions(self) -> tuple["OfferStatus", ...]:
        return _OFFER_TRANSITIONS[self]

    def can_transition_to(self, target: "OfferStatus") -> bool:
        return target in _OFFER_TRANSITIONS[self]


_OFFER_TRANSITIONS: dict[OfferStatus, tuple[OfferStatus, ...]] = {
    OfferStatus.DRAFT: (OfferStatus.SENT, OfferStatus.REVOKED),
    OfferStatus.SENT: (
        OfferStatus.VIEWED,
        OfferStatus.ACCEPTED,
        OfferStatus.DECLINED,
        OfferStatus.REVOKED,
    ),
    OfferStatus.VIEWED: (
        OfferStatus.ACCEPTED,
        OfferStatus.DECLINED,
        OfferStatus.REVOKED,
    ),
    OfferStatus.ACCEPTED: (),
    OfferStatus.DECLINED: (),
    OfferStatus.REVOKED: (),
}


class SignerType(str, enum.Enum):
    CANDIDATE = "candidate"
    EMPLOYER = "employer"


class InterviewType(str, enum.Enum):
    PHONE_SCREEN = "phone_screen"
    VIDEO_INTERVIEW = "video_interview"
    IN_PERSON = "in_person"
    PANEL_INTERVIEW = "panel_interview"
    TECHNICAL_ASSESSMENT = "technical_assessment"


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class BackgroundCheckStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    CLEARED = "cleared"
    FLAGGED = "flagged"


class GoalType(str, enum.Enum):
    OKR_OBJECTIVE = "okr_objective"
    SMART_GOAL = "smart_goal"


class GoalStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GoalPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class GoalVisibility(str, enum.Enum):
    PRIVATE = "private"
    TEAM = "team"
    ORGANIZATION = "organization"


class DevelopmentPlanStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class KpiAssignmentStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Module(str, enum.Enum):
    """Feature modules a subscription plan can unlock."""

    HR_CORE = "hr_core"
    TIME_ATTENDANCE = "time_attendance"
    LEAVE = "leave"
    PAYROLL = "payroll"
    RECRUITMENT = "recruitment"
    PERFORMANCE = "performance"
    TRAINING = "training"
    COMPLIANCE = "compliance"
