"""SQLAlchemy declarative bases and the HR entity catalogue.

Two independent declarative bases keep the stores apart:

``Base``
    Tenant store. Concrete entities derive from
    :class:`~app.models.tenancy.TenantModel`, which carries ``tenant_id``
    and is scoped automatically by :class:`~app.models.tenancy.TenantSession`.

``PlatformBase``
    Platform store (tenant registry, plans, plan modules, users). These
    tables never carry ``tenant_id`` and are read through a plain session
    bound to the platform connection.

Because the bases have separate metadata and registries, a platform entity
cannot take part in tenant scoping and a tenant entity cannot be mapped onto
the platform connection.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all tenant-store declarative models."""


class PlatformBase(DeclarativeBase):
    """Base class for tenant-independent platform models."""


# Re-export the catalogue so callers can write ``from app.models import Goal``.
from .tenancy import TenantModel, TenantSession
from .organization import Announcement, Document, DocumentCategory, Employee
from .performance import (
    DevelopmentPlan,
    DevelopmentPlanCheckIn,
    Goal,
    GoalComment,
    KpiAssignment,
    KpiProgressEntry,
    KpiTemplate,
)
from .recruitment import (
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
from .platform import Plan, PlanModule, Tenant, User


__all__ = [
    "Announcement",
    "BackgroundCheck",
    "BackgroundCheckDocument",
    "Base",
    "Candidate",
    "CandidateEducation",
    "CandidateWorkExperience",
    "DevelopmentPlan",
    "DevelopmentPlanCheckIn",
    "Document",
    "DocumentCategory",
    "Employee",
    "Goal",
    "GoalComment",
    "Interview",
    "InterviewPanelist",
    "JobApplication",
    "JobApplicationStatusHistory",
    "JobPosting",
    "KpiAssignment",
    "KpiProgressEntry",
    "KpiTemplate",
    "Offer",
    "OfferSignature",
    "Plan",
    "PlanModule",
    "PlatformBase",
    "Tenant",
    "TenantModel",
    "TenantSession",
    "User",
]
