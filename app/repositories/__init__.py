"""Data-access repositories for tenant and platform entities."""

from .base import PlatformRepository, SoftDeleteRepository, TenantRepository, repository_for
from .organization import (
    AnnouncementRepository,
    DocumentCategoryRepository,
    DocumentRepository,
    EmployeeRepository,
)
from .performance import (
    DevelopmentPlanCheckInRepository,
    DevelopmentPlanRepository,
    GoalCommentRepository,
    GoalRepository,
    KpiAssignmentRepository,
    KpiProgressEntryRepository,
    KpiTemplateRepository,
)
from .platform import PlanModuleRepository, PlanRepository, TenantRegistry, UserRepository
from .recruitment import (
    BackgroundCheckDocumentRepository,
    BackgroundCheckRepository,
    CandidateEducationRepository,
    CandidateRepository,
    CandidateWorkExperienceRepository,
    InterviewPanelistRepository,
    InterviewRepository,
    JobApplicationRepository,
    JobApplicationStatusHistoryRepository,
    JobPostingRepository,
    OfferRepository,
    OfferSignatureRepository,
)

__all__ = [
    "AnnouncementRepository",
    "BackgroundCheckDocumentRepository",
    "BackgroundCheckRepository",
    "CandidateEducationRepository",
    "CandidateRepository",
    "CandidateWorkExperienceRepository",
    "DevelopmentPlanCheckInRepository",
    "DevelopmentPlanRepository",
    "DocumentCategoryRepository",
    "DocumentRepository",
    "EmployeeRepository",
    "GoalCommentRepository",
    "GoalRepository",
    "InterviewPanelistRepository",
    "InterviewRepository",
    "JobApplicationRepository",
    "JobApplicationStatusHistoryRepository",
    "JobPostingRepository",
    "KpiAssignmentRepository",
    "KpiProgressEntryRepository",
    "KpiTemplateRepository",
    "OfferRepository",
    "OfferSignatureRepository",
    "PlanModuleRepository",
    "PlanRepository",
    "PlatformRepository",
    "SoftDeleteRepository",
    "TenantRegistry",
    "TenantRepository",
    "UserRepository",
    "repository_for",
]
