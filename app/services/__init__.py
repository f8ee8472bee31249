"""Multi-step workflows that span several tenant entities."""

from .job_applications import JobApplicationService
from .kpi import KpiAssignmentService, achievement_percentage
from .offers import OfferService

__all__ = ["JobApplicationService", "KpiAssignmentService", "OfferService", "achievement_percentage"]
