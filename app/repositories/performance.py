"""Repositories for goals, KPIs and development plans."""

from __future__ import annotations

import uuid

from app.models import (
    DevelopmentPlan,
    DevelopmentPlanCheckIn,
    Goal,
    GoalComment,
    KpiAssignment,
    KpiProgressEntry,
    KpiTemplate,
)
from app.models.enums import DevelopmentPlanStatus, GoalStatus, GoalType
from app.models.scopes import Scope, where

from .base import SoftDeleteRepository, TenantRepository


def active_goals() -> Scope:
    return where("active_goals", Goal.status == GoalStatus.ACTIVE)


def root_goals() -> Scope:
    return where("root_goals", Goal.parent_goal_id.is_(None))


def okrs() -> Scope:
    return where("okrs", Goal.goal_type == GoalType.OKR_OBJECTIVE)


class GoalRepository(SoftDeleteRepository[Goal]):
    model = Goal

    def for_employee(self, employee_id: uuid.UUID, *scopes: Scope) -> list[Goal]:
        return self.list(*scopes, employee_id=employee_id, order_by=Goal.due_date)

    def children_of(self, goal_id: uuid.UUID) -> list[Goal]:
        return self.list(parent_goal_id=goal_id)


class GoalCommentRepository(SoftDeleteRepository[GoalComment]):
    model = GoalComment

    def for_goal(self, goal_id: uuid.UUID, *, include_internal: bool = True) -> list[GoalComment]:
        scopes = [] if include_internal else [where("public", GoalComment.is_internal.is_(False))]
        return self.list(*scopes, goal_id=goal_id, order_by=GoalComment.created_at.desc())


class KpiTemplateRepository(TenantRepository[KpiTemplate]):
    model = KpiTemplate


class KpiAssignmentRepository(TenantRepository[KpiAssignment]):
    model = KpiAssignment

    def for_employee(self, employee_id: uuid.UUID) -> list[KpiAssignment]:
        return self.list(employee_id=employee_id)


class KpiProgressEntryRepository(TenantRepository[KpiProgressEntry]):
    model = KpiProgressEntry

    def for_assignment(self, assignment_id: uuid.UUID) -> list[KpiProgressEntry]:
        return self.list(
            kpi_assignment_id=assignment_id,
            order_by=KpiProgressEntry.recorded_at.desc(),
        )


class DevelopmentPlanRepository(TenantRepository[DevelopmentPlan]):
    model = DevelopmentPlan

    def active(self) -> list[DevelopmentPlan]:
        return self.list(
            where(
                "active_plans",
                DevelopmentPlan.status.in_(
                    [DevelopmentPlanStatus.APPROVED, DevelopmentPlanStatus.IN_PROGRESS]
                ),
            )
        )


class DevelopmentPlanCheckInRepository(TenantRepository[DevelopmentPlanCheckIn]):
    model = DevelopmentPlanCheckIn

    def for_plan(self, plan_id: uuid.UUID) -> list[DevelopmentPlanCheckIn]:
        return self.list(
            development_plan_id=plan_id,
            order_by=DevelopmentPlanCheckIn.check_in_date.desc(),
        )


__all__ = [
    "DevelopmentPlanCheckInRepository",
    "DevelopmentPlanRepository",
    "GoalCommentRepository",
    "GoalRepository",
    "KpiAssignmentRepository",
    "KpiProgressEntryRepository",
    "KpiTemplateRepository",
    "active_goals",
    "okrs",
    "root_goals",
]
