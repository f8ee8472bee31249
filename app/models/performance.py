"""Performance management entities: goals, KPIs and development plans."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .enums import (
    DevelopmentPlanStatus,
    GoalPriority,
    GoalStatus,
    GoalType,
    GoalVisibility,
    KpiAssignmentStatus,
)
from .mixins import SoftDeletes, TimestampMixin
from .organization import Employee
from .tenancy import TenantModel
from .types import DateOnly, EnumCodec, FixedDecimal, StrictBoolean, UTCDateTime, utcnow


class Goal(SoftDeletes, TimestampMixin, TenantModel):
    """OKR objective or SMART goal, told apart by ``goal_type``.

    Goals may be aligned under a parent goal of the same tenant.
    """

    __tablename__ = "goals"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_goal_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("goals.id", ondelete="SET NULL"),
        nullable=True,
    )
    goal_type: Mapped[GoalType] = mapped_column(
        EnumCodec(GoalType), nullable=False, default=GoalType.SMART_GOAL
    )
    title: Mapped[str] = mapped_column(String(length=255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    category: Mapped[str | None] = mapped_column(String(length=128), nullable=True)
    visibility: Mapped[GoalVisibility] = mapped_column(
        EnumCodec(GoalVisibility), nullable=False, default=GoalVisibility.PRIVATE
    )
    priority: Mapped[GoalPriority] = mapped_column(
        EnumCodec(GoalPriority), nullable=False, default=GoalPriority.MEDIUM
    )
    status: Mapped[GoalStatus] = mapped_column(
        EnumCodec(GoalStatus), nullable=False, default=GoalStatus.DRAFT
    )
    start_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    due_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    completed_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    progress_percentage: Mapped[Decimal] = mapped_column(
        FixedDecimal(5, 2), nullable=False, default=Decimal("0.00")
    )
    weight: Mapped[Decimal | None] = mapped_column(FixedDecimal(5, 2), nullable=True)
    final_score: Mapped[Decimal | None] = mapped_column(FixedDecimal(5, 2), nullable=True)

    employee: Mapped[Employee] = relationship()
    parent_goal: Mapped[Optional["Goal"]] = relationship(
        remote_side="Goal.id",
        back_populates="child_goals",
    )
    child_goals: Mapped[List["Goal"]] = relationship(back_populates="parent_goal")
    comments: Mapped[List["GoalComment"]] = relationship(
        back_populates="goal",
        order_by="GoalComment.created_at.desc()",
    )


class GoalComment(SoftDeletes, TimestampMixin, TenantModel):
    """Discussion entry on a goal; soft-deleted so threads keep their shape."""

    __tablename__ = "goal_comments"

    goal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("goals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    comment: Mapped[str] = mapped_column(Text(), nullable=False)
    is_internal: Mapped[bool] = mapped_column(StrictBoolean(), nullable=False, default=False)

    goal: Mapped[Goal] = relationship(back_populates="comments")


class KpiTemplate(TimestampMixin, TenantModel):
    __tablename__ = "kpi_templates"

    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    metric_unit: Mapped[str | None] = mapped_column(String(length=64), nullable=True)
    default_target: Mapped[Decimal | None] = mapped_column(FixedDecimal(15, 2), nullable=True)
    default_weight: Mapped[Decimal] = mapped_column(
        FixedDecimal(5, 2), nullable=False, default=Decimal("1.00")
    )
    is_active: Mapped[bool] = mapped_column(StrictBoolean(), nullable=False, default=True)

    assignments: Mapped[List["KpiAssignment"]] = relationship(back_populates="template")


class KpiAssignment(TimestampMixin, TenantModel):
    """A KPI template applied to one employee with a concrete target."""

    __tablename__ = "kpi_assignments"

    kpi_template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("kpi_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    target_value: Mapped[Decimal] = mapped_column(FixedDecimal(15, 2), nullable=False)
    weight: Mapped[Decimal] = mapped_column(
        FixedDecimal(5, 2), nullable=False, default=Decimal("1.00")
    )
    actual_value: Mapped[Decimal | None] = mapped_column(FixedDecimal(15, 2), nullable=True)
    achievement_percentage: Mapped[Decimal | None] = mapped_column(
        FixedDecimal(7, 2), nullable=True
    )
    status: Mapped[KpiAssignmentStatus] = mapped_column(
        EnumCodec(KpiAssignmentStatus),
        nullable=False,
        default=KpiAssignmentStatus.PENDING,
    )
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)
    completed_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    template: Mapped[KpiTemplate] = relationship(back_populates="assignments")
    employee: Mapped[Employee] = relationship()
    progress_entries: Mapped[List["KpiProgressEntry"]] = relationship(
        back_populates="assignment",
        order_by="KpiProgressEntry.recorded_at.desc()",
    )


class KpiProgressEntry(TimestampMixin, TenantModel):
    __tablename__ = "kpi_progress_entries"

    kpi_assignment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("kpi_assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value: Mapped[Decimal] = mapped_column(FixedDecimal(15, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)
    recorded_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    recorded_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )

    assignment: Mapped[KpiAssignment] = relationship(back_populates="progress_entries")


class DevelopmentPlan(TimestampMixin, TenantModel):
    """Individual development plan drafted by an employee and approved by a manager."""

    __tablename__ = "development_plans"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    manager_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(length=255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    status: Mapped[DevelopmentPlanStatus] = mapped_column(
        EnumCodec(DevelopmentPlanStatus),
        nullable=False,
        default=DevelopmentPlanStatus.DRAFT,
    )
    start_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    target_completion_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    completed_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    approved_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    employee: Mapped[Employee] = relationship(foreign_keys=[employee_id])
    manager: Mapped[Employee | None] = relationship(foreign_keys=[manager_id])
    check_ins: Mapped[List["DevelopmentPlanCheckIn"]] = relationship(
        back_populates="development_plan",
        order_by="DevelopmentPlanCheckIn.check_in_date.desc()",
    )


class DevelopmentPlanCheckIn(TimestampMixin, TenantModel):
    __tablename__ = "development_plan_check_ins"

    development_plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("development_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    check_in_date: Mapped[dt.date] = mapped_column(DateOnly(), nullable=False)
    notes: Mapped[str] = mapped_column(Text(), nullable=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    development_plan: Mapped[DevelopmentPlan] = relationship(back_populates="check_ins")


__all__ = [
    "DevelopmentPlan",
    "DevelopmentPlanCheckIn",
    "Goal",
    "GoalComment",
    "KpiAssignment",
    "KpiProgressEntry",
    "KpiTemplate",
]
