"""Platform (tenant-independent) SQLAlchemy models.

These tables describe the platform itself: the tenant registry, subscription
plans and the modules each plan unlocks, and login accounts. They are
declared on :class:`~app.models.PlatformBase`, carry no ``tenant_id`` and are
read through sessions bound to the platform connection (see
:func:`app.models.session.get_platform_sessionmaker`), so the tenant context
has no effect on them.
"""

from __future__ import annotations

import datetime as dt
import re
import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from . import PlatformBase
from .enums import Module
from .mixins import TimestampMixin
from .types import EnumCodec, FixedDecimal, StrictBoolean, UTCDateTime

DEFAULT_TIMEZONE = "Asia/Manila"

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class Plan(TimestampMixin, PlatformBase):
    """Subscription tier.

    Attributes:
        slug: Stable identifier used by billing.
        price_monthly: Monthly list price, two decimal places.
        max_employees: Seat limit, ``None`` for unlimited.
        modules: Feature modules unlocked by this plan.
    """

    __tablename__ = "plans"
    __table_args__ = (Index("ix_plans_slug_unique", "slug", unique=True),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    slug: Mapped[str] = mapped_column(String(length=64), nullable=False)
    price_monthly: Mapped[Decimal] = mapped_column(
        FixedDecimal(12, 2), nullable=False, default=Decimal("0.00")
    )
    max_employees: Mapped[int | None] = mapped_column(Integer(), nullable=True)
    is_active: Mapped[bool] = mapped_column(StrictBoolean(), nullable=False, default=True)

    modules: Mapped[List["PlanModule"]] = relationship(
        back_populates="plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tenants: Mapped[List["Tenant"]] = relationship(back_populates="plan")

    def includes(self, module: Module) -> bool:
        return any(entry.module is module for entry in self.modules)


class PlanModule(PlatformBase):
    """Assignment of one :class:`Module` to a plan."""

    __tablename__ = "plan_modules"
    __table_args__ = (
        Index("ix_plan_modules_plan_module_unique", "plan_id", "module", unique=True),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("plans.id", ondelete="CASCADE"),
        nullable=False,
    )
    module: Mapped[Module] = mapped_column(EnumCodec(Module, length=64), nullable=False)

    plan: Mapped[Plan] = relationship(back_populates="modules")


class Tenant(TimestampMixin, PlatformBase):
    """Registered customer organisation.

    Attributes:
        slug: URL-safe identifier; lowercase words joined by single hyphens.
        timezone: IANA zone name, ``Asia/Manila`` unless set.
        plan: Current subscription plan, if any.
    """

    __tablename__ = "tenants"
    __table_args__ = (Index("ix_tenants_slug_unique", "slug", unique=True),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    slug: Mapped[str] = mapped_column(String(length=64), nullable=False)
    timezone: Mapped[str] = mapped_column(
        String(length=64), nullable=False, default=DEFAULT_TIMEZONE
    )
    plan_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("plans.id", ondelete="SET NULL"),
        nullable=True,
    )
    trial_ends_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    plan: Mapped[Plan | None] = relationship(back_populates="tenants")

    @staticmethod
    def is_valid_slug(slug: str) -> bool:
        return bool(_SLUG_PATTERN.match(slug))

    @validates("slug")
    def _validate_slug(self, key: str, value: str) -> str:
        if not self.is_valid_slug(value):
            raise ValueError(f"Invalid tenant slug: {value!r}")
        return value

    @validates("timezone")
    def _default_timezone(self, key: str, value: str | None) -> str:
        return value or DEFAULT_TIMEZONE

    @property
    def database_name(self) -> str:
        return f"hr_tenant_{self.slug.replace('-', '_')}"

    def on_trial(self, now: dt.datetime) -> bool:
        return self.trial_ends_at is not None and self.trial_ends_at > now

    def has_module(self, module: Module) -> bool:
        return self.plan is not None and self.plan.includes(module)


class User(TimestampMixin, PlatformBase):
    """Login account; may be linked to employees in several tenants."""

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_email_unique", "email", unique=True),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(length=320), nullable=False)
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    is_super_admin: Mapped[bool] = mapped_column(
        StrictBoolean(), nullable=False, default=False
    )


__all__ = ["DEFAULT_TIMEZONE", "Plan", "PlanModule", "Tenant", "User"]
