"""Platform records live outside tenant scoping."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError

from app.core.errors import RecordNotFound
from app.core.tenant_context import all_tenants, tenant_context
from app.models import Plan, PlanModule, PlatformBase, Tenant, TenantModel, User
from app.models.enums import Module
from app.models.platform import DEFAULT_TIMEZONE
from app.repositories import (
    PlanModuleRepository,
    PlanRepository,
    TenantRegistry,
    UserRepository,
)


@pytest.fixture
def plan(platform_session) -> Plan:
    return PlanRepository(platform_session).create(
        name="Professional", slug="professional", price_monthly="4999.995"
    )


def test_platform_tables_carry_no_tenant_id() -> None:
    for model in (Plan, PlanModule, Tenant, User):
        assert "tenant_id" not in model.__table__.c
        assert not issubclass(model, TenantModel)
        assert model.metadata is PlatformBase.metadata


def test_platform_records_ignore_tenant_context(platform_session, plan, tenant_a, tenant_b) -> None:
    repo = PlanRepository(platform_session)
    modules = PlanModuleRepository(platform_session)
    modules.create(plan_id=plan.id, module=Module.PAYROLL)

    outside = [entry.id for entry in modules.list()]
    with tenant_context(tenant_a):
        as_a = [entry.id for entry in modules.list()]
        assert repo.get(plan.id) is plan
    with tenant_context(tenant_b):
        as_b = [entry.id for entry in modules.list()]
    with all_tenants("billing sync"):
        bypassed = [entry.id for entry in modules.list()]
    assert outside == as_a == as_b == bypassed
    assert len(outside) == 1


def test_plan_price_is_fixed_point(platform_session, plan) -> None:
    platform_session.commit()
    platform_session.expunge_all()
    loaded = PlanRepository(platform_session).get(plan.id)
    assert loaded.price_monthly == Decimal("5000.00")


def test_assign_module_is_idempotent(platform_session, plan) -> None:
    repo = PlanRepository(platform_session)
    first = repo.assign_module(plan.id, Module.RECRUITMENT)
    second = repo.assign_module(plan.id, Module.RECRUITMENT)
    repo.assign_module(plan.id, Module.HR_CORE)
    assert first.id == second.id
    assert repo.modules(plan.id) == [Module.HR_CORE, Module.RECRUITMENT]


def test_duplicate_plan_module_violates_unique_index(platform_session, plan) -> None:
    platform_session.add(PlanModule(plan_id=plan.id, module=Module.LEAVE))
    platform_session.add(PlanModule(plan_id=plan.id, module=Module.LEAVE))
    with pytest.raises(IntegrityError):
        platform_session.flush()
    platform_session.rollback()


def test_tenant_registry_resolves_modules(platform_session, plan) -> None:
    PlanRepository(platform_session).assign_module(plan.id, Module.PERFORMANCE)
    registry = TenantRegistry(platform_session)
    tenant = registry.create(name="Acme PH", slug="acme-ph", plan_id=plan.id)

    assert registry.find_by_slug("acme-ph") is tenant
    assert registry.find_by_slug("missing") is None
    assert registry.enabled_modules(tenant.id) == {Module.PERFORMANCE}
    assert tenant.has_module(Module.PERFORMANCE)
    assert not tenant.has_module(Module.PAYROLL)
    assert tenant.database_name == "hr_tenant_acme_ph"

    bare = registry.create(name="No Plan", slug="no-plan")
    assert registry.enabled_modules(bare.id) == set()
    assert not bare.has_module(Module.HR_CORE)


def test_tenant_defaults_and_validation(platform_session) -> None:
    registry = TenantRegistry(platform_session)
    tenant = registry.create(name="Beta", slug="beta", timezone=None)
    assert tenant.timezone == DEFAULT_TIMEZONE

    now = dt.datetime(2024, 6, 1, tzinfo=dt.timezone.utc)
    tenant.trial_ends_at = now + dt.timedelta(days=3)
    assert tenant.on_trial(now)
    assert not tenant.on_trial(now + dt.timedelta(days=4))

    for slug in ("Bad Slug", "trailing-", "double--dash", ""):
        assert not Tenant.is_valid_slug(slug)
        with pytest.raises(ValueError):
            Tenant(name="x", slug=slug)


def test_missing_platform_record_is_not_found(platform_session) -> None:
    with pytest.raises(RecordNotFound):
        TenantRegistry(platform_session).get(uuid.uuid4())


def test_users_are_unique_by_email(platform_session) -> None:
    repo = UserRepository(platform_session)
    user = repo.create(email="hr@acme.ph", name="HR Admin")
    assert repo.find_by_email("hr@acme.ph") is user
    assert user.is_super_admin is False

    platform_session.add(User(email="hr@acme.ph", name="Duplicate"))
    with pytest.raises(IntegrityError):
        platform_session.flush()
    platform_session.rollback()


def test_platform_session_is_not_tenant_scoped(platform_session) -> None:
    assert type(platform_session).__name__ == "Session"
    rows = platform_session.scalars(select(Plan)).all()
    assert rows == []
    assert inspect(Plan).local_table.name == "plans"
