"""Repositories for platform records (tenant registry, plans, users)."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select

from app.models import Plan, PlanModule, Tenant, User
from app.models.enums import Module

from .base import PlatformRepository


class TenantRegistry(PlatformRepository[Tenant]):
    """Lookup and provisioning of tenants."""

    model = Tenant

    def find_by_slug(self, slug: str) -> Tenant | None:
        matches = self.list(slug=slug, limit=1)
        return matches[0] if matches else None

    def enabled_modules(self, tenant_id: uuid.UUID) -> set[Module]:
        tenant = self.get(tenant_id)
        if tenant.plan_id is None:
            return set()
        statement = select(PlanModule.module).where(PlanModule.plan_id == tenant.plan_id)
        with self._storage_errors("load modules of"):
            return set(self._session.scalars(statement))


class PlanRepository(PlatformRepository[Plan]):
    model = Plan

    def find_by_slug(self, slug: str) -> Plan | None:
        matches = self.list(slug=slug, limit=1)
        return matches[0] if matches else None

    def assign_module(self, plan_id: uuid.UUID, module: Module) -> PlanModule:
        """Attach ``module`` to the plan; assigning it twice is a no-op."""

        plan = self.get(plan_id)
        entries = PlanModuleRepository(self._session)
        existing = entries.list(plan_id=plan.id, module=module, limit=1)
        if existing:
            return existing[0]
        return entries.create(plan_id=plan.id, module=module)

    def modules(self, plan_id: uuid.UUID) -> list[Module]:
        return [entry.module for entry in PlanModuleRepository(self._session).list(plan_id=plan_id)]


class PlanModuleRepository(PlatformRepository[PlanModule]):
    model = PlanModule

    def _default_order(self) -> list[Any]:
        return [PlanModule.module]


class UserRepository(PlatformRepository[User]):
    model = User

    def find_by_email(self, email: str) -> User | None:
        matches = self.list(email=email, limit=1)
        return matches[0] if matches else None


__all__ = ["PlanModuleRepository", "PlanRepository", "TenantRegistry", "UserRepository"]
