"""Utility script to bootstrap the database with a demo tenant and sample HR data."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import os
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal

from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app.core.tenant_context import tenant_context
from app.models.enums import EmploymentStatus, GoalStatus, GoalType, Module
from app.models.session import (
    create_schema,
    get_engine,
    platform_session_scope,
    session_scope,
)
from app.models.types import utcnow
from app.repositories import (
    AnnouncementRepository,
    EmployeeRepository,
    GoalRepository,
    JobPostingRepository,
    PlanRepository,
    TenantRegistry,
)

logger = logging.getLogger("seed")

DEMO_MODULES: tuple[Module, ...] = (
    Module.HR_CORE,
    Module.RECRUITMENT,
    Module.PERFORMANCE,
)


@dataclass(slots=True)
class SeedConfig:
    """Configuration derived from the environment for the seed process."""

    tenant_name: str
    tenant_slug: str
    plan_name: str
    plan_slug: str
    trial_days: int


def _load_config() -> SeedConfig:
    """Load seed configuration from environment variables."""

    return SeedConfig(
        tenant_name=os.getenv("SEED_TENANT_NAME", "Demo Company").strip(),
        tenant_slug=os.getenv("SEED_TENANT_SLUG", "demo").strip().lower(),
        plan_name=os.getenv("SEED_PLAN_NAME", "Professional").strip(),
        plan_slug=os.getenv("SEED_PLAN_SLUG", "professional").strip().lower(),
        trial_days=int(os.getenv("SEED_TRIAL_DAYS", "14")),
    )


def wait_for_database(max_attempts: int = 10, delay: float = 3.0) -> None:
    """Attempt to establish a database connection, retrying if necessary."""

    engine = get_engine()
    safe_url = engine.url.render_as_string(hide_password=True)
    try:
        for attempt in range(1, max_attempts + 1):
            try:
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
            except OperationalError as exc:  # pragma: no cover - depends on external DB
                logger.info(
                    "Database not ready (attempt %d/%d): %s; retrying in %.1fs",
                    attempt,
                    max_attempts,
                    exc,
                    delay,
                )
                if attempt >= max_attempts:
                    raise RuntimeError("Database did not become ready in time") from exc
                time.sleep(delay)
                continue

            logger.info(
                "Database connection established after %d attempt(s): %s", attempt, safe_url
            )
            return
    finally:
        engine.dispose()


def _provision_tenant(config: SeedConfig) -> uuid.UUID:
    """Create or reuse the demo plan and tenant in the platform store."""

    with platform_session_scope() as session:
        plans = PlanRepository(session)
        plan = plans.find_by_slug(config.plan_slug)
        if plan is None:
            plan = plans.create(
                name=config.plan_name,
                slug=config.plan_slug,
                price_monthly=Decimal("4999.00"),
                max_employees=250,
            )
            logger.info("Created plan %s", plan.slug)
        for module in DEMO_MODULES:
            plans.assign_module(plan.id, module)

        registry = TenantRegistry(session)
        tenant = registry.find_by_slug(config.tenant_slug)
        if tenant is None:
            tenant = registry.create(
                name=config.tenant_name,
                slug=config.tenant_slug,
                plan_id=plan.id,
                trial_ends_at=utcnow() + dt.timedelta(days=config.trial_days),
            )
            logger.info("Created tenant %s (%s)", tenant.id, tenant.slug)
        else:
            logger.info("Tenant %s already exists; reusing.", tenant.slug)
        return tenant.id


def _seed_tenant_data(tenant_id: uuid.UUID) -> None:
    """Insert a small sample of tenant-owned records when the tenant is empty."""

    now = utcnow()
    with tenant_context(tenant_id), session_scope() as session:
        employees = EmployeeRepository(session)
        if employees.count():
            logger.info("Tenant %s already has employees; skipping sample data.", tenant_id)
            return

        manager = employees.create(
            employee_number="EMP-0001",
            first_name="Maria",
            last_name="Santos",
            email="maria.santos@demo.local",
            hire_date=dt.date(2020, 1, 6),
            employment_status=EmploymentStatus.REGULAR,
            basic_salary=Decimal("85000.00"),
        )
        engineer = employees.create(
            employee_number="EMP-0002",
            first_name="Jose",
            last_name="Reyes",
            email="jose.reyes@demo.local",
            hire_date=dt.date(2024, 3, 1),
            basic_salary=Decimal("52000.00"),
            supervisor_id=manager.id,
        )

        announcements = AnnouncementRepository(session)
        announcements.create(
            title="Welcome to the HR portal",
            body="Company policies and forms are now available online.",
            is_pinned=True,
            published_at=now - dt.timedelta(days=1),
        )
        announcements.create(
            title="Year-end party",
            body="Save the date.",
            published_at=now + dt.timedelta(days=7),
            expires_at=now + dt.timedelta(days=30),
        )

        goals = GoalRepository(session)
        objective = goals.create(
            employee_id=manager.id,
            goal_type=GoalType.OKR_OBJECTIVE,
            title="Ship the self-service portal",
            status=GoalStatus.ACTIVE,
        )
        goals.create(
            employee_id=engineer.id,
            parent_goal_id=objective.id,
            title="Complete onboarding checklist",
            status=GoalStatus.ACTIVE,
            due_date=dt.date.today() + dt.timedelta(days=30),
        )

        JobPostingRepository(session).create(
            title="Payroll Specialist",
            description="Own the semi-monthly payroll run.",
            salary_range_min=Decimal("35000.00"),
            salary_range_max=Decimal("45000.00"),
            published_at=now,
        )

    logger.info("Sample data created for tenant %s", tenant_id)


async def main() -> None:
    """Entrypoint for the seeding workflow."""

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    wait_for_database()

    config = _load_config()
    logger.info("Starting seed process for tenant slug %s", config.tenant_slug)

    await asyncio.to_thread(create_schema)
    tenant_id = await asyncio.to_thread(_provision_tenant, config)
    logger.info("Tenant ready: %s", tenant_id)

    await asyncio.to_thread(_seed_tenant_data, tenant_id)
    logger.info("Seed process completed. Tenant ID: %s", tenant_id)


if __name__ == "__main__":
    asyncio.run(main())
