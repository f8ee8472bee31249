"""KPI assignment workflow: targets, progress and achievement."""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from app.models import KpiAssignment, KpiProgressEntry
from app.models.enums import KpiAssignmentStatus
from app.models.session import atomic
from app.models.types import utcnow
from app.repositories import (
    KpiAssignmentRepository,
    KpiProgressEntryRepository,
    KpiTemplateRepository,
)

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"Expected a numeric KPI value, got {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Expected a numeric KPI value, got {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Expected a finite KPI value, got {value!r}")
    return amount


def achievement_percentage(actual: Decimal, target: Decimal) -> Decimal | None:
    """``actual / target`` as a percentage with two decimals; ``None`` for a zero target."""

    if target == 0:
        return None
    return (actual / target * 100).quantize(_CENT, rounding=ROUND_HALF_UP)


class KpiAssignmentService:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._templates = KpiTemplateRepository(session)
        self._assignments = KpiAssignmentRepository(session)
        self._entries = KpiProgressEntryRepository(session)

    def assign(
        self,
        *,
        kpi_template_id: uuid.UUID,
        employee_id: uuid.UUID,
        target_value: Any = None,
        weight: Any = None,
        notes: str | None = None,
    ) -> KpiAssignment:
        """Assign a template to an employee, defaulting target and weight from it."""

        template = self._templates.get(kpi_template_id)
        target = target_value if target_value is not None else template.default_target
        if target is None:
            raise ValueError(f"KPI template {template.id} has no default target")
        return self._assignments.create(
            kpi_template_id=template.id,
            employee_id=employee_id,
            target_value=_as_decimal(target),
            weight=_as_decimal(weight) if weight is not None else template.default_weight,
            notes=notes,
            status=KpiAssignmentStatus.PENDING,
        )

    def record_progress(
        self,
        assignment_id: uuid.UUID,
        value: Any,
        notes: str | None = None,
        *,
        recorded_by: uuid.UUID | None = None,
        now: dt.datetime | None = None,
    ) -> KpiProgressEntry:
        """Append a progress entry and refresh the assignment's actuals.

        A pending assignment moves to in-progress on its first entry. The
        entry and the refreshed assignment are written in one transaction.
        """

        assignment = self._assignments.get(assignment_id)
        # Score the amounts as they will be stored.
        amount = _as_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)
        target = assignment.target_value.quantize(_CENT, rounding=ROUND_HALF_UP)
        values: dict[str, Any] = {
            "actual_value": amount,
            "achievement_percentage": achievement_percentage(amount, target),
        }
        if assignment.status is KpiAssignmentStatus.PENDING:
            values["status"] = KpiAssignmentStatus.IN_PROGRESS

        with atomic(self._session):
            entry = self._entries.create(
                kpi_assignment_id=assignment.id,
                value=amount,
                notes=notes,
                recorded_by=recorded_by,
                recorded_at=now or utcnow(),
            )
            self._assignments.update(assignment.id, **values)

        logger.info("Recorded KPI progress %s on assignment %s", amount, assignment.id)
        return entry

    def mark_completed(
        self, assignment_id: uuid.UUID, *, now: dt.datetime | None = None
    ) -> KpiAssignment:
        return self._assignments.update(
            assignment_id,
            status=KpiAssignmentStatus.COMPLETED,
            completed_at=now or utcnow(),
        )

    def weighted_achievement(self, employee_id: uuid.UUID) -> Decimal | None:
        """Weight-averaged achievement across an employee's scored assignments."""

        total_weight = Decimal(0)
        weighted = Decimal(0)
        for assignment in self._assignments.for_employee(employee_id):
            if assignment.achievement_percentage is None:
                continue
            total_weight += assignment.weight
            weighted += assignment.achievement_percentage * assignment.weight
        if total_weight == 0:
            return None
        return (weighted / total_weight).quantize(_CENT, rounding=ROUND_HALF_UP)


__all__ = ["KpiAssignmentService", "achievement_percentage"]
