"""Multi-step workflows: application pipeline, KPI progress and offers."""

from __future__ import annotations

import contextvars
import datetime as dt
import uuid
from decimal import Decimal

import pytest

from app.core.errors import InvalidTransition, RecordNotFound, StorageError
from app.core.tenant_context import tenant_context
from app.models.enums import (
    ApplicationStatus,
    KpiAssignmentStatus,
    OfferStatus,
    SignerType,
)
from app.repositories import (
    CandidateRepository,
    EmployeeRepository,
    JobApplicationRepository,
    JobApplicationStatusHistoryRepository,
    JobPostingRepository,
    KpiAssignmentRepository,
    KpiProgressEntryRepository,
    KpiTemplateRepository,
    OfferSignatureRepository,
)
from app.services import (
    JobApplicationService,
    KpiAssignmentService,
    OfferService,
    achievement_percentage,
)

NOW = dt.datetime(2024, 6, 1, 9, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def bound(tenant_a):
    with tenant_context(tenant_a):
        yield tenant_a


@pytest.fixture
def application(session, bound):
    posting = JobPostingRepository(session).create(title="HR Generalist", published_at=NOW)
    candidate = CandidateRepository(session).create(
        first_name="Lia", last_name="Tan", email="lia@example.com"
    )
    return JobApplicationService(session).submit(
        job_posting_id=posting.id, candidate_id=candidate.id, cover_letter="Hello"
    )


def _history(session, application_id):
    return JobApplicationStatusHistoryRepository(session).for_application(application_id)


def test_submit_records_initial_history(session, application) -> None:
    assert application.status is ApplicationStatus.APPLIED
    history = _history(session, application.id)
    assert [(row.from_status, row.to_status) for row in history] == [
        (None, ApplicationStatus.APPLIED)
    ]


def test_transition_stamps_timestamp_and_appends_history(session, application) -> None:
    service = JobApplicationService(session)
    changed_by = uuid.uuid4()

    service.transition_status(application, ApplicationStatus.SCREENING, now=NOW)
    moved = service.transition_status(
        application.id, "interview", "Strong CV", changed_by=changed_by, now=NOW
    )

    assert moved.status is ApplicationStatus.INTERVIEW
    assert moved.screening_at == NOW
    assert moved.interview_at == NOW
    history = _history(session, application.id)
    assert [row.to_status for row in history] == [
        ApplicationStatus.APPLIED,
        ApplicationStatus.SCREENING,
        ApplicationStatus.INTERVIEW,
    ]
    assert history[-1].from_status is ApplicationStatus.SCREENING
    assert history[-1].notes == "Strong CV"
    assert history[-1].changed_by == changed_by


def test_rejection_keeps_reason(session, application) -> None:
    rejected = JobApplicationService(session).transition_status(
        application, ApplicationStatus.REJECTED, "Position filled", now=NOW
    )
    assert rejected.rejection_reason == "Position filled"
    assert rejected.rejected_at == NOW
    assert rejected.status.is_terminal


def test_invalid_transition_writes_nothing(session, application) -> None:
    service = JobApplicationService(session)
    with pytest.raises(InvalidTransition) as excinfo:
        service.transition_status(application, ApplicationStatus.HIRED)
    assert excinfo.value.current == "applied"
    assert excinfo.value.requested == "hired"
    assert len(_history(session, application.id)) == 1

    with pytest.raises(ValueError):
        service.transition_status(application, "promoted")


def test_failed_status_update_rolls_back_history(session, application, monkeypatch) -> None:
    service = JobApplicationService(session)

    def _fail(*args, **kwargs):
        raise StorageError("disk full")

    monkeypatch.setattr(service._applications, "update", _fail)
    with pytest.raises(StorageError):
        service.transition_status(application, ApplicationStatus.SCREENING, now=NOW)

    assert len(_history(session, application.id)) == 1
    reloaded = JobApplicationRepository(session).get(application.id)
    assert reloaded.status is ApplicationStatus.APPLIED
    assert reloaded.screening_at is None


def _run_as(tenant_id, func):
    """Run ``func`` bound to ``tenant_id`` in a fresh context."""

    def _call():
        with tenant_context(tenant_id):
            return func()

    return contextvars.Context().run(_call)


def test_transition_of_other_tenant_application_is_not_found(
    session, application, tenant_b
) -> None:
    service = JobApplicationService(session)
    application_id = application.id

    with pytest.raises(RecordNotFound):
        _run_as(
            tenant_b,
            lambda: service.transition_status(application_id, ApplicationStatus.SCREENING),
        )
    assert application.status is ApplicationStatus.APPLIED
    assert len(_history(session, application_id)) == 1


def test_achievement_percentage() -> None:
    assert achievement_percentage(Decimal("80"), Decimal("100")) == Decimal("80.00")
    assert achievement_percentage(Decimal("1"), Decimal("3")) == Decimal("33.33")
    assert achievement_percentage(Decimal("2"), Decimal("3")) == Decimal("66.67")
    assert achievement_percentage(Decimal("5"), Decimal("0")) is None


@pytest.fixture
def employee(session, bound):
    return EmployeeRepository(session).create(
        employee_number="E-1", first_name="Ana", last_name="Cruz"
    )


def test_kpi_progress_updates_assignment(session, employee) -> None:
    template = KpiTemplateRepository(session).create(
        name="Tickets closed", default_target=Decimal("100"), default_weight=Decimal("2")
    )
    service = KpiAssignmentService(session)
    assignment = service.assign(kpi_template_id=template.id, employee_id=employee.id)
    assert assignment.target_value == Decimal("100")
    assert assignment.weight == Decimal("2")
    assert assignment.status is KpiAssignmentStatus.PENDING

    entry = service.record_progress(assignment.id, "80", "Mid-quarter", now=NOW)

    assert entry.value == Decimal("80")
    assert entry.recorded_at == NOW
    assert assignment.actual_value == Decimal("80")
    assert assignment.achievement_percentage == Decimal("80.00")
    assert assignment.status is KpiAssignmentStatus.IN_PROGRESS
    entries = KpiProgressEntryRepository(session).for_assignment(assignment.id)
    assert [row.id for row in entries] == [entry.id]

    completed = service.mark_completed(assignment.id, now=NOW)
    assert completed.status is KpiAssignmentStatus.COMPLETED
    assert completed.completed_at == NOW


def test_kpi_achievement_uses_the_stored_amount(session, employee) -> None:
    template = KpiTemplateRepository(session).create(name="Audits", default_target=Decimal("3"))
    service = KpiAssignmentService(session)
    assignment = service.assign(kpi_template_id=template.id, employee_id=employee.id)

    entry = service.record_progress(assignment.id, "1.005", now=NOW)

    assert entry.value == Decimal("1.01")
    assert assignment.actual_value == Decimal("1.01")
    assert assignment.achievement_percentage == Decimal("33.67")
    session.commit()
    session.expunge_all()
    stored = KpiAssignmentRepository(session).get(assignment.id)
    assert stored.actual_value == Decimal("1.01")
    assert stored.achievement_percentage == achievement_percentage(
        stored.actual_value, stored.target_value
    )


def test_kpi_assignment_needs_a_target(session, employee) -> None:
    template = KpiTemplateRepository(session).create(name="Open-ended")
    service = KpiAssignmentService(session)
    with pytest.raises(ValueError):
        service.assign(kpi_template_id=template.id, employee_id=employee.id)
    explicit = service.assign(
        kpi_template_id=template.id, employee_id=employee.id, target_value=10
    )
    assert explicit.target_value == Decimal("10")


def test_weighted_achievement(session, employee) -> None:
    templates = KpiTemplateRepository(session)
    service = KpiAssignmentService(session)
    heavy = service.assign(
        kpi_template_id=templates.create(name="Revenue").id,
        employee_id=employee.id,
        target_value=100,
        weight=2,
    )
    light = service.assign(
        kpi_template_id=templates.create(name="NPS").id,
        employee_id=employee.id,
        target_value=50,
        weight=1,
    )
    assert service.weighted_achievement(employee.id) is None

    service.record_progress(heavy.id, 80, now=NOW)
    service.record_progress(light.id, 50, now=NOW)
    assert service.weighted_achievement(employee.id) == Decimal("86.67")


def test_kpi_progress_rejects_non_numeric_values(session, employee) -> None:
    template = KpiTemplateRepository(session).create(name="Calls", default_target=Decimal("10"))
    service = KpiAssignmentService(session)
    assignment = service.assign(kpi_template_id=template.id, employee_id=employee.id)
    with pytest.raises(ValueError):
        service.record_progress(assignment.id, "lots")
    assert KpiProgressEntryRepository(session).for_assignment(assignment.id) == []


def _advance_to_offer(session, application) -> None:
    service = JobApplicationService(session)
    for status in (ApplicationStatus.SCREENING, ApplicationStatus.INTERVIEW, ApplicationStatus.OFFER):
        service.transition_status(application, status, now=NOW)


def test_offer_acceptance_hires_candidate(session, application) -> None:
    _advance_to_offer(session, application)
    offers = OfferService(session)
    offer = offers.create_offer(application.id, salary="45000", position_title="HR Generalist")
    offers.send(offer.id, now=NOW)
    offers.record_view(offer.id, now=NOW)
    assert offer.status is OfferStatus.VIEWED

    accepted = offers.accept(
        offer.id,
        signer_name="Lia Tan",
        signer_email="lia@example.com",
        signature_data="data:image/png;base64,AAAA",
        ip_address="203.0.113.7",
        now=NOW,
    )

    assert accepted.status is OfferStatus.ACCEPTED
    assert accepted.accepted_at == NOW
    signatures = OfferSignatureRepository(session).list(offer_id=offer.id)
    assert [(s.signer_type, s.signer_name) for s in signatures] == [
        (SignerType.CANDIDATE, "Lia Tan")
    ]
    hired = JobApplicationRepository(session).get(application.id)
    assert hired.status is ApplicationStatus.HIRED
    assert hired.hired_at == NOW
    assert _history(session, application.id)[-1].notes == "Offer accepted by candidate"


def test_offer_acceptance_is_atomic(session, application, monkeypatch) -> None:
    _advance_to_offer(session, application)
    offers = OfferService(session)
    offer = offers.create_offer(application.id)
    offers.send(offer.id, now=NOW)

    def _fail(*args, **kwargs):
        raise StorageError("connection lost")

    monkeypatch.setattr(offers._pipeline, "transition_status", _fail)
    with pytest.raises(StorageError):
        offers.accept(
            offer.id, signer_name="Lia Tan", signer_email="lia@example.com", signature_data="x"
        )

    assert offers._offers.get(offer.id).status is OfferStatus.SENT
    assert OfferSignatureRepository(session).list(offer_id=offer.id) == []
    assert JobApplicationRepository(session).get(application.id).status is ApplicationStatus.OFFER


def test_offer_lifecycle_rules(session, application) -> None:
    offers = OfferService(session)
    offer = offers.create_offer(application.id)

    with pytest.raises(InvalidTransition):
        offers.accept(offer.id, signer_name="x", signer_email="x@example.com", signature_data="x")
    assert offers.record_view(offer.id).status is OfferStatus.DRAFT

    offers.send(offer.id, now=NOW)
    declined = offers.decline(offer.id, "Counter-offer accepted", now=NOW)
    assert declined.status is OfferStatus.DECLINED
    assert declined.decline_reason == "Counter-offer accepted"
    with pytest.raises(InvalidTransition):
        offers.revoke(offer.id)

    second = offers.create_offer(application.id)
    revoker = uuid.uuid4()
    revoked = offers.revoke(second.id, "Budget freeze", revoked_by=revoker, now=NOW)
    assert revoked.status is OfferStatus.REVOKED
    assert revoked.revoked_by == revoker
