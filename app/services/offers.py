"""Offer lifecycle: draft, send, view, accept, decline and revoke."""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import InvalidTransition
from app.models import Offer
from app.models.enums import ApplicationStatus, OfferStatus, SignerType
from app.models.session import atomic
from app.models.types import utcnow
from app.repositories import JobApplicationRepository, OfferRepository, OfferSignatureRepository

from .job_applications import JobApplicationService

logger = logging.getLogger(__name__)


class OfferService:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._offers = OfferRepository(session)
        self._signatures = OfferSignatureRepository(session)
        self._applications = JobApplicationRepository(session)
        self._pipeline = JobApplicationService(session)

    def _require_transition(self, offer: Offer, target: OfferStatus) -> None:
        if not offer.status.can_transition_to(target):
            raise InvalidTransition(offer.status.value, target.value)

    def create_offer(
        self,
        job_application_id: uuid.UUID,
        *,
        created_by: uuid.UUID | None = None,
        **values: Any,
    ) -> Offer:
        """Draft an offer for an application visible to the current tenant."""

        application = self._applications.get(job_application_id)
        return self._offers.create(
            job_application_id=application.id,
            status=OfferStatus.DRAFT,
            created_by=created_by,
            **values,
        )

    def send(self, offer_id: uuid.UUID, *, now: dt.datetime | None = None) -> Offer:
        offer = self._offers.get(offer_id)
        self._require_transition(offer, OfferStatus.SENT)
        return self._offers.update(offer.id, status=OfferStatus.SENT, sent_at=now or utcnow())

    def record_view(self, offer_id: uuid.UUID, *, now: dt.datetime | None = None) -> Offer:
        """Mark a sent offer as viewed; later views leave it unchanged."""

        offer = self._offers.get(offer_id)
        if offer.status is not OfferStatus.SENT:
            return offer
        return self._offers.update(
            offer.id, status=OfferStatus.VIEWED, viewed_at=now or utcnow()
        )

    def accept(
        self,
        offer_id: uuid.UUID,
        *,
        signer_name: str,
        signer_email: str,
        signature_data: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
        now: dt.datetime | None = None,
    ) -> Offer:
        """Accept the offer with the candidate's signature.

        The offer status, the signature and the application's move to
        ``hired`` are written in one transaction.
        """

        offer = self._offers.get(offer_id)
        self._require_transition(offer, OfferStatus.ACCEPTED)
        moment = now or utcnow()

        with atomic(self._session):
            self._offers.update(offer.id, status=OfferStatus.ACCEPTED, accepted_at=moment)
            self._signatures.create(
                offer_id=offer.id,
                signer_type=SignerType.CANDIDATE,
                signer_name=signer_name,
                signer_email=signer_email,
                signature_data=signature_data,
                ip_address=ip_address,
                user_agent=user_agent,
                signed_at=moment,
            )
            application = self._applications.get(offer.job_application_id)
            if application.status is ApplicationStatus.OFFER:
                self._pipeline.transition_status(
                    application,
                    ApplicationStatus.HIRED,
                    "Offer accepted by candidate",
                    now=moment,
                )

        logger.info("Offer %s accepted", offer.id)
        return offer

    def decline(
        self,
        offer_id: uuid.UUID,
        reason: str | None = None,
        *,
        now: dt.datetime | None = None,
    ) -> Offer:
        offer = self._offers.get(offer_id)
        self._require_transition(offer, OfferStatus.DECLINED)
        return self._offers.update(
            offer.id,
            status=OfferStatus.DECLINED,
            declined_at=now or utcnow(),
            decline_reason=reason,
        )

    def revoke(
        self,
        offer_id: uuid.UUID,
        reason: str | None = None,
        *,
        revoked_by: uuid.UUID | None = None,
        now: dt.datetime | None = None,
    ) -> Offer:
        offer = self._offers.get(offer_id)
        self._require_transition(offer, OfferStatus.REVOKED)
        return self._offers.update(
            offer.id,
            status=OfferStatus.REVOKED,
            revoked_at=now or utcnow(),
            revoked_by=revoked_by,
            revoke_reason=reason,
        )


__all__ = ["OfferService"]
