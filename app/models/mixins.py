"""Column mixins shared by tenant and platform entities."""

from __future__ import annotations

import datetime as dt

from sqlalchemy.orm import Mapped, mapped_column

from .types import UTCDateTime, utcnow


class TimestampMixin:
    """Adds ``created_at`` / ``updated_at`` maintained by the ORM."""

    created_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )


class SoftDeletes:
    """Opt-in tombstone support.

    Rows with ``deleted_at`` set are hidden from every query issued through a
    :class:`~app.models.tenancy.TenantSession` unless the statement carries
    the ``with_deleted`` or ``only_deleted`` scope. Permanent removal goes
    through ``Session.delete`` (see ``SoftDeleteRepository.force_delete``).
    """

    deleted_at: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), nullable=True, index=True
    )

    def soft_delete(self, when: dt.datetime | None = None) -> None:
        self.deleted_at = when or utcnow()

    def restore(self) -> None:
        self.deleted_at = None

    @property
    def trashed(self) -> bool:
        return self.deleted_at is not None


class PublicationWindow:
    """``published_at`` / ``expires_at`` pair consumed by the ``published`` scope."""

    published_at: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), nullable=True, index=True
    )
    expires_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def is_visible_at(self, moment: dt.datetime) -> bool:
        """In-memory twin of the ``published`` scope predicate."""

        if self.published_at is None or self.published_at > moment:
            return False
        return self.expires_at is None or self.expires_at >= moment
