"""Tenant row isolation for the tenant store.

Isolation is enforced by the session rather than by individual queries:

* ``do_orm_execute`` attaches ``tenant_id = <bound tenant>`` through
  :func:`~sqlalchemy.orm.with_loader_criteria` to every ORM SELECT, UPDATE
  and DELETE (including relationship lazy loads). The criterion is ANDed
  into the statement after the caller built it, so caller predicates can
  only narrow the result further. Soft-delete visibility is applied in the
  same hook.
* ``before_flush`` stamps new rows with the bound tenant, rejects rows that
  name a different tenant, and refuses to change ``tenant_id`` on existing
  rows or to relate rows across tenants.

Without a bound tenant both hooks raise
:class:`~app.core.errors.NoTenantContext` before any SQL is emitted. Inside
:func:`~app.core.tenant_context.all_tenants` reads are unfiltered and writes
must carry an explicit ``tenant_id``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import (
    Mapped,
    ORMExecuteState,
    Session,
    UOWTransaction,
    mapped_column,
    with_loader_criteria,
)
from sqlalchemy.orm.interfaces import MANYTOONE

from app.core.errors import NoTenantContext, TenantMismatch
from app.core.tenant_context import AllTenants, TenantBinding, get_tenant_binding

from . import Base
from .mixins import SoftDeletes
from .scopes import SOFT_DELETE_VISIBILITY, TrashedVisibility

__all__ = ["TenantModel", "TenantSession"]

logger = logging.getLogger(__name__)


class TenantModel(Base):
    """Abstract base for every tenant-owned entity.

    Attributes:
        id: Primary key generated client-side with ``uuid4``.
        tenant_id: Owning tenant. Stamped on insert from the bound context
            and immutable afterwards.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} tenant_id={self.tenant_id}>"


class TenantSession(Session):
    """Session whose ORM statements are confined to the bound tenant."""


def _involves_tenant_models(state: ORMExecuteState) -> bool:
    mappers = list(state.all_mappers)
    if not mappers and state.bind_mapper is not None:
        mappers = [state.bind_mapper]
    if not mappers:
        # Only tenant entities are mapped on this session's metadata.
        return True
    return any(issubclass(mapper.class_, TenantModel) for mapper in mappers)


@event.listens_for(TenantSession, "do_orm_execute")
def _scope_statement(state: ORMExecuteState) -> None:
    if not (state.is_select or state.is_update or state.is_delete):
        return
    if state.is_column_load:
        # Refreshing attributes of an identity that was already loaded in scope.
        return

    binding = get_tenant_binding()
    options: list[Any] = []

    if isinstance(binding, TenantBinding):
        tenant_id = binding.tenant_id
        options.append(
            with_loader_criteria(
                TenantModel,
                lambda cls: cls.tenant_id == tenant_id,
                include_aliases=True,
            )
        )
    elif not isinstance(binding, AllTenants) and _involves_tenant_models(state):
        raise NoTenantContext()

    if state.is_select:
        visibility = TrashedVisibility(
            state.execution_options.get(SOFT_DELETE_VISIBILITY, TrashedVisibility.EXCLUDE)
        )
        if visibility is TrashedVisibility.EXCLUDE:
            options.append(
                with_loader_criteria(
                    SoftDeletes,
                    lambda cls: cls.deleted_at.is_(None),
                    include_aliases=True,
                )
            )
        elif visibility is TrashedVisibility.ONLY:
            options.append(
                with_loader_criteria(
                    SoftDeletes,
                    lambda cls: cls.deleted_at.is_not(None),
                    include_aliases=True,
                )
            )

    if options:
        state.statement = state.statement.options(*options)


def _check_related_tenants(instance: TenantModel) -> None:
    """Reject many-to-one links to rows of another tenant."""

    state = inspect(instance)
    for relationship in state.mapper.relationships:
        if relationship.direction is not MANYTOONE:
            continue
        related = state.dict.get(relationship.key)
        if isinstance(related, TenantModel) and related.tenant_id is not None:
            if related.tenant_id != instance.tenant_id:
                raise TenantMismatch(
                    instance.tenant_id,
                    related.tenant_id,
                    entity=f"{type(instance).__name__}.{relationship.key}",
                )


def _stamp_new(instance: TenantModel, binding: TenantBinding | AllTenants | None) -> None:
    entity = type(instance).__name__
    if isinstance(binding, TenantBinding):
        if instance.tenant_id is None:
            instance.tenant_id = binding.tenant_id
        elif instance.tenant_id != binding.tenant_id:
            logger.warning(
                "Rejected %s insert for tenant %s while bound to %s",
                entity,
                instance.tenant_id,
                binding.tenant_id,
            )
            raise TenantMismatch(binding.tenant_id, instance.tenant_id, entity=entity)
    elif isinstance(binding, AllTenants):
        if instance.tenant_id is None:
            raise NoTenantContext(
                f"{entity} created during '{binding.reason}' needs an explicit tenant_id."
            )
    else:
        raise NoTenantContext()


def _guard_existing(instance: TenantModel, binding: TenantBinding | AllTenants | None) -> None:
    entity = type(instance).__name__
    history = inspect(instance).attrs.tenant_id.history
    if history.deleted and history.added and history.deleted[0] != history.added[0]:
        logger.warning("Rejected tenant_id change on %s %s", entity, instance.id)
        raise TenantMismatch(history.deleted[0], history.added[0], entity=entity)
    if isinstance(binding, TenantBinding):
        if instance.tenant_id != binding.tenant_id:
            raise TenantMismatch(binding.tenant_id, instance.tenant_id, entity=entity)
    elif binding is None:
        raise NoTenantContext()


@event.listens_for(TenantSession, "before_flush")
def _stamp_and_guard(
    session: Session, flush_context: UOWTransaction, instances: Any
) -> None:
    binding = get_tenant_binding()

    for instance in session.new:
        if isinstance(instance, TenantModel):
            _stamp_new(instance, binding)
            _check_related_tenants(instance)

    for instance in session.dirty:
        if isinstance(instance, TenantModel) and session.is_modified(instance):
            _guard_existing(instance, binding)
            _check_related_tenants(instance)

    for instance in session.deleted:
        if isinstance(instance, TenantModel):
            _guard_existing(instance, binding)
