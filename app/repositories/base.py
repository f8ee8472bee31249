"""Generic repositories over tenant and platform entities.

Repositories are thin: they build statements, apply scopes and let the
session do the tenant work. Reads never use ``Session.get`` so every lookup
is a SQL statement the tenant hooks can constrain, and a record owned by
another tenant is reported exactly like a missing one.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import RecordNotFound, ReferenceNotFound, StorageError, TenantMismatch
from app.core.tenant_context import get_current_tenant_id
from app.models import Base, PlatformBase
from app.models.mixins import SoftDeletes
from app.models.scopes import (
    SOFT_DELETE_VISIBILITY,
    Scope,
    TrashedVisibility,
    apply_scopes,
    only_deleted,
    with_deleted,
)
from app.models.session import atomic
from app.models.tenancy import TenantModel

__all__ = [
    "PlatformRepository",
    "SoftDeleteRepository",
    "TenantRepository",
    "repository_for",
]

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")
TenantModelT = TypeVar("TenantModelT", bound=TenantModel)
PlatformModelT = TypeVar("PlatformModelT", bound=PlatformBase)

OrderBy = ColumnElement[Any] | Sequence[ColumnElement[Any]] | None

# Concrete tenant repositories, keyed by the model they declare.
_REGISTRY: dict[type[Any], type[TenantRepository[Any]]] = {}


class _Repository(Generic[ModelT]):
    """CRUD surface shared by tenant and platform repositories."""

    model: type[ModelT]
    _required_base: type = object

    def __init__(self, session: Session, model: type[ModelT] | None = None) -> None:
        model = model or getattr(type(self), "model", None)
        if model is None:
            raise TypeError(f"{type(self).__name__} needs a model class")
        if not issubclass(model, self._required_base):
            raise TypeError(
                f"{type(self).__name__} only handles {self._required_base.__name__} "
                f"subclasses, got {model.__name__}"
            )
        self._session = session
        self.model = model

    @property
    def session(self) -> Session:
        return self._session

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    # ------------------------------------------------------------------
    # Error translation

    @contextmanager
    def _storage_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            orig = getattr(exc, "orig", None)
            if isinstance(orig, ValueError) and not isinstance(exc, DBAPIError):
                # Codec failures surface as the codec's own error.
                raise orig from exc
            logger.error("Failed to %s %s: %s", action, self.entity_name, exc)
            raise StorageError(f"Failed to {action} {self.entity_name}") from exc

    # ------------------------------------------------------------------
    # Statement building

    def _select(self, *scopes: Scope, **filters: Any) -> Select[Any]:
        statement = select(self.model)
        statement = statement.where(*self._filter_criteria(filters))
        return apply_scopes(statement, scopes)

    def _filter_criteria(self, filters: dict[str, Any]) -> list[ColumnElement[bool]]:
        criteria = []
        for name, value in filters.items():
            column = getattr(self.model, name, None)
            if column is None or not hasattr(column, "expression"):
                raise ValueError(f"{self.entity_name} has no field {name!r}")
            criteria.append(column.is_(None) if value is None else column == value)
        return criteria

    def _default_order(self) -> list[ColumnElement[Any]]:
        order = []
        created_at = getattr(self.model, "created_at", None)
        if created_at is not None:
            order.append(created_at)
        order.append(getattr(self.model, "id"))
        return order

    # ------------------------------------------------------------------
    # Reads

    def find(self, record_id: Any, *scopes: Scope) -> ModelT | None:
        """Return the record with ``record_id`` or ``None``."""

        if isinstance(record_id, str):
            try:
                record_id = uuid.UUID(record_id)
            except ValueError:
                return None
        statement = self._select(*scopes).where(getattr(self.model, "id") == record_id)
        with self._storage_errors("load"):
            return self._session.scalars(statement).one_or_none()

    def get(self, record_id: Any, *scopes: Scope) -> ModelT:
        """Return the record with ``record_id`` or raise :class:`RecordNotFound`."""

        record = self.find(record_id, *scopes)
        if record is None:
            logger.debug("%s %s not found", self.entity_name, record_id)
            raise RecordNotFound(self.entity_name, record_id)
        return record

    def list(
        self,
        *scopes: Scope,
        order_by: OrderBy = None,
        limit: int | None = None,
        offset: int | None = None,
        **filters: Any,
    ) -> list[ModelT]:
        """Return records matching every scope and equality filter."""

        statement = self._select(*scopes, **filters)
        if order_by is None:
            statement = statement.order_by(*self._default_order())
        elif isinstance(order_by, Sequence):
            statement = statement.order_by(*order_by)
        else:
            statement = statement.order_by(order_by)
        if limit is not None:
            statement = statement.limit(limit)
        if offset is not None:
            statement = statement.offset(offset)
        with self._storage_errors("list"):
            return list(self._session.scalars(statement))

    def count(self, *scopes: Scope, **filters: Any) -> int:
        statement = select(func.count()).select_from(self.model)
        statement = statement.where(*self._filter_criteria(filters))
        statement = apply_scopes(statement, scopes)
        with self._storage_errors("count"):
            return int(self._session.scalar(statement) or 0)

    def exists(self, record_id: Any) -> bool:
        return self.find(record_id) is not None

    # ------------------------------------------------------------------
    # Writes

    def _check_values(self, values: dict[str, Any], record: ModelT | None = None) -> None:
        for name in values:
            if name == "id" and record is not None:
                raise ValueError(f"{self.entity_name}.id cannot be changed")
            if not hasattr(self.model, name):
                raise ValueError(f"{self.entity_name} has no field {name!r}")

    def _before_write(self, values: dict[str, Any], record: ModelT | None = None) -> None:
        """Hook for subclasses to validate ``values`` before they are applied."""

    def create(self, **values: Any) -> ModelT:
        """Insert a new record and flush it; nothing is written on failure."""

        self._check_values(values)
        self._before_write(values)
        record = self.model(**values)
        with self._storage_errors("create"):
            with atomic(self._session):
                self._session.add(record)
                self._session.flush()
        return record

    def update(self, record_id: Any, **values: Any) -> ModelT:
        """Load ``record_id`` through the scoped read, then apply ``values``."""

        record = self.get(record_id)
        self._check_values(values, record)
        self._before_write(values, record)
        with self._storage_errors("update"):
            with atomic(self._session):
                for name, value in values.items():
                    setattr(record, name, value)
                self._session.flush()
        return record

    def delete(self, record_id: Any) -> None:
        """Permanently delete ``record_id``."""

        record = self.get(record_id)
        with self._storage_errors("delete"):
            with atomic(self._session):
                self._session.delete(record)
                self._session.flush()


def _model_for_table(table: Any) -> type[Any] | None:
    for mapper in Base.registry.mappers:
        if table in mapper.tables:
            return mapper.class_
    return None


class TenantRepository(_Repository[TenantModelT]):
    """Repository for tenant-owned entities.

    Must be used with a :class:`~app.models.tenancy.TenantSession`; every
    statement is then confined to the bound tenant and foreign keys are
    verified to resolve inside that tenant before a write is flushed.
    """

    _required_base = TenantModel

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        model = cls.__dict__.get("model")
        if model is not None:
            _REGISTRY[model] = cls

    def _before_write(self, values: dict[str, Any], record: TenantModelT | None = None) -> None:
        if isinstance(values.get("tenant_id"), str):
            values["tenant_id"] = uuid.UUID(values["tenant_id"])
        bound = get_current_tenant_id()
        owner = record.tenant_id if record is not None else values.get("tenant_id", bound)
        requested = values.get("tenant_id")
        if requested is not None:
            expected = owner if record is not None else bound
            if expected is not None and requested != expected:
                logger.warning(
                    "Rejected %s write for tenant %s (expected %s)",
                    self.entity_name,
                    requested,
                    expected,
                )
                raise TenantMismatch(expected, requested, entity=self.entity_name)
        self._check_references(values, owner)

    def _check_references(self, values: dict[str, Any], owner: uuid.UUID | None) -> None:
        table = self.model.__table__
        for foreign_key in table.foreign_keys:
            column = foreign_key.parent
            value = values.get(column.key)
            if value is None:
                continue
            target = _model_for_table(foreign_key.column.table)
            if target is None or not issubclass(target, TenantModel):
                continue
            statement = (
                select(target.tenant_id)
                .where(target.id == value)
                .execution_options(**{SOFT_DELETE_VISIBILITY: TrashedVisibility.INCLUDE})
            )
            with self._storage_errors("verify references of"):
                target_tenant = self._session.scalar(statement)
            if target_tenant is None or (owner is not None and target_tenant != owner):
                logger.debug(
                    "%s.%s references missing %s %s",
                    self.entity_name,
                    column.key,
                    target.__name__,
                    value,
                )
                raise ReferenceNotFound(target.__name__, value, column=column.key)


class SoftDeleteRepository(TenantRepository[TenantModelT]):
    """Tenant repository whose ``delete`` only sets ``deleted_at``."""

    def __init__(self, session: Session, model: type[TenantModelT] | None = None) -> None:
        super().__init__(session, model)
        if not issubclass(self.model, SoftDeletes):
            raise TypeError(f"{self.entity_name} does not support soft deletion")

    def delete(self, record_id: Any) -> None:
        self.soft_delete(record_id)

    def soft_delete(self, record_id: Any) -> TenantModelT:
        record = self.get(record_id)
        with self._storage_errors("soft-delete"):
            with atomic(self._session):
                record.soft_delete()
                self._session.flush()
        return record

    def restore(self, record_id: Any) -> TenantModelT:
        record = self.get(record_id, with_deleted())
        with self._storage_errors("restore"):
            with atomic(self._session):
                record.restore()
                self._session.flush()
        return record

    def force_delete(self, record_id: Any) -> None:
        """Erase ``record_id`` permanently, whether or not it is trashed."""

        record = self.get(record_id, with_deleted())
        with self._storage_errors("force-delete"):
            with atomic(self._session):
                self._session.delete(record)
                self._session.flush()

    def list_with_deleted(self, *scopes: Scope, **kwargs: Any) -> list[TenantModelT]:
        return self.list(with_deleted(), *scopes, **kwargs)

    def list_only_deleted(self, *scopes: Scope, **kwargs: Any) -> list[TenantModelT]:
        return self.list(only_deleted(), *scopes, **kwargs)


class PlatformRepository(_Repository[PlatformModelT]):
    """Repository for platform entities; the tenant context plays no part."""

    _required_base = PlatformBase


def repository_for(session: Session, model: type[TenantModelT]) -> TenantRepository[TenantModelT]:
    """Return the repository registered for ``model``.

    Models without a dedicated repository get the generic one matching their
    capabilities.
    """

    registered = _REGISTRY.get(model)
    if registered is not None:
        return registered(session)
    if issubclass(model, SoftDeletes):
        return SoftDeleteRepository(session, model)
    return TenantRepository(session, model)
