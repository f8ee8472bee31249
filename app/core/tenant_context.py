"""Runtime helpers for storing tenant-aware operation context.

This module exposes a small API around a :class:`contextvars.ContextVar`
that keeps track of the tenant an operation is executing for. The
``TenantContextMiddleware`` populates the context by calling
``set_tenant_context`` and obtains a token that must be passed back to
``reset_tenant_context`` once the response has been sent. Scripts and
background jobs use the :func:`tenant_context` context manager instead.

Repositories and the session hooks call :func:`current_tenant_id`, which
raises :class:`~app.core.errors.NoTenantContext` when nothing is bound.

A binding is fixed for the lifetime of an operation: rebinding the same
tenant is a no-op, binding a different tenant raises
:class:`~app.core.errors.TenantContextConflict`. Cross-tenant work goes
through :func:`all_tenants`, which yields a distinct :class:`AllTenants`
marker and is refused while a specific tenant is bound.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from uuid import UUID

from .errors import NoTenantContext, TenantContextConflict

__all__ = [
    "AllTenants",
    "TenantBinding",
    "all_tenants",
    "current_tenant_id",
    "get_current_tenant_id",
    "get_tenant_binding",
    "is_bypassed",
    "reset_tenant_context",
    "set_tenant_context",
    "tenant_context",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantBinding:
    """Values stored in the tenant context during an operation."""

    tenant_id: UUID
    user_id: str | None = None


@dataclass(frozen=True)
class AllTenants:
    """Marker bound while an administrative all-tenant operation runs."""

    reason: str


_tenant_context: ContextVar[TenantBinding | AllTenants | None] = ContextVar(
    "tenant_runtime_context", default=None
)


def _coerce_tenant_id(tenant_id: str | UUID) -> UUID:
    if isinstance(tenant_id, UUID):
        return tenant_id
    try:
        return UUID(str(tenant_id))
    except ValueError as exc:
        raise ValueError(f"Invalid tenant identifier: {tenant_id!r}") from exc


def set_tenant_context(
    tenant_id: str | UUID, user_id: str | None = None
) -> Token[TenantBinding | AllTenants | None]:
    """Bind ``tenant_id`` to the current execution context.

    Args:
        tenant_id: Identifier of the tenant extracted from the access token.
        user_id: Identifier of the authenticated user, when known.

    Returns:
        ``Token`` returned by :meth:`contextvars.ContextVar.set`. Callers must
        later pass this token to :func:`reset_tenant_context` to restore the
        previous value.

    Raises:
        TenantContextConflict: If a different tenant is already bound.
    """

    binding = TenantBinding(tenant_id=_coerce_tenant_id(tenant_id), user_id=user_id)
    current = _tenant_context.get()
    if isinstance(current, TenantBinding) and current.tenant_id != binding.tenant_id:
        raise TenantContextConflict(
            f"Operation is bound to tenant {current.tenant_id}; "
            f"cannot switch to {binding.tenant_id}."
        )
    return _tenant_context.set(binding)


def reset_tenant_context(token: Token[TenantBinding | AllTenants | None]) -> None:
    """Restore the tenant context to the state prior to ``set_tenant_context``."""

    _tenant_context.reset(token)


def get_tenant_binding() -> TenantBinding | AllTenants | None:
    """Return the raw value bound to the current context."""

    return _tenant_context.get()


def get_current_tenant_id() -> UUID | None:
    """Return the bound tenant identifier, or ``None`` when nothing is bound.

    Bypass mode also returns ``None``: no single tenant is being served.
    """

    context = _tenant_context.get()
    if isinstance(context, TenantBinding):
        return context.tenant_id
    return None


def current_tenant_id() -> UUID:
    """Return the bound tenant identifier or raise ``NoTenantContext``."""

    tenant_id = get_current_tenant_id()
    if tenant_id is None:
        raise NoTenantContext()
    return tenant_id


def is_bypassed() -> bool:
    """Return ``True`` while inside :func:`all_tenants`."""

    return isinstance(_tenant_context.get(), AllTenants)


@contextmanager
def tenant_context(tenant_id: str | UUID, user_id: str | None = None) -> Iterator[UUID]:
    """Run the enclosed block on behalf of ``tenant_id``."""

    token = set_tenant_context(tenant_id, user_id)
    try:
        yield _coerce_tenant_id(tenant_id)
    finally:
        reset_tenant_context(token)


@contextmanager
def all_tenants(reason: str) -> Iterator[AllTenants]:
    """Lift tenant scoping for an explicit administrative operation.

    Raises:
        TenantContextConflict: If called from code bound to a specific tenant.
        ValueError: If ``reason`` is blank.
    """

    if not reason or not reason.strip():
        raise ValueError("A reason is required to bypass tenant scoping.")
    current = _tenant_context.get()
    if isinstance(current, TenantBinding):
        raise TenantContextConflict(
            f"Cannot bypass tenant scoping while bound to tenant {current.tenant_id}."
        )

    marker = AllTenants(reason=reason.strip())
    logger.warning("Tenant scoping bypassed: %s", marker.reason)
    token = _tenant_context.set(marker)
    try:
        yield marker
    finally:
        _tenant_context.reset(token)
