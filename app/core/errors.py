"""Exceptions raised by the tenant-scoped data-access layer.

Every error here is a caller-facing outcome: none of them is retried or
swallowed by the layer itself. ``RecordNotFound`` is an expected result for a
missing record *or* a record owned by another tenant; the two cases are
deliberately indistinguishable. The remaining errors signal programming
mistakes (``NoTenantContext``, ``TenantMismatch``, ``TenantContextConflict``)
or environment failures (``StorageError``) and should be surfaced loudly.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "DecodeError",
    "InvalidTransition",
    "NoTenantContext",
    "NotFound",
    "RecordNotFound",
    "ReferenceNotFound",
    "StorageError",
    "TenantContextConflict",
    "TenantMismatch",
    "TenantScopeError",
]


class TenantScopeError(RuntimeError):
    """Base class for tenant boundary violations."""


class NoTenantContext(TenantScopeError):
    """Raised when tenant-scoped work is attempted without a bound tenant."""

    def __init__(self, message: str = "No tenant is bound to the current operation.") -> None:
        super().__init__(message)


class TenantContextConflict(TenantScopeError):
    """Raised when an operation tries to switch tenants or escape its binding."""


class TenantMismatch(TenantScopeError):
    """Raised when a write names a tenant other than the bound one."""

    def __init__(self, expected: Any, actual: Any, *, entity: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.entity = entity
        target = f" for {entity}" if entity else ""
        super().__init__(
            f"tenant_id {actual} does not match the current tenant {expected}{target}."
        )


class RecordNotFound(LookupError):
    """Raised when a record does not exist within the current tenant."""

    def __init__(self, entity: str, identifier: Any) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


NotFound = RecordNotFound


class ReferenceNotFound(RecordNotFound):
    """Raised when a foreign key points outside the current tenant."""

    def __init__(self, entity: str, identifier: Any, *, column: str) -> None:
        self.column = column
        super().__init__(entity, identifier)
        self.args = (f"{column} references {entity} {identifier}, which was not found",)


class InvalidTransition(ValueError):
    """Raised when a status workflow refuses a transition."""

    def __init__(self, current: Any, requested: Any) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition from {current} to {requested}")


class DecodeError(ValueError):
    """Raised when a stored value cannot be mapped onto its domain type."""

    def __init__(self, type_name: str, value: Any, reason: str | None = None) -> None:
        self.type_name = type_name
        self.value = value
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot decode {value!r} as {type_name}{detail}")


class StorageError(RuntimeError):
    """Raised when the storage engine fails underneath a repository call."""
