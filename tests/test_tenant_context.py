"""Tests for the context-local tenant binding."""

from __future__ import annotations

import asyncio
import uuid

import pytest

from app.core.errors import NoTenantContext, TenantContextConflict
from app.core.tenant_context import (
    AllTenants,
    all_tenants,
    current_tenant_id,
    get_current_tenant_id,
    get_tenant_binding,
    is_bypassed,
    reset_tenant_context,
    set_tenant_context,
    tenant_context,
)


def test_current_tenant_raises_when_unbound() -> None:
    assert get_current_tenant_id() is None
    with pytest.raises(NoTenantContext):
        current_tenant_id()


def test_tenant_context_binds_and_restores(tenant_a: uuid.UUID) -> None:
    with tenant_context(str(tenant_a), user_id="user-1") as bound:
        assert bound == tenant_a
        assert current_tenant_id() == tenant_a
        binding = get_tenant_binding()
        assert binding.user_id == "user-1"
    assert get_tenant_binding() is None


def test_rebinding_same_tenant_is_allowed(tenant_a: uuid.UUID) -> None:
    with tenant_context(tenant_a):
        with tenant_context(tenant_a):
            assert current_tenant_id() == tenant_a
        assert current_tenant_id() == tenant_a


def test_switching_tenant_inside_operation_is_refused(
    tenant_a: uuid.UUID, tenant_b: uuid.UUID
) -> None:
    with tenant_context(tenant_a):
        with pytest.raises(TenantContextConflict):
            set_tenant_context(tenant_b)
        assert current_tenant_id() == tenant_a


def test_invalid_tenant_identifier_is_rejected() -> None:
    with pytest.raises(ValueError):
        set_tenant_context("not-a-uuid")
    assert get_tenant_binding() is None


def test_set_and_reset_round_trip(tenant_a: uuid.UUID) -> None:
    token = set_tenant_context(tenant_a)
    try:
        assert current_tenant_id() == tenant_a
    finally:
        reset_tenant_context(token)
    assert get_current_tenant_id() is None


def test_all_tenants_yields_distinct_marker(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("WARNING", logger="app.core.tenant_context"):
        with all_tenants("nightly export") as marker:
            assert isinstance(marker, AllTenants)
            assert is_bypassed()
            assert get_current_tenant_id() is None
            with pytest.raises(NoTenantContext):
                current_tenant_id()
    assert not is_bypassed()
    assert "nightly export" in caplog.text


def test_all_tenants_requires_reason() -> None:
    with pytest.raises(ValueError):
        with all_tenants("  "):
            pass


def test_all_tenants_refused_while_bound(tenant_a: uuid.UUID) -> None:
    with tenant_context(tenant_a):
        with pytest.raises(TenantContextConflict):
            with all_tenants("escape"):
                pass


def test_bindings_do_not_leak_between_concurrent_tasks(
    tenant_a: uuid.UUID, tenant_b: uuid.UUID
) -> None:
    async def observe(tenant: uuid.UUID) -> uuid.UUID:
        with tenant_context(tenant):
            await asyncio.sleep(0)
            return current_tenant_id()

    async def run() -> list[uuid.UUID]:
        return list(await asyncio.gather(observe(tenant_a), observe(tenant_b)))

    assert asyncio.run(run()) == [tenant_a, tenant_b]
    assert get_tenant_binding() is None
