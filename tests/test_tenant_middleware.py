"""Integration tests for the tenant context middleware."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from typing import Any

import jwt
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from app.core.tenant_context import get_current_tenant_id
from app.core.tenant_middleware import (
    TenantContextMiddleware,
    TenantTokenValidationError,
    decode_tenant_token,
)

TENANT_ID = "7f3c2b4e-9d1a-4c6e-8b2f-0a1d2e3f4a5b"


@pytest.fixture(autouse=True)
def tenant_token_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure the middleware is enabled by configuring token settings."""

    monkeypatch.setenv("TENANT_TOKEN_SECRET", "secret-key")
    monkeypatch.setenv("TENANT_TOKEN_AUDIENCE", "hr-api")
    monkeypatch.setenv("TENANT_TOKEN_ISSUER", "auth.hr")
    monkeypatch.setenv("TENANT_TOKEN_ALGORITHM", "HS256")


def _create_app() -> FastAPI:
    """Build a FastAPI application instrumented with the tenant middleware."""

    app = FastAPI()
    app.add_middleware(TenantContextMiddleware)

    @app.get("/context")
    async def read_context(request: Request) -> JSONResponse:
        """Return the tenant context captured by the middleware."""

        context_tenant = get_current_tenant_id()
        return JSONResponse(
            {
                "tenant_id": request.state.tenant_id,
                "user_id": request.state.user_id,
                "context_tenant": str(context_tenant) if context_tenant else None,
            }
        )

    @app.get("/api/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @app.get("/api/version")
    async def version() -> JSONResponse:
        return JSONResponse({"version": "1.0.0"})

    return app


@pytest.fixture
def client() -> TestClient:
    with TestClient(_create_app(), raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def tenant_token_factory() -> Callable[..., str]:
    """Return a callable that issues signed tenant tokens for testing."""

    def _issue_token(
        *,
        tenant_id: str | None = TENANT_ID,
        user_id: str = "user-1",
        expires_in: int = 300,
        token_type: str = "access",
        secret: str = "secret-key",
    ) -> str:
        payload: dict[str, Any] = {
            "user_id": user_id,
            "aud": "hr-api",
            "iss": "auth.hr",
            "exp": int(time.time()) + expires_in,
            "type": token_type,
        }
        if tenant_id is not None:
            payload["tenant_id"] = tenant_id
        return str(jwt.encode(payload, secret, algorithm="HS256"))

    return _issue_token


def test_middleware_binds_tenant_for_the_request(
    client: TestClient, tenant_token_factory: Callable[..., str]
) -> None:
    token = tenant_token_factory()

    response = client.get("/context", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == {
        "tenant_id": TENANT_ID,
        "user_id": "user-1",
        "context_tenant": TENANT_ID,
    }
    assert get_current_tenant_id() is None


def test_missing_token_returns_unauthorized(client: TestClient) -> None:
    response = client.get("/context")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert get_current_tenant_id() is None


@pytest.mark.parametrize(
    "header",
    ["Basic dXNlcjpwYXNz", "Bearer", "Token abc"],
)
def test_non_bearer_credentials_are_rejected(client: TestClient, header: str) -> None:
    response = client.get("/context", headers={"Authorization": header})
    assert response.status_code == 401


@pytest.mark.parametrize(
    "overrides",
    [
        {"expires_in": -30},
        {"secret": "other-key"},
        {"tenant_id": None},
        {"tenant_id": "not-a-uuid"},
        {"token_type": "refresh"},
    ],
)
def test_invalid_tokens_return_unauthorized(
    client: TestClient,
    tenant_token_factory: Callable[..., str],
    overrides: dict[str, Any],
) -> None:
    token = tenant_token_factory(**overrides)

    response = client.get("/context", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert get_current_tenant_id() is None


def test_public_endpoints_bypass_auth(client: TestClient) -> None:
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/api/version").json() == {"version": "1.0.0"}


def test_consecutive_requests_do_not_share_tenants(
    client: TestClient, tenant_token_factory: Callable[..., str]
) -> None:
    other = str(uuid.uuid4())
    first = client.get(
        "/context", headers={"Authorization": f"Bearer {tenant_token_factory()}"}
    )
    second = client.get(
        "/context",
        headers={"Authorization": f"Bearer {tenant_token_factory(tenant_id=other)}"},
    )
    assert first.json()["context_tenant"] == TENANT_ID
    assert second.json()["context_tenant"] == other


def test_unconfigured_tokens_leave_requests_unbound(
    monkeypatch: pytest.MonkeyPatch, client: TestClient
) -> None:
    monkeypatch.delenv("TENANT_TOKEN_SECRET")

    response = client.get("/api/health")
    assert response.status_code == 200

    app = FastAPI()
    app.add_middleware(TenantContextMiddleware)

    @app.get("/whoami")
    async def whoami() -> JSONResponse:
        return JSONResponse({"tenant": get_current_tenant_id()})

    with TestClient(app) as bare:
        assert bare.get("/whoami").json() == {"tenant": None}


def test_decode_tenant_token_reports_expiry(tenant_token_factory: Callable[..., str]) -> None:
    with pytest.raises(TenantTokenValidationError, match="expired"):
        decode_tenant_token(tenant_token_factory(expires_in=-30))

    payload = decode_tenant_token(tenant_token_factory())
    assert payload["tenant_id"] == TENANT_ID
