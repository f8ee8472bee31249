"""Middleware binding the tenant context for each HTTP request.

The bearer token issued by the identity service names the tenant the caller
acts for. The middleware validates it with PyJWT, binds the tenant through
:func:`~app.core.tenant_context.set_tenant_context` for the duration of the
request and always resets the binding afterwards, so a request can never
observe another request's tenant.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable, Iterable
from typing import TypedDict, cast

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse
from jwt import ExpiredSignatureError, InvalidTokenError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from .errors import TenantContextConflict
from .tenant_context import reset_tenant_context, set_tenant_context

__all__ = [
    "DEFAULT_PUBLIC_PATHS",
    "TenantContextMiddleware",
    "TenantTokenConfigurationError",
    "TenantTokenPayload",
    "TenantTokenValidationError",
    "decode_tenant_token",
]

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_PATHS = frozenset({"/api/health", "/api/version"})


class TenantTokenConfigurationError(RuntimeError):
    """Raised when tenant token configuration is invalid."""


class TenantTokenValidationError(ValueError):
    """Raised when the provided tenant token cannot be validated."""


class _TenantTokenRequiredClaims(TypedDict):
    tenant_id: str


class TenantTokenPayload(_TenantTokenRequiredClaims, total=False):
    """Decoded JWT payload for tenant-scoped requests."""

    user_id: str
    aud: str | list[str]
    exp: int
    iat: int
    iss: str
    type: str


def _get_env(name: str, *, required: bool = True, default: str | None = None) -> str:
    value = os.getenv(name, default)
    if required and (value is None or not value.strip()):
        raise TenantTokenConfigurationError(
            f"Environment variable '{name}' must be set for tenant token validation.",
        )
    if value is None:
        return ""
    return value.strip()


def tokens_configured() -> bool:
    """Return ``True`` when the token secret, audience and issuer are all set."""

    required = (
        os.getenv("TENANT_TOKEN_SECRET"),
        os.getenv("TENANT_TOKEN_AUDIENCE"),
        os.getenv("TENANT_TOKEN_ISSUER"),
    )
    return all(value and value.strip() for value in required)


def decode_tenant_token(token: str) -> TenantTokenPayload:
    """Decode and validate a tenant access token.

    Raises:
        TenantTokenConfigurationError: If mandatory environment configuration is missing.
        TenantTokenValidationError: If token signature, claims, or expiry are invalid.
    """

    secret_key = _get_env("TENANT_TOKEN_SECRET")
    audience = _get_env("TENANT_TOKEN_AUDIENCE")
    issuer = _get_env("TENANT_TOKEN_ISSUER")
    algorithm = _get_env("TENANT_TOKEN_ALGORITHM", required=False, default="HS256")

    try:
        payload = jwt.decode(
            token,
            secret_key,
            algorithms=[algorithm],
            audience=audience,
            issuer=issuer,
            options={"require": ["exp", "aud", "iss"]},
        )
    except ExpiredSignatureError as exc:
        raise TenantTokenValidationError("Tenant token has expired.") from exc
    except InvalidTokenError as exc:
        raise TenantTokenValidationError("Tenant token is invalid.") from exc

    if not payload.get("tenant_id"):
        raise TenantTokenValidationError("Tenant token payload must include 'tenant_id'.")
    type_claim = payload.get("type")
    if type_claim and type_claim != "access":
        raise TenantTokenValidationError("Tenant token must be an access token.")

    return cast(TenantTokenPayload, payload)


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Bind the caller's tenant for every non-public request."""

    def __init__(self, app: ASGIApp, *, public_paths: Iterable[str] | None = None) -> None:
        super().__init__(app)
        self._public_paths = frozenset(
            DEFAULT_PUBLIC_PATHS if public_paths is None else public_paths
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        if not tokens_configured() or self._should_bypass(request):
            return await call_next(request)

        authorization = request.headers.get("Authorization")
        if not authorization:
            return _unauthorized("Missing Authorization header.")

        scheme, _, credentials = authorization.partition(" ")
        if not credentials or scheme.lower() != "bearer":
            return _unauthorized("Authorization header must use Bearer scheme.")

        try:
            payload = decode_tenant_token(credentials)
        except TenantTokenConfigurationError as exc:
            logger.error("Tenant token configuration error: %s", exc)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": str(exc)},
            )
        except TenantTokenValidationError as exc:
            return _unauthorized(str(exc))

        user_id = payload.get("user_id")
        try:
            token = set_tenant_context(payload["tenant_id"], user_id)
        except ValueError:
            return _unauthorized("Tenant token carries an invalid tenant_id.")
        except TenantContextConflict:
            logger.error("Request arrived with a tenant already bound; refusing to rebind.")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": "Tenant context already bound."},
            )

        request.state.tenant_id = payload["tenant_id"]
        request.state.user_id = user_id
        try:
            return await call_next(request)
        finally:
            reset_tenant_context(token)

    def _should_bypass(self, request: Request) -> bool:
        if request.method.upper() == "OPTIONS":
            return True
        return request.url.path in self._public_paths
