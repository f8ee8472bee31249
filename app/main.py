"""FastAPI application wiring for the HR data layer.

The HTTP surface is intentionally small: public health and version probes,
plus a tenant-scoped announcements feed that shows the request lifecycle end
to end. The tenant is bound by :class:`TenantContextMiddleware` before any
route runs, and every session opened by :func:`get_session` is a
``TenantSession`` that filters by that tenant.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, status

from .__version__ import __build_date__, __commit_sha__, __version__
from .app_logging import init_logging
from .core.errors import NoTenantContext
from .core.tenant_middleware import TenantContextMiddleware
from .models.session import session_scope
from .models.tenancy import TenantSession
from .repositories import AnnouncementRepository

logger = logging.getLogger(__name__)


def get_session() -> Iterator[TenantSession]:
    """Yield a tenant session committed when the request succeeds."""

    with session_scope() as session:
        yield session


def _serialize_announcement(announcement: Any) -> dict[str, Any]:
    return {
        "id": str(announcement.id),
        "title": announcement.title,
        "body": announcement.body,
        "is_pinned": announcement.is_pinned,
        "published_at": announcement.published_at.isoformat()
        if announcement.published_at
        else None,
        "expires_at": announcement.expires_at.isoformat() if announcement.expires_at else None,
    }


def create_app() -> FastAPI:
    """Build the application with logging and tenant binding installed."""

    load_dotenv()
    app = FastAPI()
    init_logging(app)
    app.add_middleware(TenantContextMiddleware)

    @app.get("/api/health")
    async def health():
        """Liveness/readiness probe with a minimal JSON body."""
        return {"status": "ok"}

    @app.get("/api/version")
    async def version():
        """Return version information for the application."""
        return {
            "version": __version__,
            "build_date": __build_date__,
            "commit_sha": __commit_sha__,
        }

    @app.get("/api/announcements")
    def announcements(session: TenantSession = Depends(get_session)):
        """Announcements currently published for the caller's tenant."""
        try:
            items = AnnouncementRepository(session).published()
        except NoTenantContext as exc:
            logger.warning("Announcements requested without a bound tenant")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Tenant context required.",
            ) from exc
        return [_serialize_announcement(item) for item in items]

    return app
