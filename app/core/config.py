"""Database routing configuration loaded from the environment.

Tenant-owned tables live in the store named by ``DATABASE_URL``. Platform
tables (tenants, plans, plan modules, users) live in the store named by
``PLATFORM_DATABASE_URL`` unless the deployment runs in single-store mode,
in which case both share the tenant store. Single-store mode is selected
when ``DB_SINGLE_STORE`` is truthy, when the tenant store is SQLite, or when
no platform URL is configured.
"""

from __future__ import annotations

import dataclasses
import os
from functools import lru_cache

from sqlalchemy.engine import make_url

__all__ = [
    "DatabaseSettings",
    "get_database_settings",
    "is_single_store",
    "reset_database_settings_cache",
    "resolve_platform_url",
]

_TRUTHY = {"1", "true", "yes", "y", "on"}


def _to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


@dataclasses.dataclass(frozen=True)
class DatabaseSettings:
    """Runtime configuration for the tenant and platform stores."""

    database_url: str
    platform_database_url: str | None = None
    single_store: bool = False
    echo: bool = False


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
    """Load settings from the environment."""

    database_url = os.getenv("DATABASE_URL")
    if not database_url or not database_url.strip():
        raise RuntimeError("DATABASE_URL is not configured.")
    platform_url = os.getenv("PLATFORM_DATABASE_URL") or None
    return DatabaseSettings(
        database_url=database_url.strip(),
        platform_database_url=platform_url.strip() if platform_url else None,
        single_store=_to_bool(os.getenv("DB_SINGLE_STORE")),
        echo=_to_bool(os.getenv("DB_ECHO")),
    )


def reset_database_settings_cache() -> None:
    """Clear cached database settings; useful in tests when env vars change."""

    get_database_settings.cache_clear()


def is_single_store(settings: DatabaseSettings) -> bool:
    """Return ``True`` when platform tables share the tenant store."""

    if settings.single_store or not settings.platform_database_url:
        return True
    return make_url(settings.database_url).get_backend_name() == "sqlite"


def resolve_platform_url(settings: DatabaseSettings) -> str:
    """Return the URL platform records must be read from and written to."""

    platform_url = settings.platform_database_url
    if platform_url and not is_single_store(settings):
        return platform_url
    return settings.database_url
