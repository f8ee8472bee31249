"""Helpers for configuring SQLAlchemy engine and session factories.

Two families of factories exist. Tenant-store sessions are
:class:`~app.models.tenancy.TenantSession` instances, so every ORM statement
they run is scoped to the bound tenant. Platform-store sessions are plain
:class:`~sqlalchemy.orm.Session` objects bound to whichever connection
:func:`~app.core.config.resolve_platform_url` picks for the current
configuration; that choice is re-evaluated on every call.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, TypeVar

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import DatabaseSettings, get_database_settings, resolve_platform_url

from . import Base, PlatformBase
from .tenancy import TenantSession

logger = logging.getLogger(__name__)

SessionT = TypeVar("SessionT", bound=Session)


def _configure_sqlite(engine: Engine) -> None:
    # pysqlite's implicit BEGIN breaks SAVEPOINT; emit BEGIN ourselves.

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):  # pragma: no cover - dialect hook
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _on_begin(connection):  # pragma: no cover - dialect hook
        connection.exec_driver_sql("BEGIN")


def get_engine(database_url: str | None = None, **kwargs: object) -> Engine:
    """Create a SQLAlchemy engine.

    Args:
        database_url: Optional database URL. When ``None`` the tenant store
            URL from :func:`~app.core.config.get_database_settings` is used.
        **kwargs: Additional keyword arguments forwarded to
            :func:`sqlalchemy.create_engine`.

    Returns:
        Configured SQLAlchemy :class:`~sqlalchemy.engine.Engine` instance.
    """

    url = database_url
    if url is None:
        settings = get_database_settings()
        url = settings.database_url
        kwargs.setdefault("echo", settings.echo)

    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)

    return engine


_ENGINES: dict[tuple[str, bool], Engine] = {}


def _redact(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def _shared_engine(url: str, echo: bool) -> Engine:
    key = (url, echo)
    engine = _ENGINES.get(key)
    if engine is None:
        logger.debug("Creating engine for %s", _redact(url))
        engine = _ENGINES[key] = get_engine(url, echo=echo)
    return engine


def dispose_engines() -> None:
    """Dispose every shared engine and forget it (used by tests and shutdown)."""

    while _ENGINES:
        _, engine = _ENGINES.popitem()
        engine.dispose()


def _tenant_engine(settings: DatabaseSettings) -> Engine:
    return _shared_engine(settings.database_url, settings.echo)


def _platform_engine(settings: DatabaseSettings) -> Engine:
    return _shared_engine(resolve_platform_url(settings), settings.echo)


def get_sessionmaker(
    database_url: str | None = None,
    *,
    engine: Engine | None = None,
) -> sessionmaker[TenantSession]:
    """Return a tenant-scoped session factory.

    Args:
        database_url: Explicit tenant store URL; defaults to ``DATABASE_URL``.
        engine: Pre-built engine to bind instead of the shared one.
    """

    if engine is None:
        if database_url is None:
            engine = _tenant_engine(get_database_settings())
        else:
            engine = _shared_engine(database_url, False)
    return sessionmaker(bind=engine, class_=TenantSession, expire_on_commit=False)


def get_platform_engine(settings: DatabaseSettings | None = None) -> Engine:
    """Return the engine for the platform store under the current configuration."""

    return _platform_engine(settings or get_database_settings())


def get_platform_sessionmaker(
    settings: DatabaseSettings | None = None,
    *,
    engine: Engine | None = None,
) -> sessionmaker[Session]:
    """Return a plain session factory for platform records."""

    bind = engine or get_platform_engine(settings)
    return sessionmaker(bind=bind, class_=Session, expire_on_commit=False)


@contextmanager
def _transactional(factory: sessionmaker[SessionT]) -> Iterator[SessionT]:
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def session_scope(
    database_url: str | None = None,
    *,
    engine: Engine | None = None,
) -> Iterator[TenantSession]:
    """Provide a transactional tenant-store scope around a series of operations."""

    with _transactional(get_sessionmaker(database_url, engine=engine)) as session:
        yield session


@contextmanager
def platform_session_scope(
    settings: DatabaseSettings | None = None,
    *,
    engine: Engine | None = None,
) -> Iterator[Session]:
    """Provide a transactional platform-store scope."""

    with _transactional(get_platform_sessionmaker(settings, engine=engine)) as session:
        yield session


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """Run a block inside a SAVEPOINT, rolling back everything it did on error.

    The enclosing transaction is begun if needed but never committed here:
    committing stays with :func:`session_scope` or the caller, so a later
    failure in the same scope still undoes this block's writes.
    """

    with session.begin_nested():
        yield session


def create_schema(engine: Engine | None = None, *, platform_engine: Engine | None = None) -> None:
    """Create the tenant and platform tables on their configured connections."""

    tenant_engine = engine or _tenant_engine(get_database_settings())
    Base.metadata.create_all(tenant_engine)
    PlatformBase.metadata.create_all(platform_engine or get_platform_engine())


__all__ = [
    "atomic",
    "create_schema",
    "dispose_engines",
    "get_engine",
    "get_platform_engine",
    "get_platform_sessionmaker",
    "get_sessionmaker",
    "platform_session_scope",
    "session_scope",
]
