import pathlib
import sys
import uuid
from collections.abc import Iterator

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))
from app.core.config import reset_database_settings_cache
from app.models import Base, PlatformBase
from app.models.session import dispose_engines, get_engine, get_platform_sessionmaker, get_sessionmaker
from app.models.tenancy import TenantSession


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = get_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    PlatformBase.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    PlatformBase.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[TenantSession]:
    return get_sessionmaker(engine=engine)


@pytest.fixture
def session(session_factory: sessionmaker[TenantSession]) -> Iterator[TenantSession]:
    with session_factory() as session:
        yield session
        session.rollback()


@pytest.fixture
def platform_session(engine: Engine) -> Iterator[Session]:
    with get_platform_sessionmaker(engine=engine)() as session:
        yield session
        session.rollback()


@pytest.fixture
def tenant_a() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def tenant_b() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("DATABASE_URL", "PLATFORM_DATABASE_URL", "DB_SINGLE_STORE", "DB_ECHO"):
        monkeypatch.delenv(name, raising=False)
    reset_database_settings_cache()
    yield
    reset_database_settings_cache()
    dispose_engines()
