from __future__ import annotations

import datetime as dt
import os
import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ["JWT_SECRET"] = "test-signing-key-with-enough-entropy-0123456789"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from ams.core.clock import FrozenClock  # noqa: E402
from ams.core.config import settings  # noqa: E402
from ams.core.security import PasswordHasher, TokenCodec, TokenSettings  # noqa: E402
from ams.db.base import Base  # noqa: E402
from ams.db.session import build_engine, get_db  # noqa: E402
from ams.main import app  # noqa: E402
from ams.models import User  # noqa: E402
from ams.services.api_keys import issue_api_key  # noqa: E402
from ams.services.auth import CredentialSessionManager  # noqa: E402
from ams.services.refresh_tokens import RefreshTokenStore  # noqa: E402
from ams.services.users import SqlUserDirectory, create_user  # noqa: E402

TEST_PASSWORD = "Passw0rd!"
EPOCH = dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc)


@pytest.fixture()
def engine() -> Engine:
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture()
def db(session_factory: sessionmaker) -> Session:
    session = session_factory()
    yield session
    session.close()


def make_file_engine(path: Path, *, immediate: bool = False) -> Engine:
    """File-backed SQLite engine usable from several threads.

    With ``immediate`` every transaction starts with BEGIN IMMEDIATE, so
    concurrent sessions queue on the write lock instead of deadlocking.
    """
    engine = build_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    if immediate:
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, _record):  # noqa: ANN001
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):  # noqa: ANN001
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(EPOCH)


@pytest.fixture()
def token_settings() -> TokenSettings:
    return settings.token_settings()


@pytest.fixture()
def codec(token_settings: TokenSettings, clock: FrozenClock) -> TokenCodec:
    return TokenCodec(token_settings, clock=clock)


def build_manager(session: Session, codec: TokenCodec, clock: FrozenClock) -> CredentialSessionManager:
    return CredentialSessionManager(
        store=RefreshTokenStore(session, clock=clock),
        users=SqlUserDirectory(session),
        codec=codec,
        passwords=PasswordHasher(),
        clock=clock,
    )


@pytest.fixture()
def manager(db: Session, codec: TokenCodec, clock: FrozenClock) -> CredentialSessionManager:
    return build_manager(db, codec, clock)


@pytest.fixture()
def make_user(db: Session):
    def _make_user(
        email: str = "alice@example.com",
        *,
        first_name: str = "Alice",
        last_name: str = "Anders",
        password: str = TEST_PASSWORD,
    ) -> User:
        return create_user(db, first_name=first_name, last_name=last_name, email=email, password=password)

    return _make_user


@pytest.fixture()
def client(session_factory: sessionmaker) -> TestClient:
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def api_headers(db: Session) -> dict[str, str]:
    api_key = issue_api_key(db, "test suite")
    return {settings.API_KEY_HEADER_NAME: api_key.key}
