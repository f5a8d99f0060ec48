"""
pytest Fixtures for Library Catalog API Tests

Shared fixtures:
- engine / connection / db_session: SQLite in-memory database, every test
  wrapped in a transaction that is rolled back afterwards
- client: TestClient whose get_db and session store both use that
  transaction
- principal / auth_client: a client logged in through a faked Google
  callback
- sample_author / sample_book: test data
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["ENVIRONMENT"] = "development"

from collections.abc import Generator
from datetime import date
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from library_api.database import Base, get_db
from library_api.main import app
from library_api.models import Author, Book
from library_api.schemas.principal import Principal
from library_api.services.sessions import DatabaseSessionStore

# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    """
    SQLite in-memory engine shared by the whole test run.

    StaticPool keeps the single connection alive; without it the in-memory
    database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite does not emit BEGIN/SAVEPOINT itself; let SQLAlchemy do it so
    # the per-test transaction and savepoints really roll back.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def connection(engine: Engine) -> Generator[Connection, None, None]:
    """A connection inside a transaction that is rolled back after the test."""
    connection = engine.connect()
    transaction = connection.begin()

    yield connection

    transaction.rollback()
    connection.close()


@pytest.fixture
def session_factory(connection: Connection) -> sessionmaker[Session]:
    """
    Sessions joined to the test transaction.

    commit() inside the app does not end the outer transaction, so all
    changes still disappear at rollback.
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection,
        join_transaction_mode="create_savepoint",
    )


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def session_store(session_factory: sessionmaker[Session]) -> DatabaseSessionStore:
    return DatabaseSessionStore(session_factory)


@pytest.fixture
def client(
    db_session: Session,
    session_store: DatabaseSessionStore,
) -> Generator[TestClient, None, None]:
    """
    Test client using the test database for both entities and sessions.

    The real app is used; only get_db and the session store are swapped.
    """

    def override_get_db():
        yield db_session

    original_store = app.state.session_store
    app.state.session_store = session_store
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.session_store = original_store


# =============================================================================
# AUTHENTICATION FIXTURES
# =============================================================================


@pytest.fixture
def principal() -> Principal:
    return Principal(
        id="109876543210987654321",
        display_name="Ada Lovelace",
        emails=["ada@example.com"],
        photos=["https://example.com/ada.png"],
        provider="google",
    )


@pytest.fixture
def fake_google(monkeypatch: pytest.MonkeyPatch, principal: Principal) -> AsyncMock:
    """Replace the Google code exchange; returns the principal by default."""
    exchange = AsyncMock(return_value=principal)
    monkeypatch.setattr(app.state.identity, "exchange_code", exchange)
    return exchange


def login(client: TestClient) -> None:
    response = client.get("/auth/google/callback?code=test-code", follow_redirects=False)
    assert response.status_code == 302


@pytest.fixture
def auth_client(client: TestClient, fake_google: AsyncMock) -> TestClient:
    """A client holding a logged-in session cookie."""
    login(client)
    return client


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_author(db_session: Session) -> Author:
    author = Author(
        first_name="J.R.R.",
        last_name="Tolkien",
        date_of_birth=date(1892, 1, 3),
        date_of_death=date(1973, 9, 2),
        nationality="British",
    )
    db_session.add(author)
    db_session.commit()
    db_session.refresh(author)
    return author


@pytest.fixture
def sample_book(db_session: Session, sample_author: Author) -> Book:
    book = Book(
        title="The Hobbit",
        author_id=sample_author.id,
        summary="A reluctant hobbit goes on an adventure.",
        isbn="978-0547928227",
        genre=["Fantasy", "Adventure"],
        published_year=1937,
        page_count=310,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book
