"""Pytest configuration and fixtures for GAPP directory tests.

This module provides fixtures for:
- Database: SQLite in-memory engine on a StaticPool
- Email: a recording EmailSender that can be told to fail
- Time: a controllable clock for the availability workflow
- HTTP client: AsyncClient over the FastAPI app with get_db overridden
"""

from collections.abc import AsyncGenerator, Generator
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from gapp_directory.config import Settings
from gapp_directory.database import Base, get_db
from gapp_directory.email_service import EmailDeliveryError, EmailSender
from gapp_directory.main import create_app
from gapp_directory.rate_limiter import reset_rate_limits


# -----------------------------------------------------------------------------
# Test doubles
# -----------------------------------------------------------------------------


class FakeEmailSender(EmailSender):
    """Records every message instead of sending it."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail_for: set[str] = set()
        self.fail_all = False

    def render(self, mjml_content: str) -> str:
        return mjml_content

    async def send(self, from_address, to, subject, html):
        if self.fail_all or to in self.fail_for:
            raise EmailDeliveryError(f"simulated failure for {to}")
        message = {"from": from_address, "to": to, "subject": subject, "html": html}
        self.sent.append(message)
        return {"id": f"fake-{len(self.sent)}"}

    def messages_to(self, address: str) -> list[dict]:
        return [m for m in self.sent if m["to"] == address]


class FakeClock:
    """Callable clock; tests move it with advance()."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# -----------------------------------------------------------------------------
# Test Settings
# -----------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with safe defaults."""
    return Settings(
        environment="test",
        database_url="sqlite://",
        base_url="https://gapp.test",
        admin_password="admin-test-password",
        cron_secret="cron-test-secret",
        whop_webhook_secret="whop-test-secret",
        whop_premium_product_id="prod_premium",
        whop_verified_product_id="prod_verified",
        email_from_address="GAPP <noreply@gapp.test>",
        leads_from_address="GAPP Leads <leads@gapp.test>",
        admin_email="admin@gapp.test",
        redis_url=None,
        rate_limit_enabled=False,
        db_log_slow_queries=False,
    )


@pytest.fixture
def fake_email() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def clock() -> FakeClock:
    # A Monday, 14:00 UTC
    return FakeClock(datetime(2026, 1, 5, 14, 0, 0))


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def sync_engine():
    """Create a synchronous SQLite in-memory engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(sync_engine) -> sessionmaker:
    return sessionmaker(bind=sync_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# -----------------------------------------------------------------------------
# App / HTTP client
# -----------------------------------------------------------------------------


@pytest.fixture
def test_app(test_settings, fake_email, session_factory):
    app = create_app(settings=test_settings, email_sender=fake_email)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers(test_settings) -> dict:
    return {"Authorization": f"Bearer {test_settings.admin_password}"}


@pytest.fixture
def cron_headers(test_settings) -> dict:
    return {"Authorization": f"Bearer {test_settings.cron_secret}"}


@pytest.fixture(autouse=True)
def clear_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()
