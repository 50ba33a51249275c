"""Test fixtures — a fresh in-memory database per test.

Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own aiosqlite in-memory engine (StaticPool keeps the
   single connection alive) with the schema created from Base.metadata.
2. The app's get_db dependency is overridden to yield that session, so
   routes and direct service calls in the same test see the same data.
3. The mailer is replaced by a RecordingMailer; tests read PINs and links
   out of its outbox instead of a real inbox.

Auth is NOT mocked: tests register, verify and log in through the real
endpoints and send real Bearer tokens.
"""

import os
import re
import uuid
from typing import Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DOCVAULT_JWT_SECRET", "test-secret-that-is-at-least-32-bytes-long")

from docvault.api.auth import get_mailer
from docvault.db.engine import get_db
from docvault.db.models import Base
from docvault.main import app
from docvault.services.mailer import MailDeliveryError, MailMessage, Mailer

TEST_DB_URL = "sqlite+aiosqlite://"
PASSWORD = "hunter22"


class RecordingMailer(Mailer):
    """Keeps every message in memory; can be told to fail."""

    def __init__(self):
        self.outbox: list[MailMessage] = []
        self.fail = False

    async def send(self, message: MailMessage) -> None:
        if self.fail:
            raise MailDeliveryError("SMTP server unreachable")
        self.outbox.append(message)

    def last_to(self, email: str) -> MailMessage:
        for message in reversed(self.outbox):
            if message.to == email:
                return message
        raise AssertionError(f"no mail sent to {email}")

    def last_code(self, email: str) -> str:
        match = re.search(r"\b(\d{6})\b", self.last_to(email).body)
        assert match, "no verification code in message"
        return match.group(1)

    def last_token(self, email: str) -> str:
        match = re.search(r"token=([0-9a-f]{64})", self.last_to(email).body)
        assert match, "no token link in message"
        return match.group(1)


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a throwaway in-memory database."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def mailer():
    return RecordingMailer()


@pytest_asyncio.fixture()
async def client(db_session, mailer):
    """HTTP client with get_db and the mailer overridden for testing."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def make_user(client, mailer):
    """Register + verify (PIN) + login; returns (user, token).

    Each call uses a fresh email unless one is given.
    """

    async def _make(email: Optional[str] = None, password: str = PASSWORD):
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        r = await client.post(
            "/api/auth/register", json={"email": email, "password": password}
        )
        assert r.status_code == 201, r.text

        r = await client.post(
            "/api/auth/verify-code",
            json={"email": email, "code": mailer.last_code(email)},
        )
        assert r.status_code == 200, r.text

        r = await client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        assert r.status_code == 200, r.text
        data = r.json()["data"]
        return data["user"], data["token"]

    return _make
