"""Test fixtures for the ShelterSync API."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from sheltersync.api import deps
from sheltersync.core.config import get_settings
from sheltersync.core.security import get_password_hash
from sheltersync.db.base import Base
from sheltersync.db.session import dispose_engine, get_sessionmaker
from sheltersync.main import app
from sheltersync.models import User, UserRole

PASSWORD = "Passw0rd!"
_PASSWORD_HASH = get_password_hash(PASSWORD)


class RecordingSink:
    """Notification sink that keeps every message in memory."""

    def __init__(self) -> None:
        self.messages: list[dict[str, str]] = []

    def send(self, to: str, subject: str, body: str) -> None:
        self.messages.append({"to": to, "subject": subject, "body": body})

    def subjects_for(self, to: str) -> list[str]:
        return [msg["subject"] for msg in self.messages if msg["to"] == to]


class FailingSink:
    """Sink whose transport is always down."""

    def __init__(self) -> None:
        self.attempts = 0

    def send(self, to: str, subject: str, body: str) -> None:
        self.attempts += 1
        raise ConnectionError("SMTP relay unavailable")


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


async def _seed_users(session: AsyncSession) -> dict[str, User]:
    specs = {
        "shelter": ("Happy Tails", "shelter@example.com", UserRole.SHELTER),
        "other_shelter": ("Second Chance", "other.shelter@example.com", UserRole.SHELTER),
        "adopter": ("Alex Adopter", "alex@example.com", UserRole.ADOPTER),
        "second_adopter": ("Sam Adopter", "sam@example.com", UserRole.ADOPTER),
        "admin": ("Ada Admin", "admin@example.com", UserRole.ADMIN),
    }
    users = {
        key: User(
            name=name,
            email=email,
            hashed_password=_PASSWORD_HASH,
            role=role,
            location="Portland, OR",
        )
        for key, (name, email, role) in specs.items()
    }
    session.add_all(users.values())
    await session.commit()
    return users


@pytest_asyncio.fixture()
async def db_session(
    reset_database: None, db_url: str
) -> AsyncIterator[AsyncSession]:
    """Session bound to the freshly created test database."""
    async with get_sessionmaker(db_url)() as session:
        yield session


@pytest_asyncio.fixture()
async def users(db_session: AsyncSession) -> dict[str, User]:
    """Seeded shelters, adopters and an admin."""
    return await _seed_users(db_session)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest_asyncio.fixture()
async def app_context(
    reset_database: None, db_url: str, sink: RecordingSink
) -> AsyncIterator[dict[str, Any]]:
    """Yield an async client, seeded accounts and the recording sink."""
    async with get_sessionmaker(db_url)() as session:
        seeded = await _seed_users(session)
        context: dict[str, Any] = {
            f"{key}_id": user.id for key, user in seeded.items()
        }
        context.update({f"{key}_email": user.email for key, user in seeded.items()})
    context["password"] = PASSWORD
    context["sink"] = sink

    app.dependency_overrides[deps.get_notification_sink] = lambda: sink
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            context["client"] = client
            yield context
    finally:
        app.dependency_overrides.pop(deps.get_notification_sink, None)


@pytest.fixture()
def auth_headers(app_context: dict[str, Any]):
    """Return a coroutine that logs a seeded user in and builds auth headers."""
    client: AsyncClient = app_context["client"]

    async def _authenticate(email: str, password: str = PASSWORD) -> dict[str, str]:
        response = await client.post(
            "/api/v1/auth/token",
            data={"username": email, "password": password},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _authenticate
