"""Shared test fixtures.

Database tests run against an in-memory SQLite database (one shared connection
through StaticPool). The app gets its Database on ``app.state`` directly since
ASGITransport does not run the lifespan; Redis is left out so rate limiting
passes requests through.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from zeclub.auth.jwt import create_access_token, reset_keys
from zeclub.config import get_settings
from zeclub.database import Database
from zeclub.db.base import Base
from zeclub.db.models import Mission, Reward, User
from zeclub.gamification.rank_thresholds import apply_rank
from zeclub.main import create_app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session", autouse=True)
def jwt_keys(tmp_path_factory: pytest.TempPathFactory) -> tuple[str, str]:
    """Generate an RSA key pair for the test session and point the settings at it."""
    key_dir = tmp_path_factory.mktemp("jwt_keys")
    private_path = key_dir / "jwt_private.pem"
    public_path = key_dir / "jwt_public.pem"

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_path.write_bytes(key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    public_path.write_bytes(key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ))

    os.environ["ZE_JWT_PRIVATE_KEY_PATH"] = str(private_path)
    os.environ["ZE_JWT_PUBLIC_KEY_PATH"] = str(public_path)
    get_settings.cache_clear()
    reset_keys()
    return str(private_path), str(public_path)


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh in-memory database with all tables created."""
    db = Database(TEST_DATABASE_URL)
    await db.connect()
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.dispose()


@pytest.fixture
def session_factory(database: Database) -> async_sessionmaker[AsyncSession]:
    return database.session_factory


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for service tests and assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(database: Database) -> FastAPI:
    application = create_app()
    application.state.db = database
    application.state.redis = None
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the in-memory database."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[User]]:
    """Create a committed user. Rank fields follow ``experience``."""
    counter = {"n": 0}

    async def _make(**fields: Any) -> User:
        counter["n"] += 1
        n = counter["n"]
        fields.setdefault("email", f"player{n}@zeroerror.gg")
        fields.setdefault("name", f"Player {n}")
        fields.setdefault("ze_tag", f"ZE{n:03d}")
        fields.setdefault("roles", ["user"])
        fields.setdefault("ze_coins", 0)
        fields.setdefault("experience", 0)
        fields.setdefault("points", fields["experience"])
        user = User(**fields)
        apply_rank(user)
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _make


@pytest.fixture
def make_mission(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[Mission]]:
    """Create a committed, open mission."""

    async def _make(**fields: Any) -> Mission:
        fields.setdefault("name", "Follow us on Instagram")
        fields.setdefault("description", "Follow the club account")
        fields.setdefault("instructions", "Upload a screenshot of the follow")
        fields.setdefault("points", 100)
        fields.setdefault("active", True)
        fields.setdefault("is_time_limited", False)
        fields.setdefault("current_completions", 0)
        mission = Mission(**fields)
        async with session_factory() as session:
            session.add(mission)
            await session.commit()
        return mission

    return _make


@pytest.fixture
def make_reward(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[Reward]]:
    """Create a committed reward."""

    async def _make(**fields: Any) -> Reward:
        fields.setdefault("name", "ZE Jersey")
        fields.setdefault("description", "Official team jersey")
        fields.setdefault("cost", 100)
        fields.setdefault("stock", 5)
        fields.setdefault("required_rank", "Rookie")
        fields.setdefault("exclusive_to_top3", False)
        fields.setdefault("discountable", True)
        reward = Reward(**fields)
        async with session_factory() as session:
            session.add(reward)
            await session.commit()
        return reward

    return _make


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.roles)}"}


@pytest_asyncio.fixture
async def member(make_user: Callable[..., Awaitable[User]]) -> User:
    return await make_user(name="Ace", ze_tag="ACE", email="ace@zeroerror.gg")


@pytest_asyncio.fixture
async def admin(make_user: Callable[..., Awaitable[User]]) -> User:
    return await make_user(name="Coach", ze_tag="COACH", email="coach@zeroerror.gg", roles=["user", "admin"])


@pytest.fixture
def member_headers(member: User) -> dict[str, str]:
    return bearer(member)


@pytest.fixture
def admin_headers(admin: User) -> dict[str, str]:
    return bearer(admin)
