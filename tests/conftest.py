"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- A seeded SQLite database per test (file based, so concurrent sessions work)
- Repository and raw session fixtures
"""

import os

import pytest


# Set test environment variables BEFORE any app imports
os.environ["ASYNC_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DB_COMMAND_TIMEOUT_SECONDS"] = "10"
os.environ["VERSION"] = "v1"

EDITOR_ROLE = {"name": "editor", "description": "Can edit content"}


@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for async tests.

    Returns:
        str: Backend name ("asyncio")
    """
    return "asyncio"


@pytest.fixture
async def database(tmp_path):
    """
    Provide a migrated and seeded database.

    Roles: user, moderator, admin and editor.
    """
    from app.db.seed import DEFAULT_ROLES, seed_roles
    from app.db.session import DatabaseManager

    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}", echo=False)
    await manager.create_all()
    async with manager.async_session_factory() as session:
        await seed_roles(session, roles=DEFAULT_ROLES + [EDITOR_ROLE])

    yield manager

    await manager.disconnect()


@pytest.fixture
def repo(database):
    """UserRepository bound to the test database."""
    from app.api.v1.repositories import UserRepository

    return UserRepository(database.async_session_factory)


@pytest.fixture
async def raw_session(database):
    """
    Session used by tests to look at rows directly, bypassing the repository
    (soft-deleted users included).
    """
    async with database.async_session_factory() as session:
        yield session


@pytest.fixture
def make_user():
    """Build a UserCreate payload."""
    from app.api.v1.schemas import UserCreate

    def _make(name: str, email: str, password_hash: str = "$2b$12$hash") -> UserCreate:
        return UserCreate(name=name, email=email, password_hash=password_hash)

    return _make
