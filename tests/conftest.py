"""Shared test fixtures for Stencil."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import aiosqlite
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

_migrations_dir = Path(__file__).resolve().parent.parent / "server" / "db" / "migrations"
MIGRATION_SQL = "\n".join(
    f.read_text() for f in sorted(_migrations_dir.glob("*.sql"))
)

# Stable IDs for seed data
ORG_ID = "org-test-001"
ORG_SLUG = "acme"
USER_ID = "user-test-001"
TEMPLATE_ID = "template-test-001"
TEMPLATE_URL = "https://github.com/acme/base-starter"
AUTHORIZATION_ID = "auth-test-001"
INSTALLATION_ID = 424242

ACCOUNT = {"login": "acme", "type": "Organization", "id": 9001}

NEW_REPOSITORY = {
    "id": 555,
    "name": "new-repo",
    "full_name": "acme/new-repo",
    "html_url": "https://github.com/acme/new-repo",
    "private": True,
    "default_branch": "main",
}


@pytest_asyncio.fixture
async def db():
    """In-memory SQLite database with schema + seed data."""
    conn = await aiosqlite.connect(":memory:")
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA foreign_keys=ON")
    await conn.executescript(MIGRATION_SQL)
    await conn.commit()

    await conn.execute(
        "INSERT INTO users (id, github_id, github_login, display_name) VALUES (?, ?, ?, ?)",
        (USER_ID, 12345, "testuser", "Test User"),
    )
    await conn.execute(
        "INSERT INTO organizations (id, slug, title) VALUES (?, ?, ?)",
        (ORG_ID, ORG_SLUG, "Acme"),
    )
    await conn.execute(
        "INSERT INTO templates (id, slug, title, description, repository_url, priority) VALUES (?, ?, ?, ?, ?, ?)",
        (TEMPLATE_ID, "base-starter", "Base starter", "Minimal project", TEMPLATE_URL, 1),
    )
    await conn.execute(
        "INSERT INTO github_app_authorizations (id, installation_id, account_type, account, user_id, organization_id) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (AUTHORIZATION_ID, INSTALLATION_ID, "Organization", json.dumps(ACCOUNT), USER_ID, ORG_ID),
    )
    await conn.commit()
    yield conn
    await conn.close()


async def count_org_templates(db) -> int:
    async with db.execute("SELECT COUNT(*) FROM organization_templates") as cursor:
        return (await cursor.fetchone())[0]


@pytest.fixture
def github_app():
    """Stand-in for a configured GitHubAppService; creation succeeds by default."""
    app = MagicMock()
    app.create_repository_from_template.return_value = dict(NEW_REPOSITORY)
    return app


# ---------------------------------------------------------------------------
# App / client fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(db):
    """FastAPI app with test DB injected."""
    from server.db import database as db_module
    original_db = db_module._db
    db_module._db = db

    from server.main import app as fastapi_app

    yield fastapi_app

    db_module._db = original_db


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def create_session(db, user_id: str = USER_ID) -> str:
    """Insert a session row and return the session ID."""
    import secrets
    sid = secrets.token_hex(24)
    await db.execute(
        "INSERT INTO sessions (id, user_id, expires_at) VALUES (?, ?, datetime('now', '+1 day'))",
        (sid, user_id),
    )
    await db.commit()
    return sid


@pytest_asyncio.fixture
async def member_client(app, db):
    """Client signed in as USER_ID, a member of the seeded organization."""
    sid = await create_session(db)
    await db.execute(
        "INSERT INTO org_memberships (user_id, org_id, role) VALUES (?, ?, ?)",
        (USER_ID, ORG_ID, "admin"),
    )
    await db.commit()

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        cookies={"stencil_session": sid},
    ) as ac:
        yield ac
