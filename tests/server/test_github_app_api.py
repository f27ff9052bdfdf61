"""Tests for the GitHub App installation routes."""

from __future__ import annotations

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

from server.services.state_store import state_store
from server.utils.crypto import encrypt_token

from tests.conftest import ORG_ID, ORG_SLUG, USER_ID

NEW_INSTALLATION_ID = 31337
INSTALLATION = {
    "id": NEW_INSTALLATION_ID,
    "account": {"login": "acme-labs", "type": "Organization", "id": 4242},
    "repository_selection": "selected",
}


def _query(resp) -> dict:
    return {k: v[0] for k, v in parse_qs(urlparse(resp.headers["location"]).query).items()}


@pytest.fixture
def configured_app(github_app):
    github_app.install_url.side_effect = lambda state: f"https://github.com/apps/stencil/installations/new?state={state}"
    github_app.get_installation.return_value = INSTALLATION
    with patch("server.api.github_app.get_github_app", return_value=github_app):
        yield github_app


async def _store_user_token(db):
    await db.execute(
        "UPDATE users SET access_token_encrypted = ? WHERE id = ?",
        (encrypt_token("gho_user"), USER_ID),
    )
    await db.commit()


# ---------------------------------------------------------------------------
# /install
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_install_requires_session(client):
    resp = await client.get("/api/v1/github/app/install", params={"org": ORG_SLUG})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_install_redirects_with_state(member_client, configured_app):
    resp = await member_client.get("/api/v1/github/app/install", params={"org": ORG_SLUG})
    assert resp.status_code == 302
    state = _query(resp)["state"]
    assert await state_store.pop_state(state) == {
        "purpose": "install",
        "user_id": USER_ID,
        "org_slug": ORG_SLUG,
    }


@pytest.mark.asyncio
async def test_install_not_configured(member_client):
    with patch("server.api.github_app.get_github_app", return_value=None):
        resp = await member_client.get("/api/v1/github/app/install", params={"org": ORG_SLUG})
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# /callback
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_callback_invalid_state(member_client, configured_app):
    resp = await member_client.get(
        "/api/v1/github/app/callback",
        params={"state": "bogus", "installation_id": NEW_INSTALLATION_ID},
    )
    assert resp.status_code == 302
    assert _query(resp)["error"] == "invalid_state"


@pytest.mark.asyncio
async def test_callback_records_authorization(member_client, configured_app, db):
    await _store_user_token(db)
    state = await state_store.issue({"purpose": "install", "user_id": USER_ID, "org_slug": ORG_SLUG})

    with patch(
        "server.api.github_app._user_can_access_installation", return_value=True
    ) as access_check:
        resp = await member_client.get(
            "/api/v1/github/app/callback",
            params={"state": state, "installation_id": NEW_INSTALLATION_ID, "setup_action": "install"},
        )

    assert resp.status_code == 302
    access_check.assert_awaited_once()
    authorization_id = _query(resp)["authorization"]

    async with db.execute(
        "SELECT * FROM github_app_authorizations WHERE id = ?", (authorization_id,)
    ) as cursor:
        row = dict(await cursor.fetchone())
    assert row["installation_id"] == NEW_INSTALLATION_ID
    assert row["organization_id"] == ORG_ID
    assert row["account_type"] == "Organization"
    assert row["repository_selection"] == "selected"
    assert '"login": "acme-labs"' in row["account"]


@pytest.mark.asyncio
async def test_callback_rejects_inaccessible_installation(member_client, configured_app, db):
    state = await state_store.issue({"purpose": "install", "user_id": USER_ID, "org_slug": ORG_SLUG})

    with patch("server.api.github_app._user_can_access_installation", return_value=False):
        resp = await member_client.get(
            "/api/v1/github/app/callback",
            params={"state": state, "installation_id": NEW_INSTALLATION_ID},
        )

    assert _query(resp)["error"] == "installation_not_accessible"
    configured_app.get_installation.assert_not_called()


@pytest.mark.asyncio
async def test_callback_install_requested(member_client, configured_app):
    state = await state_store.issue({"purpose": "install", "user_id": USER_ID, "org_slug": ORG_SLUG})
    resp = await member_client.get(
        "/api/v1/github/app/callback",
        params={"state": state, "setup_action": "request"},
    )
    assert _query(resp)["status"] == "requested"


@pytest.mark.asyncio
async def test_callback_state_for_other_user(member_client, configured_app):
    state = await state_store.issue({"purpose": "install", "user_id": "someone-else", "org_slug": ORG_SLUG})
    resp = await member_client.get(
        "/api/v1/github/app/callback",
        params={"state": state, "installation_id": NEW_INSTALLATION_ID},
    )
    assert _query(resp)["error"] == "invalid_state"


# ---------------------------------------------------------------------------
# _user_can_access_installation
# ---------------------------------------------------------------------------

class TestUserCanAccessInstallation:
    @pytest.mark.asyncio
    async def test_no_token(self):
        from server.api.github_app import _user_can_access_installation
        assert await _user_can_access_installation({"access_token_encrypted": None}, 1) is False

    @pytest.mark.asyncio
    async def test_installation_listed(self):
        from unittest.mock import AsyncMock, MagicMock
        from server.api.github_app import _user_can_access_installation

        resp = MagicMock()
        resp.status_code = 200
        resp.json.return_value = {"installations": [{"id": 1}, {"id": NEW_INSTALLATION_ID}]}
        fake = MagicMock()
        fake.get = AsyncMock(return_value=resp)

        user = {"access_token_encrypted": encrypt_token("gho_user"), "github_login": "testuser"}
        with patch("server.api.github_app.httpx.AsyncClient") as MockClient:
            MockClient.return_value.__aenter__.return_value = fake
            assert await _user_can_access_installation(user, NEW_INSTALLATION_ID) is True
            assert await _user_can_access_installation(user, 2) is False

        headers = fake.get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer gho_user"
