"""GitHub App installation flow, linking an installation to an organization."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import RedirectResponse

from server.config import settings
from server.db.database import get_db
from server.db.queries import app_authorizations as auth_queries
from server.db.queries import organizations as org_queries
from server.services.github_app_service import get_github_app
from server.services.state_store import state_store
from server.utils.crypto import decrypt_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/github/app", tags=["github-app"])

GITHUB_USER_INSTALLATIONS_URL = "https://api.github.com/user/installations"


def _frontend_redirect(path: str, **params: str) -> RedirectResponse:
    query = f"?{urlencode(params)}" if params else ""
    return RedirectResponse(f"{settings.frontend_url}{path}{query}", status_code=302)


async def _user_can_access_installation(user: dict, installation_id: int) -> bool:
    """Ask GitHub, with the user's own token, whether they can see this installation."""
    token = decrypt_token(user.get("access_token_encrypted"))
    if not token:
        return False

    headers = {"Authorization": f"Bearer {token}", "Accept": "application/vnd.github+json"}
    async with httpx.AsyncClient() as client:
        resp = await client.get(GITHUB_USER_INSTALLATIONS_URL, headers=headers, params={"per_page": 100})
    if resp.status_code != 200:
        logger.warning("Listing installations for %s failed (status %d)", user.get("github_login"), resp.status_code)
        return False

    installations = resp.json().get("installations", [])
    return any(i.get("id") == installation_id for i in installations)


@router.get("/install")
async def install(org: str, request: Request):
    """Send the user to GitHub to install the app for one of their organizations."""
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=401, detail={"error": {"code": "UNAUTHORIZED", "message": "Authentication required"}})

    github_app = get_github_app()
    if github_app is None:
        raise HTTPException(status_code=400, detail={"error": {"code": "NOT_CONFIGURED", "message": "GitHub App not configured"}})

    db = await get_db()
    organization = await org_queries.get_org_by_slug(db, org)
    if not organization:
        raise HTTPException(status_code=404, detail={"error": {"code": "NOT_FOUND", "message": "Organization not found"}})
    if not await org_queries.get_membership(db, user["id"], organization["id"]):
        raise HTTPException(status_code=403, detail={"error": {"code": "FORBIDDEN", "message": "Not a member of this organization"}})

    state = await state_store.issue({"purpose": "install", "user_id": user["id"], "org_slug": org})
    return RedirectResponse(github_app.install_url(state), status_code=302)


@router.get("/callback")
async def install_callback(
    request: Request,
    state: str,
    installation_id: int | None = None,
    setup_action: str | None = None,
):
    """GitHub redirects here after the app is installed (or the install is requested)."""
    user = getattr(request.state, "user", None)
    state_data = await state_store.pop_state(state)
    if (
        not user
        or not state_data
        or state_data.get("purpose") != "install"
        or state_data.get("user_id") != user["id"]
    ):
        return _frontend_redirect("/", error="invalid_state")

    slug = state_data["org_slug"]
    templates_path = f"/orgs/{slug}/templates"

    if setup_action == "request":
        # An org owner has to approve the install; nothing to record yet
        return _frontend_redirect(templates_path, status="requested")
    if installation_id is None:
        return _frontend_redirect(templates_path, error="missing_installation")

    github_app = get_github_app()
    if github_app is None:
        return _frontend_redirect(templates_path, error="not_configured")

    if not await _user_can_access_installation(user, installation_id):
        return _frontend_redirect(templates_path, error="installation_not_accessible")

    installation = github_app.get_installation(installation_id)
    if not installation or not installation.get("account"):
        return _frontend_redirect(templates_path, error="installation_not_found")

    db = await get_db()
    organization = await org_queries.get_org_by_slug(db, slug)
    if not organization:
        return _frontend_redirect("/", error="organization_not_found")

    account = installation["account"]
    authorization_id = await auth_queries.upsert_authorization(
        db,
        installation_id=installation_id,
        account=account,
        user_id=user["id"],
        org_id=organization["id"],
        account_type=account.get("type", "User"),
        repository_selection=installation.get("repository_selection", "all"),
    )
    logger.info(
        "Installation %s (%s) linked to org %s", installation_id, account.get("login"), slug
    )
    return _frontend_redirect(templates_path, authorization=authorization_id)
