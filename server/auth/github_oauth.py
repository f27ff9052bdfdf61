"""GitHub OAuth flow for web app authentication."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Request, Response
from fastapi.responses import RedirectResponse

from server.auth.sessions import SESSION_COOKIE, SESSION_TTL_HOURS, create_session, delete_session
from server.config import settings
from server.db.database import get_db
from server.db.queries import organizations as org_queries
from server.db.queries import users as user_queries
from server.models.user import User
from server.services.state_store import state_store
from server.utils.crypto import encrypt_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_ORGS_URL = "https://api.github.com/user/orgs"


@router.get("/github/login")
async def github_login():
    """Redirect to GitHub OAuth authorization page."""
    state = await state_store.issue({"purpose": "login"})
    params = {
        "client_id": settings.github_client_id,
        "redirect_uri": f"{settings.app_base_url}/api/v1/auth/github/callback",
        "scope": "read:user read:org",
        "state": state,
    }
    return RedirectResponse(f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}")


@router.get("/github/callback")
async def github_callback(code: str, state: str):
    """Handle GitHub OAuth callback: upsert the user and their organizations, start a session."""
    state_data = await state_store.pop_state(state)
    if not state_data or state_data.get("purpose") != "login":
        return RedirectResponse(f"{settings.frontend_url}/login?error=invalid_state")

    async with httpx.AsyncClient() as client:
        token_resp = await client.post(
            GITHUB_TOKEN_URL,
            json={
                "client_id": settings.github_client_id,
                "client_secret": settings.github_client_secret,
                "code": code,
            },
            headers={"Accept": "application/json"},
        )
        access_token = token_resp.json().get("access_token")
        if not access_token:
            logger.warning("GitHub OAuth token exchange failed (status %d)", token_resp.status_code)
            return RedirectResponse(f"{settings.frontend_url}/login?error=token_failed")

        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        github_user = (await client.get(GITHUB_USER_URL, headers=headers)).json()
        orgs_resp = await client.get(GITHUB_ORGS_URL, headers=headers)
        github_orgs = orgs_resp.json() if orgs_resp.status_code == 200 else []

    db = await get_db()

    user_id = await user_queries.upsert_user(
        db,
        github_id=github_user["id"],
        github_login=github_user["login"],
        display_name=github_user.get("name"),
        email=github_user.get("email"),
        avatar_url=github_user.get("avatar_url"),
        access_token_encrypted=encrypt_token(access_token),
    )

    for gh_org in github_orgs:
        org_id = await org_queries.upsert_org(
            db,
            slug=gh_org["login"],
            title=gh_org.get("login"),
            avatar_url=gh_org.get("avatar_url"),
        )
        await org_queries.upsert_org_membership(db, user_id, org_id, role="member")

    # Every user also gets a personal organization named after their login
    personal_org_id = await org_queries.upsert_org(
        db,
        slug=github_user["login"],
        title=github_user.get("name") or github_user["login"],
        avatar_url=github_user.get("avatar_url"),
    )
    await org_queries.upsert_org_membership(db, user_id, personal_org_id, role="admin")

    session_id = await create_session(db, user_id)
    logger.info("User %s signed in", github_user["login"])

    redirect = RedirectResponse(f"{settings.frontend_url}/", status_code=302)
    redirect.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        httponly=True,
        samesite="lax",
        max_age=SESSION_TTL_HOURS * 3600,
        secure=not settings.app_base_url.startswith("http://localhost"),
    )
    return redirect


@router.get("/me")
async def get_current_user(request: Request):
    """Get the currently authenticated user."""
    user = getattr(request.state, "user", None)
    if not user:
        return {"user": None}
    return {"user": User.model_validate(user).model_dump()}


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Delete the server-side session and clear the cookie."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id:
        db = await get_db()
        await delete_session(db, session_id)
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}
