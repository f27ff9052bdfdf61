"""Admin API routes for organizations, template catalog, organization templates.

All routes require a GitHub SSO session.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from server.db.database import get_db
from server.db.queries import app_authorizations as auth_queries
from server.db.queries import organization_templates as org_template_queries
from server.db.queries import organizations as org_queries
from server.db.queries import templates as template_queries
from server.models.common import ErrorDetail, ErrorResponse
from server.models.github import AppAuthorization, GitHubAccount
from server.models.organization import Organization, OrganizationTemplate
from server.models.template import AddTemplateError, Template
from server.services.github_app_service import get_github_app
from server.services.template_service import AddTemplateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

# Service error messages that map to something more specific than VALIDATION_ERROR
SERVICE_ERROR_CODES = {
    "App authorization not found": "NOT_FOUND",
    "Template not found": "NOT_FOUND",
    "GitHub App not configured": "NOT_CONFIGURED",
    "Account not found": "NOT_FOUND",
    "Failed to create repository": "GITHUB_ERROR",
}


def _error(status_code: int, code: str, message: str) -> HTTPException:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return HTTPException(status_code=status_code, detail=body.model_dump())


def _require_user(request: Request) -> dict:
    user = getattr(request.state, "user", None)
    if not user:
        raise _error(401, "UNAUTHORIZED", "Authentication required")
    return user


async def _require_member(db, user: dict, slug: str) -> dict:
    org = await org_queries.get_org_by_slug(db, slug)
    if not org:
        raise _error(404, "NOT_FOUND", "Organization not found")
    if not user.get("is_admin"):
        membership = await org_queries.get_membership(db, user["id"], org["id"])
        if not membership:
            raise _error(403, "FORBIDDEN", "Not a member of this organization")
    return org


async def _read_payload(request: Request) -> object:
    """Form fields as a dict, or the parsed JSON body for JSON requests."""
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            return await request.json()
        except ValueError:
            return None
    form = await request.form()
    return dict(form)


def _authorization_view(row: dict) -> AppAuthorization:
    try:
        account = GitHubAccount.model_validate_json(row.get("account") or "null")
    except ValidationError:
        account = None
    return AppAuthorization(
        id=row["id"],
        installation_id=row["installation_id"],
        account_type=row["account_type"],
        account=account,
        repository_selection=row["repository_selection"],
        organization_id=row["organization_id"],
        created_at=row.get("created_at"),
    )


# ── Organizations ──

@router.get("/orgs")
async def list_orgs(request: Request):
    user = _require_user(request)
    db = await get_db()
    orgs = await org_queries.list_orgs_for_user(db, user["id"])
    return {"items": [Organization.model_validate(o).model_dump() for o in orgs]}


@router.get("/orgs/{slug}/app-authorizations")
async def list_app_authorizations(slug: str, request: Request):
    user = _require_user(request)
    db = await get_db()
    org = await _require_member(db, user, slug)
    rows = await auth_queries.list_authorizations_for_org(db, org["id"])
    return {"items": [_authorization_view(r).model_dump() for r in rows]}


# ── Template catalog ──

@router.get("/templates")
async def list_templates(request: Request):
    _require_user(request)
    db = await get_db()
    templates = await template_queries.list_templates(db)
    return {"items": [Template.model_validate(t).model_dump() for t in templates]}


# ── Organization templates ──

@router.get("/orgs/{slug}/templates")
async def list_organization_templates(slug: str, request: Request):
    user = _require_user(request)
    db = await get_db()
    org = await _require_member(db, user, slug)
    items = await org_template_queries.list_for_org(db, org["id"])
    return {"items": [OrganizationTemplate.model_validate(i).model_dump() for i in items]}


@router.get("/orgs/{slug}/templates/{organization_template_id}")
async def get_organization_template(slug: str, organization_template_id: str, request: Request):
    user = _require_user(request)
    db = await get_db()
    org = await _require_member(db, user, slug)
    item = await org_template_queries.get_organization_template(db, organization_template_id)
    if not item or item["organization_id"] != org["id"]:
        raise _error(404, "NOT_FOUND", "Organization template not found")
    return OrganizationTemplate.model_validate(item).model_dump()


@router.post("/orgs/{slug}/templates", status_code=201)
async def create_organization_template(slug: str, request: Request):
    """Create a GitHub repository from a catalog template for this organization.

    Accepts the HTML form (``private=on`` when ticked) or an equivalent JSON body.
    """
    user = _require_user(request)
    db = await get_db()
    org = await _require_member(db, user, slug)
    payload = await _read_payload(request)

    # The installation used must belong to the organization in the path
    authorization_id = payload.get("appAuthorizationId") if isinstance(payload, dict) else None
    if isinstance(authorization_id, str):
        authorization = await auth_queries.get_authorization(db, authorization_id)
        if authorization and authorization["organization_id"] != org["id"]:
            logger.warning(
                "User %s tried to use authorization %s outside org %s", user["id"], authorization_id, slug
            )
            raise _error(404, "NOT_FOUND", "App authorization not found")

    service = AddTemplateService(db, get_github_app())
    result = await service.call(user["id"], slug, payload)

    if isinstance(result, AddTemplateError):
        code = SERVICE_ERROR_CODES.get(result.message, "VALIDATION_ERROR")
        raise _error(400, code, result.message)

    return result.template.model_dump()
