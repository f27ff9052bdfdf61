"""Organization template creation: GitHub App generates the repo, SQLite records it."""

from __future__ import annotations

import logging

import aiosqlite
from pydantic import ValidationError

from server.db.queries import app_authorizations as auth_queries
from server.db.queries import organization_templates as org_template_queries
from server.db.queries import templates as template_queries
from server.models.github import CreateRepositoryParams, GitHubAccount
from server.models.organization import OrganizationTemplate
from server.models.template import (
    AddTemplateError,
    AddTemplatePayload,
    AddTemplateResult,
    AddTemplateSuccess,
)
from server.services.github_app_service import GitHubAppService
from server.utils.validators import format_validation_errors, parse_repository_url

logger = logging.getLogger(__name__)


class AddTemplateService:
    """Creates a repository from a catalog template and links it to an organization.

    Every failure comes back as an AddTemplateError; the organization template
    row is written only after GitHub has created the repository.
    """

    def __init__(self, db: aiosqlite.Connection, github_app: GitHubAppService | None):
        self.db = db
        self.github_app = github_app

    async def call(
        self, user_id: str, organization_slug: str, payload: object
    ) -> AddTemplateResult:
        try:
            data = AddTemplatePayload.model_validate(payload)
        except ValidationError as e:
            return AddTemplateError(message=format_validation_errors(e))

        authorization = await auth_queries.get_authorization(self.db, data.app_authorization_id)
        if not authorization:
            return AddTemplateError(message="App authorization not found")

        template = await template_queries.get_template(self.db, data.template_id)
        if not template:
            return AddTemplateError(message="Template not found")

        if self.github_app is None:
            return AddTemplateError(message="GitHub App not configured")

        try:
            account = GitHubAccount.model_validate_json(authorization.get("account") or "null")
        except ValidationError:
            return AddTemplateError(message="Account not found")

        source = parse_repository_url(template["repository_url"])
        if source is None:
            logger.warning(
                "Template %s has no owner/repo in %s", template["id"], template["repository_url"]
            )
            return AddTemplateError(message="Failed to create repository")
        template_owner, template_repo = source

        repository = self.github_app.create_repository_from_template(
            CreateRepositoryParams(
                template_owner=template_owner,
                template_repo=template_repo,
                owner=account.login,
                name=data.name,
                private=data.private,
            ),
            installation_id=authorization["installation_id"],
        )
        if not repository or not repository.get("html_url"):
            return AddTemplateError(message="Failed to create repository")

        row = await org_template_queries.create_organization_template(
            self.db,
            name=data.name,
            repository_url=repository["html_url"],
            repository_data=repository,
            private=data.private,
            template_id=data.template_id,
            organization_slug=organization_slug,
            authorization_id=data.app_authorization_id,
        )
        logger.info(
            "User %s created %s from template %s for org %s",
            user_id, repository["html_url"], template["slug"], organization_slug,
        )
        return AddTemplateSuccess(template=OrganizationTemplate.model_validate(row))
