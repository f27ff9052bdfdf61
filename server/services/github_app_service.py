"""GitHub App wrapper using PyGithub for acting on behalf of installations."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from github import Auth, GithubException, GithubIntegration

from server.config import settings
from server.models.github import CreateRepositoryParams

logger = logging.getLogger(__name__)

GITHUB_APPS_URL = "https://github.com/apps"


class GitHubAppService:
    """Wraps a PyGithub GithubIntegration authenticated as the Stencil GitHub App."""

    def __init__(self, app_id: str, private_key: str, app_slug: str = ""):
        self.app_slug = app_slug
        self.integration = GithubIntegration(auth=Auth.AppAuth(app_id, private_key))

    def close(self):
        self.integration.close()

    def install_url(self, state: str) -> str:
        return f"{GITHUB_APPS_URL}/{self.app_slug}/installations/new?{urlencode({'state': state})}"

    def get_installation(self, installation_id: int) -> dict | None:
        """Installation JSON (account, repository_selection, ...), or None if unavailable."""
        try:
            installation = self.integration.get_app_installation(installation_id)
            return installation.raw_data
        except GithubException as e:
            logger.warning("Failed to fetch installation %s: %s", installation_id, e)
            return None
        except Exception as e:
            logger.error("Error fetching installation %s: %s", installation_id, e)
            return None

    def create_repository_from_template(
        self, params: CreateRepositoryParams, installation_id: int
    ) -> dict | None:
        """Generate a new repository from a template repository.

        Authenticates as the given installation. Returns the created repository
        JSON, or None if the request failed for any reason.
        """
        gh = None
        try:
            gh = self.integration.get_github_for_installation(installation_id)
            _, data = gh.requester.requestJsonAndCheck(
                "POST",
                f"/repos/{params.template_owner}/{params.template_repo}/generate",
                input={
                    "owner": params.owner,
                    "name": params.name,
                    "private": params.private,
                    "include_all_branches": False,
                },
            )
        except GithubException as e:
            logger.warning(
                "Failed to create %s/%s from template %s/%s: %s",
                params.owner, params.name, params.template_owner, params.template_repo, e,
            )
            return None
        except Exception as e:
            # Transport errors, bad App key / JWT, unexpected response shapes
            logger.error(
                "Error calling GitHub to create %s/%s from template %s/%s: %s",
                params.owner, params.name, params.template_owner, params.template_repo, e,
            )
            return None
        finally:
            if gh is not None:
                gh.close()

        return data or None


_github_app: GitHubAppService | None = None


def get_github_app() -> GitHubAppService | None:
    """The configured GitHub App, or None when no app id / private key is set."""
    global _github_app
    if _github_app is None and settings.github_app_configured:
        _github_app = GitHubAppService(
            settings.github_app_id,
            settings.github_app_private_key_pem,
            app_slug=settings.github_app_slug,
        )
    return _github_app


def reset_github_app() -> None:
    global _github_app
    if _github_app is not None:
        _github_app.close()
        _github_app = None
