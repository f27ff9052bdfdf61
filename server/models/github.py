from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GitHubAccount(BaseModel):
    """The user or organization a GitHub App is installed on."""

    model_config = ConfigDict(extra="allow")

    login: str
    type: str


class AppAuthorization(BaseModel):
    id: str
    installation_id: int
    account_type: str
    account: GitHubAccount | None = None
    repository_selection: str = "all"
    organization_id: str
    created_at: str | None = None


class CreateRepositoryParams(BaseModel):
    template_owner: str
    template_repo: str
    owner: str
    name: str
    private: bool = False
