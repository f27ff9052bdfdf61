from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class Organization(BaseModel):
    id: str
    slug: str
    title: str
    avatar_url: str | None = None
    role: str | None = None
    created_at: str | None = None


class OrganizationTemplate(BaseModel):
    """A repository instantiated from a catalog template for an organization."""

    id: str
    name: str
    repository_url: str
    repository_data: dict[str, Any]
    private: bool = False
    status: str = "CREATED"
    template_id: str
    organization_id: str
    authorization_id: str
    created_at: str | None = None
    updated_at: str | None = None
