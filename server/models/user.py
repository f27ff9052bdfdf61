from __future__ import annotations

from pydantic import BaseModel


class User(BaseModel):
    id: str
    github_login: str
    display_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    is_admin: bool = False
