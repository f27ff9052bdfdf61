"""Validation helpers shared by services and API routes."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import ValidationError


def format_validation_errors(exc: ValidationError) -> str:
    """Render every pydantic issue as one human-readable line.

    e.g. ``Code: string_too_short ~ Path: name ~ Message: String should have at least 3 characters``
    Issues are joined with `` | ``.
    """
    parts = []
    for err in exc.errors():
        path = ".".join(str(p) for p in err.get("loc", ())) or "(root)"
        parts.append(f"Code: {err['type']} ~ Path: {path} ~ Message: {err['msg']}")
    return " | ".join(parts)


def parse_repository_url(url: str) -> tuple[str, str] | None:
    """Return (owner, repo) from a repository URL, or None if it has no owner/repo path.

    https://github.com/acme/base-starter -> ("acme", "base-starter")
    """
    try:
        path = urlparse(url).path
    except (ValueError, AttributeError):
        return None
    segments = path.split("/")[1:3]
    if len(segments) < 2 or not all(segments):
        return None
    return segments[0], segments[1]
