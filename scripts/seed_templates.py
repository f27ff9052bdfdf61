"""Seed the template catalog from a YAML file.

Usage: python -m scripts.seed_templates [path/to/templates.yml]

The file holds a list of templates, each with slug, title, repository_url and
optionally description, short_title, image_url, priority and is_live.
Templates are upserted by slug.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import aiosqlite
import yaml

from server.config import settings
from server.db.database import close_db, get_db, init_db
from server.db.queries import templates as template_queries

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("slug", "title", "repository_url")


def load_templates(path: Path) -> list[dict]:
    """Read and check the catalog file. Raises ValueError on malformed entries."""
    entries = yaml.safe_load(path.read_text()) or []
    if not isinstance(entries, list):
        raise ValueError(f"{path}: expected a list of templates")

    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: entry {i} is not a mapping")
        missing = [f for f in REQUIRED_FIELDS if not entry.get(f)]
        if missing:
            raise ValueError(f"{path}: entry {i} is missing {', '.join(missing)}")
    return entries


async def seed_templates(db: aiosqlite.Connection, entries: list[dict]) -> int:
    for entry in entries:
        await template_queries.upsert_template(
            db,
            slug=entry["slug"],
            title=entry["title"],
            repository_url=entry["repository_url"],
            description=entry.get("description", ""),
            short_title=entry.get("short_title"),
            image_url=entry.get("image_url"),
            priority=int(entry.get("priority", 0)),
            is_live=bool(entry.get("is_live", True)),
        )
        logger.info("Seeded template %s", entry["slug"])
    return len(entries)


async def _main(path: Path) -> int:
    entries = load_templates(path)
    await init_db()
    try:
        return await seed_templates(await get_db(), entries)
    finally:
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    target = Path(sys.argv[1] if len(sys.argv) > 1 else settings.templates_file)
    count = asyncio.run(_main(target))
    logger.info("Seeded %d templates from %s", count, target)
