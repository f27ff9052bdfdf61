from __future__ import annotations

import uuid

import aiosqlite


async def get_template(db: aiosqlite.Connection, template_id: str) -> dict | None:
    async with db.execute("SELECT * FROM templates WHERE id = ?", (template_id,)) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def get_template_by_slug(db: aiosqlite.Connection, slug: str) -> dict | None:
    async with db.execute("SELECT * FROM templates WHERE slug = ?", (slug,)) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def list_templates(db: aiosqlite.Connection, live_only: bool = True) -> list[dict]:
    sql = "SELECT * FROM templates"
    if live_only:
        sql += " WHERE is_live = 1"
    sql += " ORDER BY priority DESC, title"
    async with db.execute(sql) as cursor:
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]


async def upsert_template(
    db: aiosqlite.Connection,
    slug: str,
    title: str,
    repository_url: str,
    description: str = "",
    short_title: str | None = None,
    image_url: str | None = None,
    priority: int = 0,
    is_live: bool = True,
) -> str:
    """Insert or update a catalog template keyed by slug. Returns the template id."""
    existing = await get_template_by_slug(db, slug)
    if existing:
        await db.execute(
            """UPDATE templates SET title=?, description=?, short_title=?,
               repository_url=?, image_url=?, priority=?, is_live=?,
               updated_at=datetime('now')
               WHERE id=?""",
            (title, description, short_title, repository_url, image_url,
             priority, int(is_live), existing["id"]),
        )
        await db.commit()
        return existing["id"]

    template_id = str(uuid.uuid4())
    await db.execute(
        """INSERT INTO templates
           (id, slug, title, description, short_title, repository_url,
            image_url, priority, is_live)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (template_id, slug, title, description, short_title, repository_url,
         image_url, priority, int(is_live)),
    )
    await db.commit()
    return template_id
