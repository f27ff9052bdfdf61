from __future__ import annotations

import uuid

import aiosqlite


async def list_orgs_for_user(db: aiosqlite.Connection, user_id: str) -> list[dict]:
    sql = """
        SELECT o.*, om.role FROM organizations o
        JOIN org_memberships om ON om.org_id = o.id
        WHERE om.user_id = ?
        ORDER BY o.title
    """
    async with db.execute(sql, (user_id,)) as cursor:
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]


async def get_org_by_slug(db: aiosqlite.Connection, slug: str) -> dict | None:
    async with db.execute("SELECT * FROM organizations WHERE slug = ?", (slug,)) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def get_membership(
    db: aiosqlite.Connection, user_id: str, org_id: str
) -> dict | None:
    async with db.execute(
        "SELECT * FROM org_memberships WHERE user_id = ? AND org_id = ?",
        (user_id, org_id),
    ) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def upsert_org(
    db: aiosqlite.Connection,
    slug: str,
    title: str | None = None,
    avatar_url: str | None = None,
) -> str:
    existing = await get_org_by_slug(db, slug)
    if existing:
        await db.execute(
            "UPDATE organizations SET title=?, avatar_url=?, updated_at=datetime('now') WHERE id=?",
            (title or existing["title"], avatar_url, existing["id"]),
        )
        await db.commit()
        return existing["id"]

    org_id = str(uuid.uuid4())
    await db.execute(
        "INSERT INTO organizations (id, slug, title, avatar_url) VALUES (?, ?, ?, ?)",
        (org_id, slug, title or slug, avatar_url),
    )
    await db.commit()
    return org_id


async def upsert_org_membership(
    db: aiosqlite.Connection, user_id: str, org_id: str, role: str = "member"
) -> None:
    await db.execute(
        """INSERT INTO org_memberships (user_id, org_id, role)
           VALUES (?, ?, ?)
           ON CONFLICT(user_id, org_id) DO UPDATE SET role=excluded.role""",
        (user_id, org_id, role),
    )
    await db.commit()
