from __future__ import annotations

import json
import uuid

import aiosqlite


def _row_to_dict(row: aiosqlite.Row) -> dict:
    item = dict(row)
    if isinstance(item.get("repository_data"), str):
        item["repository_data"] = json.loads(item["repository_data"])
    item["private"] = bool(item.get("private"))
    return item


async def get_organization_template(
    db: aiosqlite.Connection, organization_template_id: str
) -> dict | None:
    async with db.execute(
        "SELECT * FROM organization_templates WHERE id = ?", (organization_template_id,)
    ) as cursor:
        row = await cursor.fetchone()
        return _row_to_dict(row) if row else None


async def list_for_org(db: aiosqlite.Connection, org_id: str) -> list[dict]:
    async with db.execute(
        "SELECT * FROM organization_templates WHERE organization_id = ? ORDER BY created_at DESC",
        (org_id,),
    ) as cursor:
        rows = await cursor.fetchall()
        return [_row_to_dict(r) for r in rows]


async def create_organization_template(
    db: aiosqlite.Connection,
    name: str,
    repository_url: str,
    repository_data: dict,
    private: bool,
    template_id: str,
    organization_slug: str,
    authorization_id: str,
) -> dict:
    """Insert an organization template and return the stored row.

    The organization is connected by slug; an unknown slug violates the
    NOT NULL constraint on organization_id and raises IntegrityError.
    """
    organization_template_id = str(uuid.uuid4())
    await db.execute(
        """INSERT INTO organization_templates
           (id, name, repository_url, repository_data, private,
            template_id, organization_id, authorization_id)
           VALUES (?, ?, ?, ?, ?, ?, (SELECT id FROM organizations WHERE slug = ?), ?)""",
        (organization_template_id, name, repository_url, json.dumps(repository_data),
         int(private), template_id, organization_slug, authorization_id),
    )
    await db.commit()
    return await get_organization_template(db, organization_template_id)
