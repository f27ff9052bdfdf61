from __future__ import annotations

import json
import uuid

import aiosqlite


async def get_authorization(db: aiosqlite.Connection, authorization_id: str) -> dict | None:
    async with db.execute(
        "SELECT * FROM github_app_authorizations WHERE id = ?", (authorization_id,)
    ) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def get_authorization_by_installation(
    db: aiosqlite.Connection, installation_id: int
) -> dict | None:
    async with db.execute(
        "SELECT * FROM github_app_authorizations WHERE installation_id = ?",
        (installation_id,),
    ) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def list_authorizations_for_org(db: aiosqlite.Connection, org_id: str) -> list[dict]:
    async with db.execute(
        "SELECT * FROM github_app_authorizations WHERE organization_id = ? ORDER BY created_at",
        (org_id,),
    ) as cursor:
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]


async def upsert_authorization(
    db: aiosqlite.Connection,
    installation_id: int,
    account: dict,
    user_id: str,
    org_id: str,
    account_type: str = "User",
    repository_selection: str = "all",
) -> str:
    """Record a GitHub App installation for an organization. Returns the authorization id."""
    account_json = json.dumps(account)
    existing = await get_authorization_by_installation(db, installation_id)
    if existing:
        await db.execute(
            """UPDATE github_app_authorizations
               SET account=?, account_type=?, repository_selection=?,
                   user_id=?, organization_id=?, updated_at=datetime('now')
               WHERE id=?""",
            (account_json, account_type, repository_selection, user_id, org_id, existing["id"]),
        )
        await db.commit()
        return existing["id"]

    authorization_id = str(uuid.uuid4())
    await db.execute(
        """INSERT INTO github_app_authorizations
           (id, installation_id, account_type, account, repository_selection,
            user_id, organization_id)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (authorization_id, installation_id, account_type, account_json,
         repository_selection, user_id, org_id),
    )
    await db.commit()
    return authorization_id
