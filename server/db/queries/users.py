from __future__ import annotations

import uuid

import aiosqlite


async def get_user_by_github_id(db: aiosqlite.Connection, github_id: int) -> dict | None:
    async with db.execute(
        "SELECT * FROM users WHERE github_id = ?", (github_id,)
    ) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def upsert_user(
    db: aiosqlite.Connection,
    github_id: int,
    github_login: str,
    display_name: str | None = None,
    email: str | None = None,
    avatar_url: str | None = None,
    access_token_encrypted: str | None = None,
) -> str:
    """Insert or refresh a user keyed by GitHub id. Returns the user id."""
    await db.execute(
        """INSERT INTO users
           (id, github_id, github_login, display_name, email, avatar_url,
            access_token_encrypted, last_login_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, datetime('now'))
           ON CONFLICT(github_id) DO UPDATE SET
               github_login=excluded.github_login,
               display_name=excluded.display_name,
               email=excluded.email,
               avatar_url=excluded.avatar_url,
               access_token_encrypted=excluded.access_token_encrypted,
               last_login_at=excluded.last_login_at""",
        (str(uuid.uuid4()), github_id, github_login, display_name, email, avatar_url,
         access_token_encrypted),
    )
    await db.commit()
    user = await get_user_by_github_id(db, github_id)
    return user["id"]
