"""Server-side session management."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

import aiosqlite

SESSION_TTL_HOURS = 24
SESSION_COOKIE = "stencil_session"


def _expiry() -> str:
    # Same format as SQLite's datetime('now') so string comparison works
    return (datetime.now(timezone.utc) + timedelta(hours=SESSION_TTL_HOURS)).strftime("%Y-%m-%d %H:%M:%S")


async def create_session(db: aiosqlite.Connection, user_id: str) -> str:
    """Create a new session and return the session ID."""
    session_id = secrets.token_urlsafe(48)
    await db.execute(
        "INSERT INTO sessions (id, user_id, expires_at) VALUES (?, ?, ?)",
        (session_id, user_id, _expiry()),
    )
    await db.commit()
    return session_id


async def verify_session(db: aiosqlite.Connection, session_id: str) -> dict | None:
    """Return the session's user, or None if the session is unknown or expired.

    A valid session has its expiry pushed out another SESSION_TTL_HOURS.
    """
    async with db.execute(
        """SELECT u.* FROM sessions s
           JOIN users u ON u.id = s.user_id
           WHERE s.id = ? AND s.expires_at > datetime('now')""",
        (session_id,),
    ) as cursor:
        row = await cursor.fetchone()
    if not row:
        return None

    await db.execute("UPDATE sessions SET expires_at = ? WHERE id = ?", (_expiry(), session_id))
    await db.commit()
    return dict(row)


async def delete_session(db: aiosqlite.Connection, session_id: str) -> None:
    await db.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
    await db.commit()


async def cleanup_expired_sessions(db: aiosqlite.Connection) -> int:
    """Delete expired sessions. Returns count deleted."""
    result = await db.execute("DELETE FROM sessions WHERE expires_at <= datetime('now')")
    await db.commit()
    return result.rowcount
