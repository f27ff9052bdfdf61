import logging
from pathlib import Path

import aiosqlite

from server.config import settings

logger = logging.getLogger(__name__)

_db: aiosqlite.Connection | None = None

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


async def get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db


async def connect(database_path: str) -> aiosqlite.Connection:
    """Open a connection with the pragmas every Stencil connection needs."""
    db = await aiosqlite.connect(database_path)
    db.row_factory = aiosqlite.Row
    if database_path != ":memory:":
        await db.execute("PRAGMA journal_mode=WAL")
    await db.execute("PRAGMA foreign_keys=ON")
    return db


async def init_db() -> None:
    global _db
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    _db = await connect(str(db_path))
    await run_migrations(_db)
    logger.info("Database initialized at %s", db_path)


async def close_db() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("Database connection closed")


async def run_migrations(db: aiosqlite.Connection) -> int:
    """Apply pending migrations in order. Returns the resulting schema version."""
    try:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cursor:
            row = await cursor.fetchone()
            current_version = row[0] if row and row[0] else 0
    except aiosqlite.OperationalError:
        current_version = 0

    for mf in sorted(MIGRATIONS_DIR.glob("*.sql")):
        version = int(mf.stem.split("_")[0])
        if version > current_version:
            logger.info("Applying migration %s", mf.name)
            await db.executescript(mf.read_text())
            await db.commit()
            current_version = version

    logger.info("Migrations complete (at version %d)", current_version)
    return current_version
