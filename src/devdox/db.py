"""SQLite database layer for DevDox."""

from pathlib import Path

import aiosqlite
from fastapi import Request

SCHEMA = """
CREATE TABLE IF NOT EXISTS git_tokens (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    label TEXT NOT NULL,
    provider_type TEXT NOT NULL,
    provider_url TEXT NOT NULL,
    token_value TEXT NOT NULL,
    iv TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_git_tokens_user ON git_tokens(user_id);

CREATE TABLE IF NOT EXISTS api_keys (
    key_hash TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


async def init_db(db_path: Path) -> aiosqlite.Connection:
    """Create the data dir, open a connection and create tables."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(str(db_path))
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode=WAL")
    await db.executescript(SCHEMA)
    await db.commit()
    return db


async def get_db(request: Request) -> aiosqlite.Connection:
    """FastAPI dependency returning the connection opened by the app lifespan."""
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database not initialized — call init_db() first")
    return db
