"""User authentication: bearer API keys stored as SHA-256 hashes."""

import hashlib
import logging
import secrets
import string
from dataclasses import dataclass

import aiosqlite
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from devdox.db import get_db

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)

KEY_PREFIX = "ddx_"
KEY_CHARS = string.ascii_letters + string.digits
KEY_LENGTH = 32

TEST_AUTH_HEADER = "x-test-auth"
TEST_USER_ID = "test-user-id"


@dataclass
class AuthUser:
    """Result of successful authentication."""

    id: str


def _hash(value: str) -> str:
    """SHA-256 hash a string for storage."""
    return hashlib.sha256(value.encode()).hexdigest()


def _generate_key() -> str:
    """Generate an API key with ddx_ prefix."""
    random_part = "".join(secrets.choice(KEY_CHARS) for _ in range(KEY_LENGTH))
    return f"{KEY_PREFIX}{random_part}"


async def issue_api_key(db: aiosqlite.Connection, user_id: str) -> str:
    """Create a new API key for a user. The key is returned once, never stored."""
    if not user_id:
        raise ValueError("User id cannot be empty")
    key = _generate_key()
    await db.execute(
        "INSERT INTO api_keys (key_hash, user_id) VALUES (?, ?)",
        (_hash(key), user_id),
    )
    await db.commit()
    logger.info("Issued API key for user %s", user_id)
    return key


async def resolve_user(db: aiosqlite.Connection, key: str) -> str | None:
    """Return the user id owning an API key, or None."""
    cursor = await db.execute(
        "SELECT user_id FROM api_keys WHERE key_hash = ?", (_hash(key),)
    )
    row = await cursor.fetchone()
    return row["user_id"] if row is not None else None


async def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: aiosqlite.Connection = Depends(get_db),
) -> AuthUser:
    """FastAPI dependency that requires a valid API key.

    In the test environment the x-test-auth header stands in for a key.
    """
    settings = request.app.state.settings
    if settings.env == "test" and request.headers.get(TEST_AUTH_HEADER) == "true":
        return AuthUser(id=TEST_USER_ID)

    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required")

    user_id = await resolve_user(db, credentials.credentials)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    return AuthUser(id=user_id)
