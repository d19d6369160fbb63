"""Git token storage: CRUD over the git_tokens table with encrypted values."""

import logging
import uuid
from typing import TypedDict

import aiosqlite

from devdox.crypto import (
    CipherError,
    Envelope,
    decrypt_async,
    encrypt_async,
)
from devdox.errors import AppError

logger = logging.getLogger(__name__)

_INFO_COLUMNS = "id, label, provider_type, provider_url, created_at, updated_at"


class GitTokenRecord(TypedDict):
    """Token metadata returned by list/get operations."""

    id: str
    label: str
    provider_type: str
    provider_url: str
    created_at: str
    updated_at: str | None


class GitTokenSecret(GitTokenRecord):
    """Token metadata plus the decrypted value."""

    token_value: str


def _record(row: aiosqlite.Row) -> GitTokenRecord:
    return GitTokenRecord(
        id=row["id"],
        label=row["label"],
        provider_type=row["provider_type"],
        provider_url=row["provider_url"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _require_key(master_key: str | None) -> str:
    if not master_key:
        logger.error("Encryption master key is not configured")
        raise AppError("Token encryption is not configured", 500)
    return master_key


async def list_tokens(db: aiosqlite.Connection, user_id: str) -> list[GitTokenRecord]:
    """List a user's tokens, newest first. Never returns values."""
    cursor = await db.execute(
        f"SELECT {_INFO_COLUMNS} FROM git_tokens WHERE user_id = ? "
        "ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    )
    return [_record(row) for row in await cursor.fetchall()]


async def create_token(
    db: aiosqlite.Connection,
    user_id: str,
    label: str,
    provider_type: str,
    provider_url: str,
    token_value: str,
    master_key: str | None,
) -> GitTokenRecord:
    """Encrypt and store a token. Returns its metadata."""
    master_key = _require_key(master_key)
    try:
        envelope = await encrypt_async(token_value, master_key)
    except CipherError as e:
        logger.error("Git token encryption failed: %s: %s", type(e).__name__, e)
        raise AppError("Failed to encrypt token", 500) from e

    token_id = str(uuid.uuid4())
    await db.execute(
        "INSERT INTO git_tokens "
        "(id, user_id, label, provider_type, provider_url, token_value, iv) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        (token_id, user_id, label, provider_type, provider_url,
         envelope.encrypted, envelope.iv),
    )
    await db.commit()
    logger.info("Stored git token %s for user %s", token_id, user_id)

    cursor = await db.execute(
        f"SELECT {_INFO_COLUMNS} FROM git_tokens WHERE id = ?", (token_id,)
    )
    return _record(await cursor.fetchone())


async def get_token(
    db: aiosqlite.Connection, token_id: str, user_id: str, master_key: str | None
) -> GitTokenSecret:
    """Fetch one of a user's tokens with its value decrypted.

    Raises AppError 404 if the token doesn't exist for this user, and
    AppError 500 if the stored envelope cannot be decrypted.
    """
    cursor = await db.execute(
        f"SELECT {_INFO_COLUMNS}, token_value, iv FROM git_tokens "
        "WHERE id = ? AND user_id = ?",
        (token_id, user_id),
    )
    row = await cursor.fetchone()
    if row is None:
        raise AppError("Git token not found", 404)

    master_key = _require_key(master_key)
    try:
        value = await decrypt_async(Envelope.from_dict(dict(row)), master_key)
    except CipherError as e:
        logger.error("Failed to decrypt git token %s: %s", token_id, type(e).__name__)
        raise AppError("Failed to decrypt token", 500) from e

    return GitTokenSecret(**_record(row), token_value=value)


async def delete_token(db: aiosqlite.Connection, token_id: str, user_id: str) -> None:
    """Delete one of a user's tokens.

    Raises AppError 404 if the token doesn't exist for this user.
    """
    cursor = await db.execute(
        "DELETE FROM git_tokens WHERE id = ? AND user_id = ?", (token_id, user_id)
    )
    await db.commit()
    if cursor.rowcount == 0:
        raise AppError("Git token not found", 404)
    logger.info("Deleted git token %s for user %s", token_id, user_id)
