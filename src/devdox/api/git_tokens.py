"""Git token vault routes. All routes are scoped to the authenticated user."""

import aiosqlite
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from devdox.auth import AuthUser, require_user
from devdox.db import get_db
from devdox.models import GitTokenCreate, GitTokenDetail, GitTokenInfo, SuccessResponse
from devdox.services.git_tokens import (
    create_token,
    delete_token,
    get_token,
    list_tokens,
)

router = APIRouter(prefix="/api/git-tokens")


@router.get("", response_model=SuccessResponse)
async def list_git_tokens(
    user: AuthUser = Depends(require_user),
    db: aiosqlite.Connection = Depends(get_db),
) -> SuccessResponse:
    """List the caller's tokens. Never returns values."""
    tokens = await list_tokens(db, user.id)
    return SuccessResponse(
        data=[GitTokenInfo(**t).model_dump(mode="json") for t in tokens]
    )


@router.post("", status_code=201, response_model=SuccessResponse)
async def create_git_token(
    body: GitTokenCreate,
    request: Request,
    user: AuthUser = Depends(require_user),
    db: aiosqlite.Connection = Depends(get_db),
) -> SuccessResponse:
    """Encrypt and store a new token."""
    token = await create_token(
        db,
        user.id,
        body.label,
        body.provider_type.value,
        body.provider_url_str,
        body.token_value,
        request.app.state.settings.master_key,
    )
    return SuccessResponse(data=GitTokenInfo(**token).model_dump(mode="json"))


@router.get("/{token_id}", response_model=SuccessResponse)
async def get_git_token(
    token_id: str,
    request: Request,
    user: AuthUser = Depends(require_user),
    db: aiosqlite.Connection = Depends(get_db),
) -> SuccessResponse:
    """Return one token with its decrypted value."""
    token = await get_token(db, token_id, user.id, request.app.state.settings.master_key)
    return SuccessResponse(data=GitTokenDetail(**token).model_dump(mode="json"))


@router.delete("/{token_id}", status_code=204)
async def delete_git_token(
    token_id: str,
    user: AuthUser = Depends(require_user),
    db: aiosqlite.Connection = Depends(get_db),
) -> Response:
    """Delete one of the caller's tokens."""
    await delete_token(db, token_id, user.id)
    return Response(status_code=204)
