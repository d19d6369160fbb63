"""Version endpoints."""

from fastapi import APIRouter, Depends, Request

from devdox.auth import require_user
from devdox.models import SuccessResponse, VersionDetails, VersionInfo
from devdox.services.version import get_version, get_version_details

router = APIRouter(prefix="/api/version")


@router.get("", response_model=SuccessResponse)
async def version(request: Request) -> SuccessResponse:
    """Return the current API version. Public."""
    info = VersionInfo(version=get_version(request.app.state.settings))
    return SuccessResponse(data=info.model_dump())


@router.get(
    "/details", response_model=SuccessResponse, dependencies=[Depends(require_user)]
)
async def version_details(request: Request) -> SuccessResponse:
    """Return detailed version information. Requires authentication."""
    details = VersionDetails(**get_version_details(request.app.state.settings))
    return SuccessResponse(data=details.model_dump())
