"""API version information."""

import platform
from datetime import datetime, timezone

from devdox.config import Settings


def get_version(settings: Settings) -> str:
    """Return the configured API version."""
    return settings.api_version


def get_version_details(settings: Settings) -> dict[str, str]:
    """Return version, runtime and environment details."""
    return {
        "version": settings.api_version,
        "pythonVersion": platform.python_version(),
        "environment": settings.env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
