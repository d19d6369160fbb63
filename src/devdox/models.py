"""Pydantic request/response models for the DevDox API."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, HttpUrl, model_validator

TOKEN_VALUE_PATTERN = r"^[A-Za-z0-9_-]+$"


class ProviderType(str, Enum):
    """Supported git hosting providers."""

    github = "github"
    gitlab = "gitlab"


DEFAULT_PROVIDER_URLS = {
    ProviderType.github: "https://github.com",
    ProviderType.gitlab: "https://gitlab.com",
}


# --- Envelope ---


class SuccessResponse(BaseModel):
    """Standard success envelope: {"status": "success", "data": ...}."""

    status: str = "success"
    data: Any = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "success"
    message: str = "Service is healthy"


# --- Version ---


class VersionInfo(BaseModel):
    version: str


class VersionDetails(BaseModel):
    """Detailed build/runtime information (authenticated)."""

    version: str
    pythonVersion: str
    environment: str
    timestamp: str


# --- Git token requests ---


class GitTokenCreate(BaseModel):
    """Store a new git hosting personal access token.

    provider_url defaults to the provider's public host when omitted.
    """

    label: str = Field(min_length=1, max_length=100)
    provider_type: ProviderType
    provider_url: HttpUrl | None = None
    token_value: str = Field(min_length=1, pattern=TOKEN_VALUE_PATTERN)

    @model_validator(mode="after")
    def default_provider_url(self) -> "GitTokenCreate":
        if self.provider_url is None:
            self.provider_url = HttpUrl(DEFAULT_PROVIDER_URLS[self.provider_type])
        return self

    @property
    def provider_url_str(self) -> str:
        return str(self.provider_url).rstrip("/")


# --- Git token responses ---


class GitTokenInfo(BaseModel):
    """Token metadata. Never includes the token value."""

    id: str
    label: str
    provider_type: ProviderType
    provider_url: str
    created_at: str
    updated_at: str | None = None


class GitTokenDetail(GitTokenInfo):
    """Token metadata with the decrypted value (single-token fetch only)."""

    token_value: str
