"""Service configuration loaded from the environment.

Settings are built once at startup and passed explicitly into the app
factory. The encryption master key is held as a SecretStr and must never
be logged.
"""

import os
from pathlib import Path
from typing import Any

from limits import parse
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from devdox.crypto import KEY_LENGTH

ENVIRONMENTS = ("development", "test", "production")


def _split_origins(raw: str) -> list[str]:
    """Parse a comma-separated ALLOWED_ORIGINS value."""
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseModel):
    """Validated service settings."""

    env: str = Field(default="development")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    api_version: str = Field(default="1.0.0")
    data_dir: Path = Field(default=Path("./data"))
    encryption_master_key: SecretStr | None = None
    allowed_origins: list[str]
    log_level: str
    rate_limit: str = Field(default="100 per 15 minutes")
    max_body_bytes: int = Field(default=10 * 1024, ge=1)

    @model_validator(mode="before")
    @classmethod
    def apply_env_defaults(cls, data: Any) -> Any:
        """Fill origins and log level from env when they are not given."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        production = data.get("env", "development") == "production"
        if data.get("allowed_origins") is None:
            data["allowed_origins"] = ["https://devdox.ai"] if production else ["*"]
        if data.get("log_level") is None:
            data["log_level"] = "INFO" if production else "DEBUG"
        return data

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate the environment name is one we know."""
        if v not in ENVIRONMENTS:
            raise ValueError(f"Unsupported environment: {v}")
        return v

    @field_validator("rate_limit")
    @classmethod
    def validate_rate_limit(cls, v: str) -> str:
        """Reject limits the limits package cannot parse, e.g. "100 per 15 minutes"."""
        parse(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def log_format(self) -> str:
        return "json" if self.is_production else "console"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "devdox.db"

    @property
    def master_key(self) -> str | None:
        """Raw master key string, or None when not configured."""
        if self.encryption_master_key is None:
            return None
        return self.encryption_master_key.get_secret_value()

    @property
    def master_key_configured(self) -> bool:
        key = self.master_key
        return key is not None and len(key) >= KEY_LENGTH

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        master_key = os.environ.get("ENCRYPTION_MASTER_KEY")
        origins = os.environ.get("ALLOWED_ORIGINS")
        return cls(
            env=os.environ.get("DEVDOX_ENV", "development"),
            host=os.environ.get("DEVDOX_HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3000")),
            api_version=os.environ.get("API_VERSION", "1.0.0"),
            data_dir=Path(os.environ.get("DEVDOX_DATA_DIR", "./data")),
            encryption_master_key=SecretStr(master_key) if master_key else None,
            allowed_origins=_split_origins(origins) if origins else None,
            log_level=os.environ.get("LOG_LEVEL"),
            rate_limit=os.environ.get("RATE_LIMIT", "100 per 15 minutes"),
            max_body_bytes=int(os.environ.get("MAX_BODY_BYTES", str(10 * 1024))),
        )
