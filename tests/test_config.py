"""Tests for environment-driven settings and logging setup."""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from devdox.config import Settings
from devdox.logging_config import JsonFormatter, configure_logging


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "DEVDOX_ENV", "DEVDOX_HOST", "PORT", "API_VERSION", "DEVDOX_DATA_DIR",
        "ENCRYPTION_MASTER_KEY", "ALLOWED_ORIGINS", "LOG_LEVEL", "RATE_LIMIT",
        "MAX_BODY_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings.from_env()
    assert settings.env == "development"
    assert settings.port == 3000
    assert settings.api_version == "1.0.0"
    assert settings.data_dir == Path("./data")
    assert settings.master_key is None
    assert settings.master_key_configured is False
    assert settings.allowed_origins == ["*"]
    assert settings.log_level == "DEBUG"
    assert settings.log_format == "console"


def test_production_defaults(clean_env):
    clean_env.setenv("DEVDOX_ENV", "production")
    settings = Settings.from_env()
    assert settings.allowed_origins == ["https://devdox.ai"]
    assert settings.log_level == "INFO"
    assert settings.log_format == "json"


def test_from_env(clean_env, tmp_path):
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("API_VERSION", "2.3.4")
    clean_env.setenv("DEVDOX_DATA_DIR", str(tmp_path))
    clean_env.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example")
    clean_env.setenv("ENCRYPTION_MASTER_KEY", "k" * 40)
    settings = Settings.from_env()
    assert settings.port == 8080
    assert settings.api_version == "2.3.4"
    assert settings.db_path == tmp_path / "devdox.db"
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.master_key == "k" * 40
    assert settings.master_key_configured is True


def test_short_master_key_not_configured(clean_env):
    clean_env.setenv("ENCRYPTION_MASTER_KEY", "short")
    assert Settings.from_env().master_key_configured is False


def test_master_key_not_in_repr(clean_env):
    clean_env.setenv("ENCRYPTION_MASTER_KEY", "s" * 32)
    settings = Settings.from_env()
    assert "s" * 32 not in repr(settings)
    assert "s" * 32 not in settings.model_dump_json()


def test_invalid_env(clean_env):
    clean_env.setenv("DEVDOX_ENV", "staging")
    with pytest.raises(ValidationError):
        Settings.from_env()


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        Settings(log_level="LOUD")


def test_configure_logging_replaces_handlers():
    logger = configure_logging(Settings(env="production", log_level="INFO"))
    configure_logging(Settings(env="production", log_level="INFO"))
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)
    assert logger.level == logging.INFO


def test_json_formatter():
    record = logging.LogRecord("devdox.test", logging.ERROR, __file__, 1, "hi %s", ("x",), None)
    line = JsonFormatter().format(record)
    assert '"message": "hi x"' in line
    assert '"level": "error"' in line


def test_direct_construction_uses_env_defaults():
    prod = Settings(env="production")
    assert prod.allowed_origins == ["https://devdox.ai"]
    assert prod.log_level == "INFO"
    dev = Settings()
    assert dev.allowed_origins == ["*"]
    assert dev.log_level == "DEBUG"


def test_explicit_values_override_env_defaults():
    settings = Settings(
        env="production", allowed_origins=["https://x.example"], log_level="warning"
    )
    assert settings.allowed_origins == ["https://x.example"]
    assert settings.log_level == "WARNING"


def test_rate_limit_settings(clean_env):
    clean_env.setenv("RATE_LIMIT", "5 per second")
    clean_env.setenv("MAX_BODY_BYTES", "2048")
    settings = Settings.from_env()
    assert settings.rate_limit == "5 per second"
    assert settings.max_body_bytes == 2048
    assert Settings().rate_limit == "100 per 15 minutes"
    assert Settings().max_body_bytes == 10 * 1024


def test_invalid_rate_limit():
    with pytest.raises(ValidationError):
        Settings(rate_limit="lots")
