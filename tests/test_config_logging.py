import logging

import pytest

from procurement.core.config import Settings, get_settings
from procurement.core.logging import (
    build_logging_config,
    configure_logging,
    init_tracer,
    parse_headers,
    shutdown_tracer,
)


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@db:5432/purchases")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000, https://example.org ,")
    monkeypatch.setenv("TRANSITION_MAX_ATTEMPTS", "5")

    settings = Settings()

    assert settings.async_database_url == "postgresql+asyncpg://user:pw@db:5432/purchases"
    assert settings.cors_origins == ["http://localhost:3000", "https://example.org"]
    assert settings.transition_max_attempts == 5


def test_non_postgres_urls_are_left_alone():
    settings = Settings(database_url="sqlite+aiosqlite:///./local.db")

    assert settings.async_database_url == "sqlite+aiosqlite:///./local.db"


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, {}),
        ("", {}),
        ("api-key=secret", {"api-key": "secret"}),
        ("a=1, b = 2,broken,=x", {"a": "1", "b": "2"}),
    ],
)
def test_parse_headers(raw, expected):
    assert parse_headers(raw) == expected


def test_configure_logging_sets_level():
    logger = configure_logging(Settings(log_level="debug"))

    assert logger.name == "procurement"
    assert logger.level == logging.DEBUG
    configure_logging(Settings(log_level="INFO"))


def test_library_loggers_are_kept_at_warning():
    config = build_logging_config(Settings(log_level="DEBUG"))

    assert config["loggers"]["procurement"]["level"] == logging.DEBUG
    assert config["loggers"]["sqlalchemy.engine"]["level"] == logging.WARNING
    assert config["root"]["level"] == logging.DEBUG


def test_unknown_log_level_falls_back_to_info():
    config = build_logging_config(Settings(log_level="chatty"))

    assert config["root"]["level"] == logging.INFO


def test_tracer_is_disabled_by_default():
    provider = init_tracer(Settings(otel_enabled=False))

    assert provider is None
    shutdown_tracer(provider)
