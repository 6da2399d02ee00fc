"""Logging and tracing setup for the procurement service."""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from procurement.core.config import Settings

APP_LOGGER = "procurement"

# Libraries that are chatty at INFO and only interesting when something breaks.
_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncpg", "passlib")

_active_provider: TracerProvider | None = None


def parse_headers(header_string: str | None) -> dict[str, str]:
    """Turn ``"k1=v1,k2=v2"`` into a dict, skipping malformed entries."""

    headers: dict[str, str] = {}
    for item in (header_string or "").split(","):
        key, separator, value = item.partition("=")
        if separator and key.strip():
            headers[key.strip()] = value.strip()
    return headers


def build_logging_config(settings: Settings) -> dict[str, Any]:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    loggers: dict[str, dict[str, Any]] = {APP_LOGGER: {"level": level, "propagate": True}}
    for name in _QUIET_LOGGERS:
        loggers[name] = {"level": max(level, logging.WARNING), "propagate": True}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": settings.log_format}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "level": level,
            }
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": loggers,
    }


def configure_logging(settings: Settings) -> logging.Logger:
    """Apply ``build_logging_config`` and return the application logger."""

    config = build_logging_config(settings)
    dictConfig(config)
    return logging.getLogger(APP_LOGGER)


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install an OTLP-exporting tracer provider when tracing is switched on.

    Returns ``None`` when tracing is disabled or a provider is already active,
    so a second application instance in the same process does not re-register.
    """

    global _active_provider

    if not settings.otel_enabled or _active_provider is not None:
        return None

    resource = Resource(
        attributes={
            "service.name": settings.otel_service_name,
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=settings.otel_exporter_otlp_endpoint or None,
        headers=parse_headers(settings.otel_exporter_otlp_headers) or None,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _active_provider = provider
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    """Flush and stop ``provider`` if it is the one installed by ``init_tracer``."""

    global _active_provider

    if provider is None:
        return
    provider.shutdown()
    if provider is _active_provider:
        _active_provider = None
