from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from procurement.metrics import MetricsRegistry, metrics_registry

router = APIRouter(prefix="/metrics", tags=["metrics"])

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


@router.get("", response_class=PlainTextResponse, summary="Prometheus text exposition")
async def export_metrics(request: Request) -> PlainTextResponse:
    registry: MetricsRegistry = getattr(request.app.state, "metrics_registry", None) or metrics_registry
    return PlainTextResponse(registry.render_prometheus(), media_type=PROMETHEUS_CONTENT_TYPE)
