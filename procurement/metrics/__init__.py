"""In-process metrics exposed at ``GET /metrics``."""

from .base import CounterMetric, DistributionMetric, track_duration
from .definitions import DEFAULT_METRIC_DEFINITIONS, MetricDefinition, TicketMetrics
from .registry import MetricsRegistry

metrics_registry = MetricsRegistry()


def register_default_metrics(registry: MetricsRegistry | None = None) -> MetricsRegistry:
    """Make sure every workflow metric exists in ``registry`` and return it."""

    target = metrics_registry if registry is None else registry
    factories = {"counter": target.counter, "distribution": target.distribution}
    for definition in DEFAULT_METRIC_DEFINITIONS:
        try:
            factory = factories[definition.metric_type]
        except KeyError:  # pragma: no cover - guarded by the definitions table
            raise ValueError(f"Unsupported metric type: {definition.metric_type}") from None
        factory(definition.name, description=definition.description, label_names=definition.label_names)
    return target


register_default_metrics()

__all__ = [
    "CounterMetric",
    "DistributionMetric",
    "MetricDefinition",
    "MetricsRegistry",
    "TicketMetrics",
    "metrics_registry",
    "register_default_metrics",
    "track_duration",
]
