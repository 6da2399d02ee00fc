from __future__ import annotations

from threading import Lock
from typing import Dict, Iterable, Mapping, Tuple, Type, TypeVar

from .base import CounterMetric, DistributionMetric, Metric

M = TypeVar("M", bound=Metric)


class MetricsRegistry:
    """Owns metrics by name; asking twice for the same name returns the same metric."""

    def __init__(self) -> None:
        self._by_name: Dict[str, Metric] = {}
        self._lock = Lock()

    def _register(
        self, metric_type: Type[M], name: str, description: str, label_names: Iterable[str] | None
    ) -> M:
        with self._lock:
            existing = self._by_name.get(name)
            if existing is None:
                created = metric_type(name, description=description, label_names=label_names)
                self._by_name[name] = created
                return created
        if not isinstance(existing, metric_type):
            raise TypeError(f"Metric '{name}' is already registered as a {existing.kind}")
        return existing

    def counter(
        self,
        name: str,
        *,
        description: str = "",
        label_names: Iterable[str] | None = None,
    ) -> CounterMetric:
        return self._register(CounterMetric, name, description, label_names)

    def distribution(
        self,
        name: str,
        *,
        description: str = "",
        label_names: Iterable[str] | None = None,
    ) -> DistributionMetric:
        return self._register(DistributionMetric, name, description, label_names)

    def metrics(self) -> Tuple[Metric, ...]:
        with self._lock:
            return tuple(self._by_name.values())

    def snapshot(self) -> Dict[str, Mapping[Tuple[str, ...], Mapping[str, float]]]:
        return {metric.name: metric.snapshot() for metric in self.metrics()}

    def render_prometheus(self) -> str:
        """Render every registered metric in the Prometheus text format."""

        lines = [line for metric in self.metrics() for line in metric.exposition()]
        return "\n".join(lines) + "\n" if lines else ""
