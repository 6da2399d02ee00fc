"""Process-local counters and summaries with Prometheus text exposition."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
from time import perf_counter
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple

LabelValues = Tuple[str, ...]


class Metric:
    """A named family of series, one per combination of label values."""

    kind = "untyped"

    def __init__(
        self, name: str, *, description: str = "", label_names: Iterable[str] | None = None
    ) -> None:
        self.name = name
        self.description = description
        self.label_names: Tuple[str, ...] = tuple(label_names or ())
        self._lock = Lock()

    def _series_key(self, labels: Mapping[str, str] | None) -> LabelValues:
        given = labels or {}
        if set(given) != set(self.label_names):
            raise ValueError(
                f"Metric '{self.name}' expects labels {list(self.label_names)}, got {sorted(given)}"
            )
        return tuple(str(given[name]) for name in self.label_names)

    def _label_text(self, key: LabelValues) -> str:
        if not key:
            return ""
        pairs = ",".join(f'{name}="{value}"' for name, value in zip(self.label_names, key))
        return "{" + pairs + "}"

    def snapshot(self) -> Mapping[LabelValues, Mapping[str, float]]:  # pragma: no cover - interface
        raise NotImplementedError

    def samples(self) -> List[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def exposition(self) -> List[str]:
        """HELP and TYPE header followed by one line per sample."""

        header = [f"# HELP {self.name} {self.description}", f"# TYPE {self.name} {self.kind}"]
        return header + self.samples()


class CounterMetric(Metric):
    kind = "counter"

    def __init__(
        self, name: str, *, description: str = "", label_names: Iterable[str] | None = None
    ) -> None:
        super().__init__(name, description=description, label_names=label_names)
        self._totals: Dict[LabelValues, float] = {}

    def inc(self, amount: float = 1.0, *, labels: Mapping[str, str] | None = None) -> None:
        if amount < 0:
            raise ValueError(f"Counter '{self.name}' cannot be decreased")
        key = self._series_key(labels)
        with self._lock:
            self._totals[key] = self._totals.get(key, 0.0) + amount

    def value(self, *, labels: Mapping[str, str] | None = None) -> float:
        key = self._series_key(labels)
        with self._lock:
            return self._totals.get(key, 0.0)

    def snapshot(self) -> Mapping[LabelValues, Mapping[str, float]]:
        with self._lock:
            return {key: {"value": total} for key, total in self._totals.items()}

    def samples(self) -> List[str]:
        with self._lock:
            totals = sorted(self._totals.items())
        return [f"{self.name}{self._label_text(key)} {total}" for key, total in totals]


@dataclass
class DistributionStats:
    count: int = 0
    total: float = 0.0
    min: float | None = None
    max: float | None = None

    def observe(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.min = value if self.min is None else min(self.min, value)
        self.max = value if self.max is None else max(self.max, value)

    def to_mapping(self) -> Mapping[str, float]:
        return {
            "count": float(self.count),
            "sum": self.total,
            "min": 0.0 if self.min is None else self.min,
            "max": 0.0 if self.max is None else self.max,
        }


class DistributionMetric(Metric):
    """Count and sum of observations, exposed as a Prometheus summary."""

    kind = "summary"

    def __init__(
        self, name: str, *, description: str = "", label_names: Iterable[str] | None = None
    ) -> None:
        super().__init__(name, description=description, label_names=label_names)
        self._stats: Dict[LabelValues, DistributionStats] = {}

    def observe(self, value: float, *, labels: Mapping[str, str] | None = None) -> None:
        key = self._series_key(labels)
        with self._lock:
            self._stats.setdefault(key, DistributionStats()).observe(value)

    def snapshot(self) -> Mapping[LabelValues, Mapping[str, float]]:
        with self._lock:
            return {key: stats.to_mapping() for key, stats in self._stats.items()}

    def samples(self) -> List[str]:
        lines: List[str] = []
        for key, stats in sorted(self.snapshot().items()):
            label_text = self._label_text(key)
            lines.append(f"{self.name}_count{label_text} {stats['count']}")
            lines.append(f"{self.name}_sum{label_text} {stats['sum']}")
        return lines


@contextmanager
def track_duration(metric: DistributionMetric, *, labels: Mapping[str, str] | None = None) -> Iterator[None]:
    """Observe the seconds spent inside the block, including when it raises."""

    started = perf_counter()
    try:
        yield
    finally:
        metric.observe(perf_counter() - started, labels=labels)
