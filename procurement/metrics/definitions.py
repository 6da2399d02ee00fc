"""Metrics recorded by the purchase request workflow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .base import CounterMetric, DistributionMetric
from .registry import MetricsRegistry


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    metric_type: str
    description: str
    label_names: Tuple[str, ...] = ()


TICKETS_CREATED = "tickets_created_total"
TICKET_OPERATIONS = "ticket_operations_total"
TICKET_REJECTIONS = "ticket_rejections_total"
TICKET_CONFLICTS = "ticket_store_conflicts_total"
TICKET_OPERATION_DURATION = "ticket_operation_duration_seconds"

DEFAULT_METRIC_DEFINITIONS: Tuple[MetricDefinition, ...] = (
    MetricDefinition(TICKETS_CREATED, "counter", "Number of purchase requests raised."),
    MetricDefinition(
        TICKET_OPERATIONS,
        "counter",
        "Ticket operations by name and outcome.",
        ("operation", "outcome"),
    ),
    MetricDefinition(
        TICKET_REJECTIONS,
        "counter",
        "Ticket operations refused by the workflow, by reason.",
        ("reason",),
    ),
    MetricDefinition(TICKET_CONFLICTS, "counter", "Ticket saves that lost an optimistic concurrency race."),
    MetricDefinition(
        TICKET_OPERATION_DURATION,
        "distribution",
        "Seconds spent loading, validating and storing a ticket operation.",
        ("operation",),
    ),
)


@dataclass(frozen=True)
class TicketMetrics:
    """The ticket service's handles into a registry."""

    created: CounterMetric
    operations: CounterMetric
    rejections: CounterMetric
    conflicts: CounterMetric
    duration: DistributionMetric

    @classmethod
    def from_registry(cls, registry: MetricsRegistry) -> "TicketMetrics":
        return cls(
            created=registry.counter(TICKETS_CREATED),
            operations=registry.counter(TICKET_OPERATIONS),
            rejections=registry.counter(TICKET_REJECTIONS),
            conflicts=registry.counter(TICKET_CONFLICTS),
            duration=registry.distribution(TICKET_OPERATION_DURATION),
        )

    def outcome(self, operation: str, outcome: str) -> None:
        self.operations.inc(labels={"operation": operation, "outcome": outcome})
