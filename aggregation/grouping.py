"""Group filtered events by service and reduce each group in a single pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from aggregation.models import MetricEvent, Severity


@dataclass
class ServiceAccumulator:
    """Raw per-service tallies. Latency samples are per event, counts per request."""
    service_name: str
    total_requests: int = 0
    error_count: int = 0
    response_times: list[float] = field(default_factory=list)
    cpu_samples: list[float] = field(default_factory=list)
    mem_samples: list[float] = field(default_factory=list)
    errors_by_status: list[tuple[int, int]] = field(default_factory=list)
    errors_by_severity: list[tuple[Severity, int]] = field(default_factory=list)

    def add(self, event: MetricEvent) -> None:
        self.total_requests += event.request_count
        self.response_times.append(event.response_time_ms)
        self.cpu_samples.append(event.cpu_usage_pct or 0.0)
        self.mem_samples.append(event.mem_usage_pct or 0.0)

        if event.is_error:
            self.error_count += event.request_count
            self.errors_by_status.append((event.status_code, event.request_count))
            self.errors_by_severity.append((event.severity, event.request_count))

    @property
    def event_count(self) -> int:
        return len(self.response_times)


def group_events(events: Iterable[MetricEvent]) -> dict[str, ServiceAccumulator]:
    """Partition ``events`` by service name, in order of first appearance."""
    groups: dict[str, ServiceAccumulator] = {}
    for event in events:
        acc = groups.get(event.service_name)
        if acc is None:
            acc = groups[event.service_name] = ServiceAccumulator(event.service_name)
        acc.add(event)
    return groups
