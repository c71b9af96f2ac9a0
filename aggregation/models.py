"""Domain records for the aggregation engine: input events and output summaries."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ResourceUtilization(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class InvalidMetricEvent(ValueError):
    """Raised when a MetricEvent is constructed with out-of-contract values."""
    pass


ERROR_STATUS_THRESHOLD = 400


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class MetricEvent:
    """One observed request, or a coalesced batch of identical requests."""
    service_name: str
    severity: Severity
    timestamp: datetime
    response_time_ms: float
    status_code: int
    request_count: int = 1
    cpu_usage_pct: float | None = None
    mem_usage_pct: float | None = None

    def __post_init__(self):
        if not self.service_name:
            raise InvalidMetricEvent("service_name must be a non-empty string")
        try:
            severity = Severity(self.severity)
        except ValueError as exc:
            raise InvalidMetricEvent(f"unknown severity {self.severity!r}") from exc
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "severity", severity)
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))

        if self.request_count < 1:
            raise InvalidMetricEvent(
                f"request_count must be >= 1, got {self.request_count}"
            )
        if not 100 <= self.status_code <= 599:
            raise InvalidMetricEvent(f"invalid status code {self.status_code}")
        if not (math.isfinite(self.response_time_ms) and self.response_time_ms >= 0):
            raise InvalidMetricEvent(
                f"response_time_ms must be a finite non-negative number, got {self.response_time_ms}"
            )
        for name in ("cpu_usage_pct", "mem_usage_pct"):
            value = getattr(self, name)
            if value is not None and not (math.isfinite(value) and 0 <= value <= 100):
                raise InvalidMetricEvent(f"{name} must be within 0-100, got {value}")

    @property
    def is_error(self) -> bool:
        return self.status_code >= ERROR_STATUS_THRESHOLD


@dataclass
class StatusCodeCount:
    status_code: int
    count: int
    percentage: float


@dataclass
class SeverityCount:
    severity: Severity
    count: int
    percentage: float


@dataclass
class RateStats:
    requests_per_second: float
    requests_per_minute: float
    total_requests: int


@dataclass
class ErrorStats:
    error_rate: float
    error_count: int
    by_status_code: list[StatusCodeCount] = field(default_factory=list)
    by_severity: list[SeverityCount] = field(default_factory=list)


@dataclass
class DurationStats:
    average_response_time: float
    median_response_time: float
    p95_response_time: float
    p99_response_time: float
    min_response_time: float
    max_response_time: float


@dataclass
class SaturationStats:
    average_cpu_usage: float
    max_cpu_usage: float
    average_memory_usage: float
    max_memory_usage: float
    resource_utilization: ResourceUtilization


@dataclass
class ServiceAggregation:
    """Health summary for one service over the query window.

    ``rank`` stays 0 until the ranking stage assigns the final position.
    """
    service_name: str
    rate: RateStats
    error: ErrorStats
    duration: DurationStats
    saturation: SaturationStats
    rank: int = 0

    def to_dict(self) -> dict:
        """Serialize using the camelCase JSON contract."""
        return {
            "serviceName": self.service_name,
            "rank": self.rank,
            "rate": {
                "requestsPerSecond": self.rate.requests_per_second,
                "requestsPerMinute": self.rate.requests_per_minute,
                "totalRequests": self.rate.total_requests,
            },
            "error": {
                "errorRate": self.error.error_rate,
                "errorCount": self.error.error_count,
                "byStatusCode": [
                    {"statusCode": e.status_code, "count": e.count, "percentage": e.percentage}
                    for e in self.error.by_status_code
                ],
                "bySeverity": [
                    {"severity": e.severity.value, "count": e.count, "percentage": e.percentage}
                    for e in self.error.by_severity
                ],
            },
            "duration": {
                "averageResponseTime": self.duration.average_response_time,
                "medianResponseTime": self.duration.median_response_time,
                "p95ResponseTime": self.duration.p95_response_time,
                "p99ResponseTime": self.duration.p99_response_time,
                "minResponseTime": self.duration.min_response_time,
                "maxResponseTime": self.duration.max_response_time,
            },
            "saturation": {
                "averageCpuUsage": self.saturation.average_cpu_usage,
                "maxCpuUsage": self.saturation.max_cpu_usage,
                "averageMemoryUsage": self.saturation.average_memory_usage,
                "maxMemoryUsage": self.saturation.max_memory_usage,
                "resourceUtilization": self.saturation.resource_utilization.value,
            },
        }
