"""Derive rate, latency and saturation figures from a service accumulator."""

from __future__ import annotations

import math

from aggregation.grouping import ServiceAccumulator
from aggregation.models import (
    DurationStats,
    RateStats,
    ResourceUtilization,
    SaturationStats,
)

# Lower bounds are inclusive, checked highest first.
UTILIZATION_BANDS = (
    (90.0, ResourceUtilization.CRITICAL),
    (70.0, ResourceUtilization.HIGH),
    (50.0, ResourceUtilization.MEDIUM),
)


def round2(value: float) -> float:
    """Round to 2 decimals, halves away from zero."""
    scaled = math.floor(abs(value) * 100 + 0.5) / 100
    return math.copysign(scaled, value) if scaled else 0.0


def percentile_index(n: int, fraction: float) -> int:
    """Index of the ``fraction`` percentile in an ascending array of length ``n``.

    The raw index ``floor(n * fraction)`` is clamped to ``n - 1``.
    """
    return min(int(math.floor(n * fraction)), n - 1)


def compute_rate(total_requests: int, window_seconds: float) -> RateStats:
    return RateStats(
        requests_per_second=round2(total_requests / window_seconds),
        requests_per_minute=round2(total_requests / (window_seconds / 60)),
        total_requests=total_requests,
    )


def compute_error_rate(error_count: int, total_requests: int) -> float:
    if total_requests <= 0:
        return 0.0
    return round2(100 * error_count / total_requests)


def compute_duration(response_times: list[float]) -> DurationStats:
    """Latency distribution over per-event samples.

    The median is the upper-middle element (``sorted[n // 2]``), not the mean
    of the two middle values.
    """
    ordered = sorted(response_times)
    n = len(ordered)
    if n == 0:
        raise ValueError("cannot compute duration statistics without samples")

    return DurationStats(
        average_response_time=round2(sum(ordered) / n),
        median_response_time=round2(ordered[n // 2]),
        p95_response_time=round2(ordered[percentile_index(n, 0.95)]),
        p99_response_time=round2(ordered[percentile_index(n, 0.99)]),
        min_response_time=round2(ordered[0]),
        max_response_time=round2(ordered[-1]),
    )


def classify_utilization(average_cpu: float, average_mem: float) -> ResourceUtilization:
    peak = max(average_cpu, average_mem)
    for lower_bound, band in UTILIZATION_BANDS:
        if peak >= lower_bound:
            return band
    return ResourceUtilization.LOW


def compute_saturation(cpu_samples: list[float], mem_samples: list[float]) -> SaturationStats:
    avg_cpu = round2(sum(cpu_samples) / len(cpu_samples)) if cpu_samples else 0.0
    avg_mem = round2(sum(mem_samples) / len(mem_samples)) if mem_samples else 0.0
    return SaturationStats(
        average_cpu_usage=avg_cpu,
        max_cpu_usage=round2(max(cpu_samples, default=0.0)),
        average_memory_usage=avg_mem,
        max_memory_usage=round2(max(mem_samples, default=0.0)),
        resource_utilization=classify_utilization(avg_cpu, avg_mem),
    )


def compute_service_stats(
    acc: ServiceAccumulator, window_seconds: float
) -> tuple[RateStats, float, DurationStats, SaturationStats]:
    """Return (rate, error_rate, duration, saturation) for one group."""
    return (
        compute_rate(acc.total_requests, window_seconds),
        compute_error_rate(acc.error_count, acc.total_requests),
        compute_duration(acc.response_times),
        compute_saturation(acc.cpu_samples, acc.mem_samples),
    )
