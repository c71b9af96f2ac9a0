"""Aggregation entry points: resolve the query, fetch events, then group, summarize and rank."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Iterable, Protocol, Sequence

from aggregation.breakdown import severity_breakdown, status_code_breakdown
from aggregation.grouping import ServiceAccumulator, group_events
from aggregation.models import ErrorStats, MetricEvent, ServiceAggregation
from aggregation.query import AggregationQuery, ResolvedQuery, resolve_query
from aggregation.ranking import rank_services
from aggregation.statistics import compute_service_stats

logger = logging.getLogger(__name__)


class AggregationTimeout(Exception):
    """Raised when an aggregation does not finish within its time budget."""
    pass


class EventSource(Protocol):
    """Supplies the complete set of events matching a resolved query."""

    async def fetch_events(self, resolved: ResolvedQuery) -> Sequence[MetricEvent]:
        ...


class StaticEventSource:
    """In-memory event source that filters a fixed list with the query predicate."""

    def __init__(self, events: Iterable[MetricEvent]):
        self.events = list(events)

    async def fetch_events(self, resolved: ResolvedQuery) -> list[MetricEvent]:
        return [e for e in self.events if resolved.matches(e)]


def summarize_group(acc: ServiceAccumulator, window_seconds: float) -> ServiceAggregation:
    """Build the unranked summary for one service group."""
    rate, error_rate, duration, saturation = compute_service_stats(acc, window_seconds)
    return ServiceAggregation(
        service_name=acc.service_name,
        rate=rate,
        error=ErrorStats(
            error_rate=error_rate,
            error_count=acc.error_count,
            by_status_code=status_code_breakdown(acc.errors_by_status, acc.error_count),
            by_severity=severity_breakdown(acc.errors_by_severity, acc.error_count),
        ),
        duration=duration,
        saturation=saturation,
    )


def summarize_events(
    events: Iterable[MetricEvent], resolved: ResolvedQuery
) -> list[ServiceAggregation]:
    """Pure aggregation over an already-filtered event set."""
    groups = group_events(events)
    summaries = [
        summarize_group(acc, resolved.window_seconds)
        for acc in groups.values()
        if acc.total_requests > 0
    ]
    return rank_services(summaries, resolved.rank_by, resolved.limit)


async def _run(
    resolved: ResolvedQuery, source: EventSource
) -> list[ServiceAggregation]:
    # Source failures propagate unchanged; there is no partial result.
    events = await source.fetch_events(resolved)
    ranked = summarize_events(events, resolved)
    logger.info(
        "Aggregated %d events into %d services (rank_by=%s, window=%.0fs, policy=%s)",
        len(events), len(ranked), resolved.rank_by.value,
        resolved.window_seconds, resolved.window_policy,
    )
    return ranked


async def aggregate_services(
    query: AggregationQuery,
    source: EventSource,
    now: datetime | None = None,
    timeout: float | None = None,
) -> list[ServiceAggregation]:
    """Resolve ``query``, pull matching events from ``source`` and rank services.

    With ``timeout`` set, the whole call is cancelled after that many seconds
    and AggregationTimeout is raised.
    """
    resolved = resolve_query(query, now=now)
    if timeout is None:
        return await _run(resolved, source)
    try:
        return await asyncio.wait_for(_run(resolved, source), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise AggregationTimeout(
            f"aggregation exceeded {timeout:.1f}s (rank_by={resolved.rank_by.value})"
        ) from exc
