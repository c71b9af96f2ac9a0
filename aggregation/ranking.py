"""Order per-service summaries by a criterion, assign dense ranks and truncate."""

from __future__ import annotations

from typing import Callable

from aggregation.models import ServiceAggregation
from aggregation.query import RankBy

RANK_KEYS: dict[RankBy, Callable[[ServiceAggregation], float]] = {
    RankBy.RATE: lambda s: s.rate.requests_per_second,
    RankBy.ERROR: lambda s: s.error.error_rate,
    RankBy.DURATION: lambda s: s.duration.average_response_time,
    RankBy.SATURATION: lambda s: max(
        s.saturation.average_cpu_usage, s.saturation.average_memory_usage
    ),
}


def rank_services(
    summaries: list[ServiceAggregation],
    rank_by: RankBy = RankBy.ERROR,
    limit: int | None = None,
) -> list[ServiceAggregation]:
    """Sort descending by ``rank_by`` and number the results from 1.

    The sort is stable, so ties keep their incoming order. Entries past
    ``limit`` are dropped after ranking.
    """
    ordered = sorted(summaries, key=RANK_KEYS[RankBy(rank_by)], reverse=True)
    for position, summary in enumerate(ordered, start=1):
        summary.rank = position
    if limit is not None:
        ordered = ordered[:limit]
    return ordered
