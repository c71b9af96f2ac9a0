"""Query normalization: resolve a loose aggregation query into a filter and window."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable

from aggregation.models import MetricEvent, Severity, ensure_utc

logger = logging.getLogger(__name__)


class TimeRange(str, enum.Enum):
    LAST_5M = "5m"
    LAST_10M = "10m"
    LAST_1H = "1h"
    LAST_24H = "24h"
    LAST_7D = "7d"
    CUSTOM = "custom"


class RankBy(str, enum.Enum):
    RATE = "rate"
    ERROR = "error"
    DURATION = "duration"
    SATURATION = "saturation"


TIME_RANGE_SECONDS = {
    TimeRange.LAST_5M: 300,
    TimeRange.LAST_10M: 600,
    TimeRange.LAST_1H: 3600,
    TimeRange.LAST_24H: 86400,
    TimeRange.LAST_7D: 604800,
}

# Used only as the rate denominator when no usable window bounds were given;
# no time filter is applied in that case.
DEFAULT_WINDOW_SECONDS = 86400
FALLBACK_WINDOW = "unbounded-24h-denominator"

DEFAULT_RANK_BY = RankBy.ERROR
MIN_WINDOW_SECONDS = 1


@dataclass
class AggregationQuery:
    time_range: TimeRange | str | None = None
    start_time: datetime | str | None = None
    end_time: datetime | str | None = None
    service_names: list[str] | None = None
    severities: list[Severity | str] | None = None
    rank_by: RankBy | str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class ResolvedQuery:
    """Fully resolved filter plus the window length used for rate math."""
    start: datetime | None
    end: datetime | None
    window_seconds: float
    service_names: frozenset[str] | None
    severities: frozenset[Severity] | None
    rank_by: RankBy
    limit: int | None
    window_policy: str = "explicit"

    @property
    def has_time_filter(self) -> bool:
        return self.start is not None and self.end is not None

    def matches(self, event: MetricEvent) -> bool:
        if self.has_time_filter:
            ts = ensure_utc(event.timestamp)
            if not (self.start <= ts < self.end):
                return False
        if self.service_names is not None and event.service_name not in self.service_names:
            return False
        if self.severities is not None and event.severity not in self.severities:
            return False
        return True


def parse_bound(value: datetime | str | None) -> datetime | None:
    """Parse a window bound; unparseable input yields None rather than an error."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        logger.warning("Ignoring unparseable window bound %r", value)
        return None


def _coerce_time_range(value: TimeRange | str | None) -> TimeRange | None:
    if value is None or value == "":
        return None
    try:
        return TimeRange(value)
    except ValueError:
        logger.warning("Unknown time range %r, treating as custom", value)
        return TimeRange.CUSTOM


def _coerce_rank_by(value: RankBy | str | None) -> RankBy:
    if value is None or value == "":
        return DEFAULT_RANK_BY
    try:
        return RankBy(value)
    except ValueError:
        logger.warning("Unknown rank criterion %r, falling back to %s", value, DEFAULT_RANK_BY.value)
        return DEFAULT_RANK_BY


def _coerce_severities(values: Iterable[Severity | str] | None) -> frozenset[Severity] | None:
    if not values:
        return None
    out = set()
    for value in values:
        try:
            out.add(Severity(value))
        except ValueError:
            # An unknown label can never match, but it still narrows the filter.
            logger.warning("Unknown severity %r in filter", value)
    return frozenset(out)


def _floor_window(seconds: float) -> float:
    return seconds if seconds > 0 else MIN_WINDOW_SECONDS


def resolve_query(query: AggregationQuery, now: datetime | None = None) -> ResolvedQuery:
    """Resolve ``query`` against the evaluation instant ``now`` (defaults to current UTC time)."""
    now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
    time_range = _coerce_time_range(query.time_range)

    start: datetime | None = None
    end: datetime | None = None
    policy = "explicit"

    if time_range is not None and time_range is not TimeRange.CUSTOM:
        seconds = TIME_RANGE_SECONDS[time_range]
        end = now
        start = now - timedelta(seconds=seconds)
        window_seconds = float(seconds)
        policy = time_range.value
    else:
        start = parse_bound(query.start_time)
        end = parse_bound(query.end_time)
        if start is not None and end is not None:
            window_seconds = (end - start).total_seconds()
        else:
            if query.start_time is not None or query.end_time is not None:
                logger.warning(
                    "Incomplete custom window (start=%r, end=%r); no time filter applied",
                    query.start_time, query.end_time,
                )
            start = end = None
            window_seconds = float(DEFAULT_WINDOW_SECONDS)
            policy = FALLBACK_WINDOW

    limit = query.limit
    if limit is not None and limit < 0:
        logger.warning("Ignoring negative limit %d", limit)
        limit = None

    return ResolvedQuery(
        start=start,
        end=end,
        window_seconds=_floor_window(window_seconds),
        service_names=frozenset(query.service_names) if query.service_names else None,
        severities=_coerce_severities(query.severities),
        rank_by=_coerce_rank_by(query.rank_by),
        limit=limit,
        window_policy=policy,
    )
