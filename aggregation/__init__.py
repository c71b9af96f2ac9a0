from aggregation.engine import (
    AggregationTimeout,
    EventSource,
    StaticEventSource,
    aggregate_services,
    summarize_events,
)
from aggregation.models import (
    InvalidMetricEvent,
    MetricEvent,
    ResourceUtilization,
    ServiceAggregation,
    Severity,
)
from aggregation.query import AggregationQuery, RankBy, ResolvedQuery, TimeRange, resolve_query

__all__ = [
    "AggregationQuery", "AggregationTimeout", "EventSource", "InvalidMetricEvent",
    "MetricEvent", "RankBy", "ResolvedQuery", "ResourceUtilization",
    "ServiceAggregation", "Severity", "StaticEventSource", "TimeRange",
    "aggregate_services", "resolve_query", "summarize_events",
]
