"""Tests for query normalization."""

from datetime import datetime, timedelta, timezone

import pytest

from aggregation.models import MetricEvent, Severity
from aggregation.query import (
    DEFAULT_WINDOW_SECONDS,
    FALLBACK_WINDOW,
    TIME_RANGE_SECONDS,
    AggregationQuery,
    RankBy,
    TimeRange,
    parse_bound,
    resolve_query,
)

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def _event(ts, service="api", severity="low"):
    return MetricEvent(
        service_name=service, severity=severity, timestamp=ts,
        response_time_ms=10.0, status_code=200,
    )


class TestNamedRanges:
    @pytest.mark.parametrize("time_range,seconds", [
        ("5m", 300), ("10m", 600), ("1h", 3600), ("24h", 86400), ("7d", 604800),
    ])
    def test_window_ends_now(self, time_range, seconds):
        resolved = resolve_query(AggregationQuery(time_range=time_range), now=NOW)
        assert resolved.end == NOW
        assert resolved.start == NOW - timedelta(seconds=seconds)
        assert resolved.window_seconds == seconds
        assert resolved.window_policy == time_range

    def test_table_covers_every_named_range(self):
        named = {t for t in TimeRange if t is not TimeRange.CUSTOM}
        assert set(TIME_RANGE_SECONDS) == named

    def test_named_range_ignores_explicit_bounds(self):
        resolved = resolve_query(AggregationQuery(
            time_range="1h",
            start_time="2020-01-01T00:00:00Z",
            end_time="2020-01-02T00:00:00Z",
        ), now=NOW)
        assert resolved.start == NOW - timedelta(hours=1)
        assert resolved.window_seconds == 3600

    def test_enum_value_accepted(self):
        resolved = resolve_query(AggregationQuery(time_range=TimeRange.LAST_5M), now=NOW)
        assert resolved.window_seconds == 300


class TestCustomRanges:
    def test_both_bounds_used_verbatim(self):
        resolved = resolve_query(AggregationQuery(
            time_range="custom",
            start_time="2026-10-18T10:00:00Z",
            end_time="2026-10-18T11:30:00Z",
        ), now=NOW)
        assert resolved.start == datetime(2026, 10, 18, 10, tzinfo=timezone.utc)
        assert resolved.end == datetime(2026, 10, 18, 11, 30, tzinfo=timezone.utc)
        assert resolved.window_seconds == 5400
        assert resolved.has_time_filter is True

    def test_absent_range_with_bounds_behaves_as_custom(self):
        resolved = resolve_query(AggregationQuery(
            start_time=NOW - timedelta(minutes=2), end_time=NOW,
        ), now=NOW)
        assert resolved.window_seconds == 120

    def test_inverted_bounds_floor_window_at_one_second(self):
        resolved = resolve_query(AggregationQuery(
            time_range="custom", start_time=NOW, end_time=NOW - timedelta(hours=1),
        ))
        assert resolved.window_seconds == 1

    def test_equal_bounds_floor_window_at_one_second(self):
        resolved = resolve_query(AggregationQuery(
            time_range="custom", start_time=NOW, end_time=NOW,
        ))
        assert resolved.window_seconds == 1

    def test_naive_bounds_are_utc(self):
        resolved = resolve_query(AggregationQuery(
            time_range="custom",
            start_time="2026-10-18T10:00:00",
            end_time=datetime(2026, 10, 18, 11, 0),
        ))
        assert resolved.start.tzinfo is not None
        assert resolved.end == datetime(2026, 10, 18, 11, tzinfo=timezone.utc)


class TestFallbackWindow:
    def test_only_start_means_no_time_filter(self):
        resolved = resolve_query(AggregationQuery(
            time_range="custom", start_time="2026-10-18T10:00:00Z",
        ), now=NOW)
        assert resolved.has_time_filter is False
        assert resolved.start is None and resolved.end is None
        assert resolved.window_seconds == DEFAULT_WINDOW_SECONDS
        assert resolved.window_policy == FALLBACK_WINDOW

    def test_no_range_at_all(self):
        resolved = resolve_query(AggregationQuery(), now=NOW)
        assert resolved.has_time_filter is False
        assert resolved.window_seconds == 86400

    def test_unparseable_bound_falls_back(self):
        resolved = resolve_query(AggregationQuery(
            time_range="custom", start_time="yesterday", end_time="2026-10-18T10:00:00Z",
        ), now=NOW)
        assert resolved.has_time_filter is False
        assert resolved.window_policy == FALLBACK_WINDOW

    def test_unknown_range_treated_as_custom(self):
        resolved = resolve_query(AggregationQuery(time_range="2h"), now=NOW)
        assert resolved.window_policy == FALLBACK_WINDOW

    def test_fallback_matches_any_timestamp(self):
        resolved = resolve_query(AggregationQuery(), now=NOW)
        assert resolved.matches(_event(NOW - timedelta(days=365)))


class TestFiltersAndOptions:
    def test_window_is_half_open(self):
        resolved = resolve_query(AggregationQuery(time_range="1h"), now=NOW)
        assert resolved.matches(_event(NOW - timedelta(hours=1)))
        assert resolved.matches(_event(NOW - timedelta(seconds=1)))
        assert not resolved.matches(_event(NOW))
        assert not resolved.matches(_event(NOW - timedelta(hours=1, seconds=1)))

    def test_service_filter(self):
        resolved = resolve_query(AggregationQuery(service_names=["api", "web"]), now=NOW)
        assert resolved.matches(_event(NOW, service="web"))
        assert not resolved.matches(_event(NOW, service="worker"))

    def test_empty_lists_impose_no_filter(self):
        resolved = resolve_query(AggregationQuery(service_names=[], severities=[]), now=NOW)
        assert resolved.service_names is None
        assert resolved.severities is None
        assert resolved.matches(_event(NOW, service="anything", severity="critical"))

    def test_severity_filter_accepts_strings(self):
        resolved = resolve_query(AggregationQuery(severities=["high", Severity.CRITICAL]))
        assert resolved.severities == frozenset({Severity.HIGH, Severity.CRITICAL})
        assert resolved.matches(_event(NOW, severity="critical"))
        assert not resolved.matches(_event(NOW, severity="low"))

    def test_unknown_severity_matches_nothing(self):
        resolved = resolve_query(AggregationQuery(severities=["catastrophic"]))
        assert resolved.severities == frozenset()
        assert not resolved.matches(_event(NOW, severity="critical"))

    def test_rank_by_defaults_to_error(self):
        assert resolve_query(AggregationQuery()).rank_by is RankBy.ERROR

    def test_rank_by_parsed(self):
        assert resolve_query(AggregationQuery(rank_by="saturation")).rank_by is RankBy.SATURATION

    def test_unknown_rank_by_falls_back_to_error(self):
        assert resolve_query(AggregationQuery(rank_by="popularity")).rank_by is RankBy.ERROR

    def test_negative_limit_ignored(self):
        assert resolve_query(AggregationQuery(limit=-3)).limit is None

    def test_limit_kept(self):
        assert resolve_query(AggregationQuery(limit=5)).limit == 5


class TestParseBound:
    def test_z_suffix(self):
        assert parse_bound("2026-10-18T12:00:00Z") == NOW

    def test_offset_converted_to_utc(self):
        assert parse_bound("2026-10-18T14:00:00+02:00") == NOW

    def test_blank_and_none(self):
        assert parse_bound(None) is None
        assert parse_bound("   ") is None

    def test_garbage(self):
        assert parse_bound("not-a-date") is None
