"""Tests for MetricEvent invariants."""

from datetime import datetime, timedelta, timezone

import pytest

from aggregation.models import InvalidMetricEvent, MetricEvent, Severity


def _kwargs(**overrides):
    base = dict(
        service_name="api",
        severity="medium",
        timestamp=datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc),
        response_time_ms=12.5,
        status_code=200,
    )
    base.update(overrides)
    return base


class TestMetricEvent:
    def test_defaults(self):
        event = MetricEvent(**_kwargs())
        assert event.request_count == 1
        assert event.cpu_usage_pct is None
        assert event.severity is Severity.MEDIUM
        assert event.is_error is False

    def test_is_error_from_400(self):
        assert MetricEvent(**_kwargs(status_code=400)).is_error is True

    def test_naive_timestamp_becomes_utc(self):
        event = MetricEvent(**_kwargs(timestamp=datetime(2026, 10, 18, 12, 0)))
        assert event.timestamp.tzinfo is timezone.utc

    def test_aware_timestamp_converted_to_utc(self):
        tz = timezone(timedelta(hours=2))
        event = MetricEvent(**_kwargs(timestamp=datetime(2026, 10, 18, 14, 0, tzinfo=tz)))
        assert event.timestamp == datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
        assert event.timestamp.utcoffset() == timedelta(0)

    def test_immutable(self):
        event = MetricEvent(**_kwargs())
        with pytest.raises(AttributeError):
            event.status_code = 500

    @pytest.mark.parametrize("overrides", [
        {"request_count": 0},
        {"status_code": 99},
        {"status_code": 600},
        {"response_time_ms": -1.0},
        {"response_time_ms": float("inf")},
        {"response_time_ms": float("nan")},
        {"severity": "fatal"},
        {"service_name": ""},
        {"cpu_usage_pct": 101.0},
        {"mem_usage_pct": -0.5},
        {"cpu_usage_pct": float("nan")},
    ])
    def test_rejects_out_of_contract_values(self, overrides):
        with pytest.raises(InvalidMetricEvent):
            MetricEvent(**_kwargs(**overrides))

    def test_invalid_event_is_a_value_error(self):
        with pytest.raises(ValueError):
            MetricEvent(**_kwargs(request_count=-2))
