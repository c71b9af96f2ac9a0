"""Collapse raw per-event error tallies into sorted, percentage-annotated breakdowns."""

from __future__ import annotations

from typing import Hashable, Iterable, TypeVar

from aggregation.models import Severity, SeverityCount, StatusCodeCount
from aggregation.statistics import round2

K = TypeVar("K", bound=Hashable)


def merge_tallies(tallies: Iterable[tuple[K, int]]) -> dict[K, int]:
    """Sum counts per key, keeping keys in first-seen order."""
    merged: dict[K, int] = {}
    for key, count in tallies:
        merged[key] = merged.get(key, 0) + count
    return merged


def build_breakdown(
    tallies: Iterable[tuple[K, int]], error_count: int
) -> list[tuple[K, int, float]]:
    """Return ``(key, count, percentage_of_errors)`` sorted by descending count.

    Ties keep first-seen order.
    """
    merged = merge_tallies(tallies)
    entries = [
        (key, count, round2(100 * count / error_count) if error_count else 0.0)
        for key, count in merged.items()
    ]
    return sorted(entries, key=lambda e: e[1], reverse=True)


def status_code_breakdown(
    tallies: Iterable[tuple[int, int]], error_count: int
) -> list[StatusCodeCount]:
    return [
        StatusCodeCount(status_code=code, count=count, percentage=pct)
        for code, count, pct in build_breakdown(tallies, error_count)
    ]


def severity_breakdown(
    tallies: Iterable[tuple[Severity, int]], error_count: int
) -> list[SeverityCount]:
    return [
        SeverityCount(severity=severity, count=count, percentage=pct)
        for severity, count, pct in build_breakdown(tallies, error_count)
    ]
