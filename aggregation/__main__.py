"""Entry point: python -m aggregation

Ranks per-service health summaries from the metric event store and prints
them as JSON.

Usage:
    python -m aggregation                           # last 24h, ranked by error rate
    python -m aggregation --time-range 1h --rank-by duration --limit 5
    python -m aggregation --start 2026-01-01T00:00:00Z --end 2026-01-02T00:00:00Z
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Ensure the service package is importable when run from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from aggregation.engine import aggregate_services
from aggregation.query import AggregationQuery, RankBy, TimeRange
from aggregation.models import Severity

from src.config import settings
from src.database import async_session, close_db, init_db
from src.services.event_store import SqlEventSource


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m aggregation",
        description="Rank services by health over a time window",
    )
    parser.add_argument(
        "--time-range", choices=[t.value for t in TimeRange], default=None,
        help="Relative window ending now (default: 24h unless --start/--end given)",
    )
    parser.add_argument("--start", help="Window start (ISO-8601) for a custom range")
    parser.add_argument("--end", help="Window end (ISO-8601) for a custom range")
    parser.add_argument(
        "--service", action="append", dest="services", default=None,
        help="Only include this service (repeatable)",
    )
    parser.add_argument(
        "--severity", action="append", dest="severities", default=None,
        choices=[s.value for s in Severity],
        help="Only include events with this severity (repeatable)",
    )
    parser.add_argument(
        "--rank-by", choices=[r.value for r in RankBy], default=RankBy.ERROR.value,
    )
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument(
        "--timeout", type=float, default=settings.aggregation_timeout_seconds,
        help="Abort if the aggregation takes longer than this many seconds",
    )
    return parser


def query_from_args(args: argparse.Namespace) -> AggregationQuery:
    time_range = args.time_range
    if time_range is None:
        time_range = TimeRange.CUSTOM.value if (args.start or args.end) else TimeRange.LAST_24H.value
    return AggregationQuery(
        time_range=time_range,
        start_time=args.start,
        end_time=args.end,
        service_names=args.services,
        severities=args.severities,
        rank_by=args.rank_by,
        limit=args.limit,
    )


async def main(args: argparse.Namespace) -> int:
    await init_db()
    try:
        async with async_session() as db:
            ranked = await aggregate_services(
                query_from_args(args), SqlEventSource(db), timeout=args.timeout,
            )
    finally:
        await close_db()

    print(json.dumps([s.to_dict() for s in ranked], indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(build_parser().parse_args())))
