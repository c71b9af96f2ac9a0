"""SQL-backed event source and ingestion helpers for the metric_events table."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aggregation.models import MetricEvent
from aggregation.query import ResolvedQuery
from src.entities.metric_event import MetricEventRecord

logger = logging.getLogger(__name__)


class SqlEventSource:
    """Event source reading from the database through an async session.

    The session's lifecycle belongs to the caller.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def build_query(self, resolved: ResolvedQuery):
        query = select(MetricEventRecord)
        if resolved.has_time_filter:
            query = query.where(
                MetricEventRecord.timestamp >= resolved.start,
                MetricEventRecord.timestamp < resolved.end,
            )
        if resolved.service_names is not None:
            query = query.where(MetricEventRecord.service_name.in_(sorted(resolved.service_names)))
        if resolved.severities is not None:
            query = query.where(
                MetricEventRecord.severity.in_(sorted(s.value for s in resolved.severities))
            )
        return query.order_by(MetricEventRecord.timestamp, MetricEventRecord.id)

    async def fetch_events(self, resolved: ResolvedQuery) -> list[MetricEvent]:
        result = await self.db.execute(self.build_query(resolved))
        events = [record.to_event() for record in result.scalars().all()]
        logger.debug("Fetched %d metric events", len(events))
        return events


async def store_events(db: AsyncSession, events: Iterable[MetricEvent]) -> int:
    """Persist ``events`` in one transaction and return how many were written."""
    records = [MetricEventRecord.from_event(e) for e in events]
    db.add_all(records)
    await db.commit()
    return len(records)


async def list_service_names(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(MetricEventRecord.service_name)
        .distinct()
        .order_by(MetricEventRecord.service_name)
    )
    return list(result.scalars().all())
