"""Metric ingestion and per-service health aggregation endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aggregation.engine import AggregationTimeout, aggregate_services
from aggregation.query import AggregationQuery, RankBy
from src.config import settings
from src.database import get_db
from src.entities.metric_event import MetricEventRecord
from src.schemas.metrics import (
    BatchIngestResponse,
    MetricEventBatch,
    MetricEventCreate,
    MetricEventResponse,
    ServiceAggregationResponse,
    ServiceListResponse,
)
from src.services.event_store import SqlEventSource, list_service_names, store_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.post("/events", response_model=MetricEventResponse, status_code=201)
async def ingest_event(body: MetricEventCreate, db: AsyncSession = Depends(get_db)):
    """Record a single metric event."""
    record = MetricEventRecord.from_event(body.to_event())
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


@router.post("/events/batch", response_model=BatchIngestResponse, status_code=201)
async def ingest_batch(body: MetricEventBatch, db: AsyncSession = Depends(get_db)):
    """Record many metric events in one transaction."""
    if len(body.events) > settings.max_ingest_batch:
        raise HTTPException(
            status_code=413,
            detail=f"Batch of {len(body.events)} exceeds limit of {settings.max_ingest_batch}",
        )
    accepted = await store_events(db, (e.to_event() for e in body.events))
    return BatchIngestResponse(accepted=accepted)


@router.get("/services", response_model=ServiceListResponse)
async def list_services(db: AsyncSession = Depends(get_db)):
    """Distinct service names that have reported events."""
    services = await list_service_names(db)
    return ServiceListResponse(services=services, count=len(services))


@router.get("/aggregations", response_model=list[ServiceAggregationResponse])
async def get_aggregations(
    time_range: str | None = Query(default=None, description="5m, 10m, 1h, 24h, 7d or custom"),
    start_time: str | None = None,
    end_time: str | None = None,
    service: list[str] | None = Query(default=None),
    severity: list[str] | None = Query(default=None),
    rank_by: str = Query(default=RankBy.ERROR.value),
    limit: int | None = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Ranked per-service health summaries over the requested window."""
    if limit is None:
        limit = settings.default_result_limit
    if limit is not None:
        limit = min(limit, settings.max_result_limit)

    query = AggregationQuery(
        time_range=time_range,
        start_time=start_time,
        end_time=end_time,
        service_names=service,
        severities=severity,
        rank_by=rank_by,
        limit=limit,
    )
    try:
        ranked = await aggregate_services(
            query,
            SqlEventSource(db),
            timeout=settings.aggregation_timeout_seconds,
        )
    except AggregationTimeout as exc:
        raise HTTPException(status_code=504, detail=str(exc))
    except SQLAlchemyError:
        logger.error("Event store query failed during aggregation", exc_info=True)
        raise HTTPException(status_code=503, detail="Metric event store unavailable")

    return [ServiceAggregationResponse.model_validate(asdict(s)) for s in ranked]
