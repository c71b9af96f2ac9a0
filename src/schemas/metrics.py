"""Pydantic schemas for metric ingestion and aggregation endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from aggregation.models import MetricEvent, ResourceUtilization, Severity


class MetricEventCreate(BaseModel):
    service_name: str = Field(min_length=1, max_length=100)
    severity: Severity = Severity.LOW
    timestamp: datetime | None = None
    response_time_ms: float = Field(ge=0, allow_inf_nan=False)
    status_code: int = Field(ge=100, le=599)
    request_count: int = Field(default=1, ge=1)
    cpu_usage_pct: float | None = Field(default=None, ge=0, le=100, allow_inf_nan=False)
    mem_usage_pct: float | None = Field(default=None, ge=0, le=100, allow_inf_nan=False)

    def to_event(self) -> MetricEvent:
        return MetricEvent(
            service_name=self.service_name,
            severity=self.severity,
            timestamp=self.timestamp or datetime.now(timezone.utc),
            response_time_ms=self.response_time_ms,
            status_code=self.status_code,
            request_count=self.request_count,
            cpu_usage_pct=self.cpu_usage_pct,
            mem_usage_pct=self.mem_usage_pct,
        )


class MetricEventBatch(BaseModel):
    events: list[MetricEventCreate] = Field(min_length=1)


class MetricEventResponse(BaseModel):
    id: int
    service_name: str
    severity: Severity
    timestamp: datetime
    response_time_ms: float
    status_code: int
    request_count: int
    cpu_usage_pct: float | None
    mem_usage_pct: float | None

    model_config = {"from_attributes": True}


class BatchIngestResponse(BaseModel):
    accepted: int


# Aggregation output keeps the camelCase JSON contract consumers already read.
class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RateBlock(_CamelModel):
    requests_per_second: float
    requests_per_minute: float
    total_requests: int


class StatusCodeEntry(_CamelModel):
    status_code: int
    count: int
    percentage: float


class SeverityEntry(_CamelModel):
    severity: Severity
    count: int
    percentage: float


class ErrorBlock(_CamelModel):
    error_rate: float
    error_count: int
    by_status_code: list[StatusCodeEntry]
    by_severity: list[SeverityEntry]


class DurationBlock(_CamelModel):
    average_response_time: float
    median_response_time: float
    p95_response_time: float
    p99_response_time: float
    min_response_time: float
    max_response_time: float


class SaturationBlock(_CamelModel):
    average_cpu_usage: float
    max_cpu_usage: float
    average_memory_usage: float
    max_memory_usage: float
    resource_utilization: ResourceUtilization


class ServiceAggregationResponse(_CamelModel):
    service_name: str
    rank: int
    rate: RateBlock
    error: ErrorBlock
    duration: DurationBlock
    saturation: SaturationBlock


class ServiceListResponse(BaseModel):
    services: list[str]
    count: int
