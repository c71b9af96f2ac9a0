"""MetricEventRecord: one row per observed request or coalesced request batch."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.database import Base
from aggregation.models import MetricEvent, Severity, ensure_utc


class MetricEventRecord(Base):
    __tablename__ = "metric_events"
    __table_args__ = (
        CheckConstraint("request_count >= 1", name="ck_metric_events_request_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, default=Severity.LOW.value)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    response_time_ms: Mapped[float] = mapped_column(Float, nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    cpu_usage_pct: Mapped[float | None] = mapped_column(Float, nullable=True)
    mem_usage_pct: Mapped[float | None] = mapped_column(Float, nullable=True)

    @classmethod
    def from_event(cls, event: MetricEvent) -> "MetricEventRecord":
        return cls(
            service_name=event.service_name,
            severity=event.severity.value,
            timestamp=event.timestamp,
            response_time_ms=event.response_time_ms,
            status_code=event.status_code,
            request_count=event.request_count,
            cpu_usage_pct=event.cpu_usage_pct,
            mem_usage_pct=event.mem_usage_pct,
        )

    def to_event(self) -> MetricEvent:
        # SQLite hands back naive datetimes; everything is stored as UTC.
        return MetricEvent(
            service_name=self.service_name,
            severity=Severity(self.severity),
            timestamp=ensure_utc(self.timestamp),
            response_time_ms=self.response_time_ms,
            status_code=self.status_code,
            request_count=self.request_count,
            cpu_usage_pct=self.cpu_usage_pct,
            mem_usage_pct=self.mem_usage_pct,
        )
