from src.entities.metric_event import MetricEventRecord

__all__ = ["MetricEventRecord"]
