"""Monitoring and observability infrastructure."""

from .logging import setup_structured_logging, JobLogContext, RequestLogContext
from .metrics import setup_metrics, MetricsCollector, get_metrics_collector
from .health import HealthChecker, HealthCheck

__all__ = [
    "setup_structured_logging",
    "JobLogContext",
    "RequestLogContext",
    "setup_metrics",
    "MetricsCollector",
    "get_metrics_collector",
    "HealthChecker",
    "HealthCheck"
]
