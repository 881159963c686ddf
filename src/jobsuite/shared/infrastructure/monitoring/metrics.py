"""
Metrics collection with Prometheus integration.
"""

import time
from functools import wraps
from typing import Dict, Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info

from jobsuite.config.settings import get_settings


logger = structlog.get_logger(__name__)


class MetricsCollector:
    """Central metrics collector for the application."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._setup_metrics()

    def _setup_metrics(self):
        """Setup all application metrics."""

        # HTTP Metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Notification Metrics
        self.interview_notifications_total = Counter(
            "interview_notifications_total",
            "Interview notification dispatch outcomes",
            ["kind", "outcome"],
            registry=self.registry
        )

        self.reminder_queue_size = Gauge(
            "reminder_queue_size",
            "Reminder jobs currently held in the registry",
            ["state"],
            registry=self.registry
        )

        self.reminder_tick_duration = Histogram(
            "reminder_tick_duration_seconds",
            "Duration of one trigger loop tick",
            ["kind"],
            registry=self.registry
        )

        self.emails_sent_total = Counter(
            "emails_sent_total",
            "Emails handed to the SMTP transport",
            ["template", "status"],
            registry=self.registry
        )

        # Error Metrics
        self.errors_total = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "component"],
            registry=self.registry
        )

        # Application Info
        self.app_info = Info(
            "app_info",
            "Application information",
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=status_code
        ).inc()

        self.http_request_duration.labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_notification(self, kind: str, outcome: str):
        """Record the outcome of one reminder dispatch."""
        self.interview_notifications_total.labels(kind=kind, outcome=outcome).inc()

    def record_email(self, template: str, success: bool):
        """Record an email send attempt."""
        status = "success" if success else "error"
        self.emails_sent_total.labels(template=template, status=status).inc()

    def update_queue_size(self, sizes: Dict[str, int]):
        """Update reminder queue gauges by state."""
        for state, size in sizes.items():
            self.reminder_queue_size.labels(state=state).set(size)

    def record_error(self, error_type: str, component: str):
        """Record an error."""
        self.errors_total.labels(error_type=error_type, component=component).inc()

    def set_app_info(self, version: str, environment: str):
        """Set application information."""
        self.app_info.info({
            "version": version,
            "environment": environment
        })


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def setup_metrics():
    """Initialize metrics collection."""
    settings = get_settings()
    collector = get_metrics_collector()

    collector.set_app_info(
        version=settings.app_version,
        environment=settings.app_environment
    )

    logger.info("Metrics collection initialized")


def measure_http_request(endpoint: str):
    """Decorator to measure HTTP request metrics."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            collector = get_metrics_collector()
            start_time = time.time()
            status_code = 200

            try:
                return await func(*args, **kwargs)
            except Exception as e:
                status_code = getattr(e, "status_code", 500)
                collector.record_error(
                    error_type=type(e).__name__,
                    component="api"
                )
                raise
            finally:
                collector.record_http_request(
                    method="HTTP",
                    endpoint=endpoint,
                    status_code=status_code,
                    duration=time.time() - start_time
                )
        return wrapper
    return decorator
