"""
Structured logging configuration with correlation IDs and sensitive-field redaction.
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from structlog.types import EventDict

from jobsuite.config.settings import get_settings


# Context variables for request and job correlation
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
job_id_var: ContextVar[Optional[str]] = ContextVar("job_id", default=None)

SENSITIVE_FIELDS = {
    "password", "token", "secret", "authorization", "api_key", "private_key"
}


def add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add correlation IDs to log events."""
    request_id = request_id_var.get()
    job_id = job_id_var.get()

    if request_id:
        event_dict["request_id"] = request_id
    if job_id and "job_id" not in event_dict:
        event_dict["job_id"] = job_id

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to log events."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def filter_sensitive_data(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Filter out sensitive data from logs."""

    def _filter_dict(d: Dict[str, Any]) -> Dict[str, Any]:
        filtered = {}
        for key, value in d.items():
            if any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS):
                filtered[key] = "[REDACTED]"
            elif isinstance(value, dict):
                filtered[key] = _filter_dict(value)
            elif isinstance(value, list):
                filtered[key] = [
                    _filter_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                filtered[key] = value
        return filtered

    return _filter_dict(event_dict)


def setup_structured_logging():
    """Configure structured logging for the application."""
    settings = get_settings()
    level = getattr(logging, settings.monitoring.log_level.upper(), logging.INFO)

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Silence noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    processors = [
        add_correlation_id,
        add_timestamp,
        structlog.processors.add_log_level,
        filter_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.monitoring.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Console format for development
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.monitoring.log_file_path:
        file_handler = logging.FileHandler(settings.monitoring.log_file_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(file_handler)


class JobLogContext:
    """Binds a reminder job id to every log line emitted inside the block."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        self._token = None

    def __enter__(self):
        self._token = job_id_var.set(self.job_id)
        return structlog.get_logger()

    def __exit__(self, exc_type, exc_val, exc_tb):
        job_id_var.reset(self._token)


class RequestLogContext:
    """Binds a request id to every log line emitted while handling a request."""

    def __init__(self, request_id: str):
        self.request_id = request_id

    def __enter__(self):
        request_id_var.set(self.request_id)
        return structlog.get_logger()

    def __exit__(self, exc_type, exc_val, exc_tb):
        request_id_var.set(None)
