# core/logging.py
import logging
import sys
from typing import Any, Dict

import structlog

from core.config import Settings

SENSITIVE_KEYS = (
    "password", "token", "secret", "authorization", "credential",
    "api_key", "access_key",
)


def configure_logging(settings: Settings):
    """Route structlog through stdlib logging; JSON lines unless DEBUG."""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if settings.debug else logging.INFO,
    )
    logging.getLogger().setLevel(logging.DEBUG if settings.debug else logging.INFO)

    # Silence noisy loggers
    for name in ("uvicorn.access", "botocore", "urllib3", "google.auth"):
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = (
        structlog.dev.ConsoleRenderer(colors=True)
        if settings.debug
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_environment(settings.environment),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def add_environment(environment: str):
    def processor(logger, method_name, event_dict):
        event_dict["environment"] = environment
        return event_dict
    return processor


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Redact credential-looking keys and clip long strings"""
    sanitized = {}
    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            sanitized[key] = "***REDACTED***"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)
        elif isinstance(value, str) and len(value) > 200:
            sanitized[key] = value[:200] + "..."
        else:
            sanitized[key] = value
    return sanitized


class StorefrontLogger:
    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def _emit(self, level: str, message: str, kwargs: Dict[str, Any]):
        getattr(self.logger, level)(message, **sanitize_log_data(kwargs))

    def debug(self, message: str, **kwargs):
        self._emit("debug", message, kwargs)

    def info(self, message: str, **kwargs):
        self._emit("info", message, kwargs)

    def warning(self, message: str, **kwargs):
        self._emit("warning", message, kwargs)

    def error(self, message: str, **kwargs):
        self._emit("error", message, kwargs)

    def exception(self, message: str, **kwargs):
        """Error with the active exception's traceback attached"""
        self._emit("exception", message, kwargs)

    def log_service_call(self, service: str, operation: str,
                         duration: float, success: bool, **kwargs):
        """One line per call to S3 or another backend"""
        self.info(
            f"{service} service call",
            service=service,
            operation=operation,
            duration_ms=round(duration * 1000, 2),
            success=success,
            **kwargs
        )

    def log_cache_operation(self, operation: str, key: str,
                            hit: bool = None, ttl: int = None):
        log_data = {"cache_operation": operation, "cache_key": key}
        if hit is not None:
            log_data["cache_hit"] = hit
        if ttl is not None:
            log_data["ttl"] = ttl
        self.debug("Cache operation", **log_data)


logger = StorefrontLogger("storefront")
