"""
Logging & Performance Tracking
JSON log formatter and an operation timing decorator.
"""

import time
from typing import Any, Callable, Dict, Optional
from functools import wraps
import logging
import json
from datetime import datetime, timezone
import inspect

logger = logging.getLogger(__name__)


# ============================================================================
# STRUCTURED LOGGING
# ============================================================================

TIMING_FIELDS = ("operation", "context", "duration_ms")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line (LOG_FORMAT=json). Timing records from
    ``track_performance`` also carry operation, context and duration_ms.
    Korean place names are written as-is.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for field in TIMING_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False)


def build_logging_config(log_level: str = "INFO", log_format: str = "text") -> Dict[str, Any]:
    """dictConfig payload for the app, uvicorn and sqlalchemy loggers."""
    formatter = "json" if log_format.lower() == "json" else "detailed"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
            },
            "json": {"()": "tripplanner.core.monitoring.JSONFormatter"},
        },
        "handlers": {
            "default": {
                "formatter": formatter,
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "tripplanner": {"handlers": ["default"], "level": log_level.upper()},
            "uvicorn": {"handlers": ["default"], "level": "INFO"},
            "sqlalchemy": {"handlers": ["default"], "level": "WARNING"},
        },
    }


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

def _timing_suffix(describe: Optional[Callable[..., str]], args: tuple, kwargs: dict) -> str:
    if describe is None:
        return ""
    try:
        return f" [{describe(*args, **kwargs)}]"
    except (AttributeError, KeyError, TypeError) as e:
        logger.debug(f"Timing context unavailable: {e}")
        return ""


def _log_timing(operation_name: str, context: str, start: float, error: Optional[Exception] = None) -> None:
    elapsed = round((time.perf_counter() - start) * 1000, 1)
    extra = {"operation": operation_name, "duration_ms": elapsed, "context": context.strip(" []") or None}
    if error is None:
        logger.info(f"{operation_name}{context} completed in {elapsed:.0f}ms", extra=extra)
    else:
        logger.error(f"{operation_name}{context} failed after {elapsed:.0f}ms: {error}", extra=extra)


def track_performance(operation_name: str, describe: Optional[Callable[..., str]] = None):
    """
    Log how long ``operation_name`` takes.

    ``describe`` receives the call's arguments and returns a short context
    string for the log line, e.g. ``trip=... rows=12``.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            context = _timing_suffix(describe, args, kwargs)
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation_name, context, start, e)
                raise
            _log_timing(operation_name, context, start)
            return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            context = _timing_suffix(describe, args, kwargs)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation_name, context, start, e)
                raise
            _log_timing(operation_name, context, start)
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
