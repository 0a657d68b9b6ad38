"""
Logging configuration and request tracing for the web PDF service.

Every trace line carries the request's correlation id and the time elapsed
since a start marker, so one request's phases can be grouped in the logs.
"""

import json
import logging
import random
import string
import sys
import time
from datetime import datetime
from typing import Optional

logger = logging.getLogger("webpdf_service.trace")

_ID_ALPHABET = string.digits + string.ascii_lowercase


class JsonFormatter(logging.Formatter):
    """One JSON object per line, parseable by log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure global logging settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Log format ("simple" or "json")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Remove existing handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if format == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def init_telemetry(connection_string: Optional[str], level: str = "INFO") -> bool:
    """
    Configure logging for the optional external telemetry sink.

    The sink collects stdout, so when a connection string is present log
    lines are emitted as JSON.

    Returns:
        True if the telemetry sink is enabled
    """
    enabled = bool(connection_string)
    setup_logging(level, format="json" if enabled else "simple")
    if enabled:
        logger.info("Telemetry enabled")
    else:
        logger.info("Missing APPLICATIONINSIGHTS_CONNECTION_STRING. Starting without telemetry")
    return enabled


def generate_request_id() -> str:
    """
    Build a correlation id from the current milliseconds and a random token.

    Uniqueness is probabilistic. Use only to group log lines of one request.
    """
    milliseconds = datetime.now().microsecond // 1000
    token = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"{milliseconds}-{token}"


def clock() -> float:
    """Return a start marker for elapsed-time measurements."""
    return time.perf_counter()


def elapsed_ms(start: float) -> int:
    """Whole milliseconds elapsed since `start`."""
    return round((time.perf_counter() - start) * 1000)


def format_elapsed(ms: int) -> str:
    """Render a duration as `<n>ms`, or `<s.sss>s` above one second."""
    if ms > 1000:
        return f"{ms / 1000:.3f}s"
    return f"{ms}ms"


def track_trace(message: str, start: float, request_id: Optional[str] = None) -> None:
    """
    Log a message annotated with the request id and elapsed time.

    Args:
        message: What happened
        start: Marker returned by `clock()`
        request_id: Correlation id of the request (optional)
    """
    elapsed = format_elapsed(elapsed_ms(start))
    logger.info(f"[@{request_id or ''}] {message} {elapsed}")
