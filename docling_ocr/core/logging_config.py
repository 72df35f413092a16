"""Structured logging configuration.

JSON-formatted log lines keep OCR uploads traceable in log aggregation
systems: every record may carry the task id, user id and timing fields
passed through `extra=`.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

_EXTRA_KEYS = (
    "task_id",
    "user_id",
    "document_name",
    "endpoint",
    "attempt",
    "max_attempts",
    "error_code",
    "service",
    "duration_ms",
    "http_status",
    "error",
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Example:
        >>> logger.info("OCR submitted", extra={"task_id": "abc", "user_id": "u1"})
        # Output: {"timestamp": "2026-01-05T17:52:00Z", "level": "INFO",
        #          "message": "OCR submitted", "task_id": "abc", "user_id": "u1"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .replace(tzinfo=None)
            .isoformat()
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


def configure_structured_logging(
    level: str = "INFO",
    json_format: bool = True,
) -> None:
    """Configure root logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter (True) or plain text (False)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def mask_secret(value: Optional[str]) -> str:
    """
    Mask an API key for logs.

    Rules:
    - None / empty / <8 chars → fully masked
    - Otherwise → first 4 chars, rest masked
    """
    if not value or len(value) < 8:
        return "***"
    return f"{value[:4]}***"
