"""Structured logging infrastructure for the API layer.

Provides JSON-formatted logging for production and human-readable
logging for development. Pipeline events carry run_id/stage/duration
fields (see storybook.core.run_logger).
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Extra record attributes copied into JSON output when present
STRUCTURED_FIELDS = (
    "run_id",
    "stage",
    "failed_at_stage",
    "duration",
    "error_type",
    "page",
    "profile",
    "page_count",
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        for name in STRUCTURED_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(json_format: bool = True, level: int = logging.INFO) -> None:
    """Configure structured logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create console handler
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


def configure_from_env() -> None:
    """configure_logging() driven by LOG_FORMAT (json|text) and LOG_LEVEL."""
    json_format = os.getenv("LOG_FORMAT", "json").lower() != "text"
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    configure_logging(json_format=json_format, level=level)
