"""
Logging configuration.

Configures Python logging for scripts and services using the Bookshelf
database layer. Structured details passed as extra={"json_fields": {...}}
are rendered after the message.
"""

import json
import logging
import os
import sys

# Flag to track if logging is already configured
_logging_configured = False


class LocalFormatter(logging.Formatter):
    """Custom formatter that displays json_fields from extra dict."""

    def format(self, record: logging.LogRecord) -> str:
        # Get base formatted message
        message = super().format(record)

        # Check for json_fields in extra
        json_fields = getattr(record, "json_fields", None)
        if json_fields:
            # Append JSON fields to the message
            fields_str = json.dumps(json_fields, indent=2, default=str)
            message = f"{message}\n{fields_str}"

        return message


def setup_logging(service_name: str = "bookshelf", level: str | None = None):
    """
    Configure root logging to stdout.

    Args:
        service_name: Name used in the startup log line
        level: Log level name; defaults to LOG_LEVEL from the environment, then INFO
    """
    global _logging_configured

    if _logging_configured:
        return

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        LocalFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level_name)
    root_logger.addHandler(handler)

    _logging_configured = True
    logging.getLogger(__name__).info("Logging configured for %s", service_name)
