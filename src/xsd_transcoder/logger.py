"""Structured logging system for the XSD transcoder."""

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname.lower(),
            "component": getattr(record, "component", "xsd_transcoder"),
            "message": record.getMessage(),
        }

        if hasattr(record, "operationId"):
            log_entry["operationId"] = record.operationId

        # Add extra fields from record
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            log_entry.update(record.extra)

        return json.dumps(log_entry, default=str)


class XSDLogger:
    """Centralized logging system with structured output.

    Level and handler belong to the instance, so loggers of the same
    component built with different settings do not affect each other.
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.INFO,
        component: str = "xsd_transcoder",
        destination: str = "stderr",
    ):
        self.component = component
        self.operation_id = str(uuid4())
        self.level = _LEVELS[LogLevel(level)]

        # records are built by the named logger but emitted by this instance only
        self.logger = logging.getLogger(f"xsd_transcoder.{component}")

        stream = sys.stdout if destination == "stdout" else sys.stderr
        self.handler = logging.StreamHandler(stream)
        self.handler.setFormatter(StructuredFormatter())

    def is_enabled_for(self, level: int) -> bool:
        return level >= self.level

    def _log(self, level: int, message: str, **kwargs) -> None:
        """Internal logging method with structured fields."""
        if not self.is_enabled_for(level):
            return

        # Keyword fields go into the "extra" dict so they cannot clash with LogRecord attributes
        record = self.logger.makeRecord(
            name=self.logger.name,
            level=level,
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None,
            extra={"component": self.component, "operationId": self.operation_id, "extra": kwargs},
        )

        self.handler.handle(record)

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warn(self, message: str, **kwargs) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, **kwargs)

    def schema_event(self, event: str, schema_uri: str, **kwargs) -> None:
        """Log schema-related events."""
        self.info(f"Schema {event}", schema=schema_uri, **kwargs)

    def mapping_decision(self, decision: str, xsd_construct: str, json_output: str, **kwargs) -> None:
        """Log mapping decisions for debugging."""
        self.debug(
            f"Mapping decision: {decision}",
            xsdConstruct=xsd_construct,
            jsonOutput=json_output,
            **kwargs
        )

    def performance_metric(self, metric_name: str, value: Any, unit: str = "", **kwargs) -> None:
        """Log performance metrics."""
        self.debug(
            f"Performance: {metric_name}",
            metricName=metric_name,
            value=value,
            unit=unit,
            **kwargs
        )


def create_logger(
    level: LogLevel = LogLevel.INFO,
    component: str = "xsd_transcoder",
    destination: str = "stderr",
) -> XSDLogger:
    """Create a configured logger instance."""
    return XSDLogger(level=level, component=component, destination=destination)
