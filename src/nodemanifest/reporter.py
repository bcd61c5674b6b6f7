"""
Diagnostics sink for node manifest processing.

The batch processor reports through a ``Reporter``: structured errors
(carrying a stable log id and the manifest they concern), plain warnings and
plain info messages.  ``LoggingReporter`` is the default sink.  In ``json``
format each line is a JSON object for log aggregation; in ``text`` format it
is the bare message.

Usage:
    from nodemanifest.reporter import LoggingReporter, configure_logging

    configure_logging(get_config())
    reporter = LoggingReporter(log_format="json")
    reporter.info("Wrote out 3 node page manifest files.")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from nodemanifest.types import LogId

_reporter_logger = logging.getLogger("nodemanifest.reporter")

_HANDLER_NAME = "nodemanifest-stream"


class ErrorPayload(BaseModel):
    """A structured error report."""

    model_config = ConfigDict(extra="forbid")

    id: LogId
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class Reporter(Protocol):
    """Where diagnostics go.  Each method returns what it was given."""

    def error(self, payload: ErrorPayload) -> ErrorPayload: ...

    def warn(self, message: str) -> str: ...

    def info(self, message: str) -> str: ...


class LoggingReporter:
    """
    Reporter backed by the ``nodemanifest.reporter`` logger.

    JSON entries include standard fields for filtering:
    - timestamp, level, event, service
    - log id and manifest context for errors
    """

    def __init__(
        self,
        service_name: str = "nodemanifest",
        log_format: str = "text",
        logger: Optional[logging.Logger] = None,
    ):
        self.service_name = service_name
        self.log_format = log_format
        self._logger = logger or _reporter_logger

    def _emit(self, level: str, event: str, message: str, **fields: Any) -> None:
        if self.log_format == "json":
            entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": level,
                "event": event,
                "service": self.service_name,
                "message": message,
            }
            entry.update(fields)
            line = json.dumps(entry, default=str)
        else:
            line = message

        if level == "error":
            self._logger.error(line)
        elif level == "warn":
            self._logger.warning(line)
        else:
            self._logger.info(line)

    def error(self, payload: ErrorPayload) -> ErrorPayload:
        if self.log_format == "json":
            self._emit(
                "error",
                "node_manifest.error",
                payload.message,
                log_id=payload.id.value,
                context=payload.context,
            )
        else:
            self._emit("error", "node_manifest.error", f"[{payload.id.value}] {payload.message}")
        return payload

    def warn(self, message: str) -> str:
        self._emit("warn", "node_manifest.warning", message)
        return message

    def info(self, message: str) -> str:
        self._emit("info", "node_manifest.info", message)
        return message


def configure_logging(config: Any) -> None:
    """Attach one stdout handler to the package logger at the configured level."""
    package_logger = logging.getLogger("nodemanifest")
    package_logger.setLevel(config.log_level.upper())

    for existing in package_logger.handlers:
        if existing.get_name() == _HANDLER_NAME:
            existing.setStream(sys.stdout)
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    if config.log_format == "json":
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    package_logger.addHandler(handler)
