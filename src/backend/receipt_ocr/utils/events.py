"""
Event recorders for parser tracing.

The parsing services never log directly; they call ``recorder.record(event, fields)``
so callers can route traces to logging, collect them in tests, or drop them.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger("receipt_ocr.events")


class LoggingRecorder:
    """Forward events to the standard logging module as structured records."""

    def __init__(self, target: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self.logger = target or logger
        self.level = level

    def record(self, event: str, fields: Optional[Dict[str, Any]] = None) -> None:
        self.logger.log(self.level, event, extra={
            "event": event,
            "fields": dict(fields or {}),
        })


class NullRecorder:
    """Discard every event."""

    def record(self, event: str, fields: Optional[Dict[str, Any]] = None) -> None:
        return None


def default_recorder() -> LoggingRecorder:
    return LoggingRecorder()
