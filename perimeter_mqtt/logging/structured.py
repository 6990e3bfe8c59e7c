"""
Structured JSON Logger
======================

Bounded Context: Observability Infrastructure

JSON lines for the MQTT layer (publishers, control plane).

Design:
- Wraps Python's logging module (thread-safe)
- Typed events (LogEvent enum), each entry tagged with its category
- Bound context (service_id, site_id) rides on every entry
- Metadata values that are not JSON-native are stringified

Output:
    {
        "timestamp": "2025-10-24T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "boundary_publisher",
        "event": "boundary.event.published",
        "category": "boundary",
        "message": "Published created event",
        "context": {"service_id": "editor_01", "site_id": "warehouse-north"},
        "metadata": {"boundary_id": "9b1d..."}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .events import LogEvent, event_category


class StructuredLogger:
    """
    JSON structured logger for one component.

    Example:
        >>> logger = create_logger("boundary_publisher", context={"site_id": "site-1"})
        >>> logger.bind(service_id="editor_01").info(
        ...     event=LogEvent.MQTT_CONNECTED,
        ...     message="Connected to broker",
        ...     metadata={'broker': 'localhost:1883'}
        ... )
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ):
        self.component = component
        self.context: Dict[str, Any] = dict(context or {})
        self.logger_name = logger_name or f"perimeter_mqtt.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        # One JSON handler per logger name, shared by bound children
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def bind(self, **context: Any) -> "StructuredLogger":
        """Child logger writing to the same stream with extra context fields."""
        return StructuredLogger(
            self.component,
            level=self.logger.level,
            logger_name=self.logger_name,
            context={**self.context, **context},
        )

    def build_entry(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': LogEvent(event).value,
            'category': event_category(event),
            'message': message,
        }
        if self.context:
            entry['context'] = dict(self.context)
        if metadata:
            entry['metadata'] = metadata
        if exc_info:
            entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }
        return entry

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        entry = self.build_entry(level, event, message, metadata, exc_info)
        self.logger.log(
            getattr(logging, level),
            json.dumps(entry, default=str),
            exc_info=exc_info if level == 'ERROR' else None
        )

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log('DEBUG', event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log('INFO', event, message, metadata)

    def warning(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log('WARNING', event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """ERROR entry; exc_info adds an "exception" object and the traceback."""
        self._log('ERROR', event, message, metadata, exc_info)


class JSONFormatter(logging.Formatter):
    """Pass-through formatter: StructuredLogger messages are already JSON."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: int = logging.INFO,
    context: Optional[Mapping[str, Any]] = None,
) -> StructuredLogger:
    return StructuredLogger(component=component, level=level, context=context)
