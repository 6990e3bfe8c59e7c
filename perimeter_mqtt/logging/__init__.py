"""
Structured Logging for Perimeter MQTT
=====================================

Bounded Context: Observability

Public API
----------
    LogEvent: Typed event names (enum)
    event_category: Category (mqtt, boundary, error) of a LogEvent
    StructuredLogger: JSON logger implementation
    create_logger: Factory function
"""

from .events import LogEvent, event_category
from .structured import JSONFormatter, StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'event_category',
    'JSONFormatter',
    'StructuredLogger',
    'create_logger',
]
