"""
Perimeter MQTT Communication Package
====================================

Bounded Context: Messaging for the boundary editor service

Architecture:
- schemas/: Immutable message structures (BoundaryEventMessage)
- publishers/: Message producers (BoundaryEventPublisher)
- logging/: Structured JSON logging for observability

Design Philosophy:
- Immutability: frozen dataclasses for message DTOs
- Observability: Structured logs (JSON) for production queries
"""

__version__ = "1.0.0"

from .schemas import (
    SCHEMA_VERSION,
    Timestamp,
    BoundaryEventMessage,
    BoundaryEventType,
)

from .publishers import (
    BasePublisher,
    BoundaryEventPublisher,
)

from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    # Schemas
    'SCHEMA_VERSION',
    'Timestamp',
    'BoundaryEventMessage',
    'BoundaryEventType',
    # Publishers
    'BasePublisher',
    'BoundaryEventPublisher',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
