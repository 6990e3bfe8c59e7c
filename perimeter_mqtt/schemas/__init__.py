"""
Perimeter MQTT Schemas
======================

Bounded Context: Data Structures

Design:
- Frozen dataclasses (immutability)
- to_dict()/from_dict() for JSON
- Schema versioning for evolution

Public API
----------
    Timestamp: ISO 8601 timestamp wrapper
    BoundaryEventType: Enum (CREATED, UPDATED, DELETED, DEFAULT_CHANGED)
    BoundaryEventMessage: Boundary change message
"""

from .common import SCHEMA_VERSION, Timestamp
from .boundary_event import BoundaryEventMessage, BoundaryEventType

__all__ = [
    'SCHEMA_VERSION',
    'Timestamp',
    'BoundaryEventMessage',
    'BoundaryEventType',
]
