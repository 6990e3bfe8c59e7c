"""
Boundary Event Message Schema
=============================

Bounded Context: Boundary change notifications

Published after every confirmed gateway write so other services (alarm
routing, device assignment) can refresh their copy of a site's boundaries.

Message Flow:
    BoundaryEditor -> EditorService -> BoundaryEventPublisher -> MQTT
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .common import SCHEMA_VERSION, Timestamp


class BoundaryEventType(str, Enum):
    """Boundary change type."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    DEFAULT_CHANGED = "default_changed"


@dataclass(frozen=True)
class BoundaryEventMessage:
    """
    Boundary change message for MQTT publication.

    Attributes:
        schema_version: Message schema version (for evolution)
        timestamp: ISO 8601 timestamp of message creation
        site_id: Owning site
        event_type: Kind of change
        boundary_id: Affected boundary (None when a site loses its default)
        record: Record dict after the change (None for deletions)

    Invariants:
        - DELETED carries no record
        - CREATED/UPDATED carry the record

    Example:
        >>> msg = BoundaryEventMessage(
        ...     schema_version="1.0",
        ...     timestamp=Timestamp.now(),
        ...     site_id="site-1",
        ...     event_type=BoundaryEventType.CREATED,
        ...     boundary_id=record.id,
        ...     record=record.to_dict(),
        ... )
    """
    schema_version: str
    timestamp: Timestamp
    site_id: str
    event_type: BoundaryEventType
    boundary_id: Optional[str] = None
    record: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Validate invariants."""
        if not self.site_id:
            raise ValueError("site_id must be non-empty")
        if self.event_type == BoundaryEventType.DELETED and self.record is not None:
            raise ValueError("Deleted events must not carry a record")
        if self.event_type in (BoundaryEventType.CREATED, BoundaryEventType.UPDATED):
            if self.record is None or self.boundary_id is None:
                raise ValueError(f"{self.event_type.value} events require boundary_id and record")

    @classmethod
    def create(
        cls,
        site_id: str,
        event_type: BoundaryEventType,
        boundary_id: Optional[str] = None,
        record: Optional[Dict[str, Any]] = None,
    ) -> 'BoundaryEventMessage':
        """Build a message stamped now with the current schema version."""
        return cls(
            schema_version=SCHEMA_VERSION,
            timestamp=Timestamp.now(),
            site_id=site_id,
            event_type=BoundaryEventType(event_type),
            boundary_id=boundary_id,
            record=record,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'site_id': self.site_id,
            'event_type': self.event_type.value,
            'boundary_id': self.boundary_id,
            'record': self.record,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoundaryEventMessage':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=data['timestamp']),
                site_id=str(data['site_id']),
                event_type=BoundaryEventType(data['event_type']),
                boundary_id=data.get('boundary_id'),
                record=data.get('record'),
            )
        except KeyError as e:
            raise ValueError(f"Missing required BoundaryEventMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid BoundaryEventMessage data: {e}")
