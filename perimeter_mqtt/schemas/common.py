"""
Common Schema Types
===================

Bounded Context: Shared Data Structures

Wire-level pieces shared by every boundary message.

Design:
- Timestamps always travel as timezone-aware ISO 8601 in UTC
- A message whose timestamp cannot be parsed is rejected on construction
"""

from dataclasses import dataclass
from datetime import datetime, timezone

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class Timestamp:
    """
    ISO 8601 UTC timestamp.

    Example:
        >>> Timestamp.from_datetime(datetime(2025, 10, 24, 15, 30, tzinfo=timezone.utc)).value
        '2025-10-24T15:30:00+00:00'
    """
    value: str

    def __post_init__(self):
        if self.to_datetime().tzinfo is None:
            raise ValueError(f"Timestamp must carry a UTC offset: {self.value}")

    @classmethod
    def now(cls) -> 'Timestamp':
        return cls.from_datetime(datetime.now(timezone.utc))

    @classmethod
    def from_datetime(cls, dt: datetime) -> 'Timestamp':
        """Naive datetimes are taken as UTC; aware ones are converted to UTC."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return cls(value=dt.astimezone(timezone.utc).isoformat())

    def to_datetime(self) -> datetime:
        try:
            return datetime.fromisoformat(str(self.value))
        except ValueError as e:
            raise ValueError(f"Invalid ISO timestamp: {self.value}") from e

    def to_dict(self) -> str:
        return self.value
