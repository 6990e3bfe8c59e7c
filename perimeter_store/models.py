"""
Boundary model - stored boundaries of a site.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from perimeter_store.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BoundaryRow(Base):
    """Stored boundary (geometry kept in the JSON wire format)."""
    __tablename__ = "boundaries"

    # Insertion sequence, gives the creation order
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, index=True)
    site_id = Column(String(255), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    geometry = Column(JSON, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)

    # Metadata
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<BoundaryRow(id='{self.id}', site_id='{self.site_id}', name='{self.name}')>"

    def to_dict(self):
        """Convert to a BoundaryRecord dict."""
        return {
            "id": self.id,
            "site_id": self.site_id,
            "name": self.name,
            "geometry": self.geometry,
            "is_default": bool(self.is_default),
        }
