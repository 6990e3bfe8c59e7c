"""
Persistence Gateway Contract
============================

Bounded Context: Stored boundary records of a site.

Design:
- BoundaryRecord is immutable; the editor replaces cached records, never
  mutates them
- Gateways raise PersistenceError on any failure (unknown ids included)
- set_default() and create(is_default=True) clear the previous default of
  the site in the same transaction
- list() returns records in creation order
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Protocol

from perimeter_editor.geometry.shapes import Geometry, geometry_from_dict


@dataclass(frozen=True)
class BoundaryRecord:
    """
    Stored boundary.

    Attributes:
        id: Gateway-assigned id
        site_id: Owning site
        name: Non-empty display name
        geometry: Normalized geometry
        is_default: True for the single default boundary of the site
    """

    id: str
    site_id: str
    name: str
    geometry: Geometry
    is_default: bool = False

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Boundary name must be non-empty")

    def with_default(self, is_default: bool) -> "BoundaryRecord":
        return replace(self, is_default=is_default)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict (geometry in wire format)."""
        return {
            "id": self.id,
            "site_id": self.site_id,
            "name": self.name,
            "geometry": self.geometry.to_dict(),
            "is_default": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoundaryRecord":
        """
        Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                id=str(data["id"]),
                site_id=str(data["site_id"]),
                name=data["name"],
                geometry=geometry_from_dict(data["geometry"]),
                is_default=bool(data.get("is_default", False)),
            )
        except KeyError as e:
            raise ValueError(f"Missing required BoundaryRecord field: {e}")


class BoundaryGateway(Protocol):
    """Persistence collaborator of the editor."""

    def create(
        self, site_id: str, name: str, geometry: Geometry, is_default: bool
    ) -> BoundaryRecord: ...

    def update(self, boundary_id: str, name: str, geometry: Geometry) -> None: ...

    def delete(self, boundary_id: str) -> None: ...

    def set_default(self, site_id: str, boundary_id: str) -> None: ...

    def list(self, site_id: str) -> List[BoundaryRecord]: ...
