"""
Boundary Geometry Module
========================

Normalized boundary geometry - immutable values, NO provider handles.

Design:
- Immutable shapes (frozen dataclass pattern)
- Explicit GeometryKind tag on every shape (never inferred from fields)
- to_dict()/geometry_from_dict() speak the persisted JSON wire format:

    {"type": "polygon",   "paths":  [{"lat": .., "lng": ..}, ...]}
    {"type": "rectangle", "bounds": {"north": .., "south": .., "east": .., "west": ..}}
    {"type": "circle",    "center": {"lat": .., "lng": ..}, "radius": <meters>}

Validation here covers the data model only (>= 3 polygon points, positive
radius). Coordinate ranges are a map SDK constraint, checked by the codec.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, Tuple, Union


class GeometryKind(str, Enum):
    """Boundary shape kinds."""
    POLYGON = "polygon"
    RECTANGLE = "rectangle"
    CIRCLE = "circle"


@dataclass(frozen=True)
class LatLng:
    """
    Immutable geographic coordinate (degrees).

    Example:
        >>> LatLng(lat=19.43, lng=-99.13).to_dict()
        {'lat': 19.43, 'lng': -99.13}
    """

    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        """Serialize to JSON-compatible dict."""
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LatLng":
        """
        Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(lat=float(data["lat"]), lng=float(data["lng"]))
        except KeyError as e:
            raise ValueError(f"Missing required LatLng field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid LatLng data: {e}")

    def offset(self, d_lat: float, d_lng: float) -> "LatLng":
        """Return a new coordinate shifted by (d_lat, d_lng) degrees."""
        return LatLng(lat=self.lat + d_lat, lng=self.lng + d_lng)


@dataclass(frozen=True)
class Bounds:
    """Immutable north/south/east/west box (degrees)."""

    north: float
    south: float
    east: float
    west: float

    def to_dict(self) -> Dict[str, float]:
        """Serialize to JSON-compatible dict."""
        return {
            "north": self.north,
            "south": self.south,
            "east": self.east,
            "west": self.west,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bounds":
        """
        Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                north=float(data["north"]),
                south=float(data["south"]),
                east=float(data["east"]),
                west=float(data["west"]),
            )
        except KeyError as e:
            raise ValueError(f"Missing required Bounds field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Bounds data: {e}")

    def offset(self, d_lat: float, d_lng: float) -> "Bounds":
        """Return a new box shifted by (d_lat, d_lng) degrees."""
        return Bounds(
            north=self.north + d_lat,
            south=self.south + d_lat,
            east=self.east + d_lng,
            west=self.west + d_lng,
        )


@dataclass(frozen=True)
class PolygonGeometry:
    """
    Immutable polygon boundary.

    Attributes:
        path: Ordered vertices (order is preserved exactly)

    Invariants:
        - at least 3 vertices
    """

    path: Tuple[LatLng, ...]
    kind: ClassVar[GeometryKind] = GeometryKind.POLYGON

    def __post_init__(self):
        """Freeze path as a tuple and validate."""
        object.__setattr__(self, "path", tuple(self.path))
        if len(self.path) < 3:
            raise ValueError(f"Polygon must have at least 3 points, got {len(self.path)}")
        for point in self.path:
            if not isinstance(point, LatLng):
                raise TypeError(f"Polygon path items must be LatLng, got {type(point)}")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind.value, "paths": [p.to_dict() for p in self.path]}


@dataclass(frozen=True)
class RectangleGeometry:
    """Immutable rectangle boundary."""

    bounds: Bounds
    kind: ClassVar[GeometryKind] = GeometryKind.RECTANGLE

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind.value, "bounds": self.bounds.to_dict()}


@dataclass(frozen=True)
class CircleGeometry:
    """
    Immutable circle boundary.

    Attributes:
        center: Circle center
        radius: Radius in meters

    Invariants:
        - radius > 0
    """

    center: LatLng
    radius: float
    kind: ClassVar[GeometryKind] = GeometryKind.CIRCLE

    def __post_init__(self):
        """Validate radius."""
        # Written as "not >" so NaN is rejected too
        if not self.radius > 0:
            raise ValueError(f"Circle radius must be > 0, got {self.radius}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "center": self.center.to_dict(),
            "radius": self.radius,
        }


Geometry = Union[PolygonGeometry, RectangleGeometry, CircleGeometry]


def polygon(points: Iterable[Tuple[float, float]]) -> PolygonGeometry:
    """Build a polygon from (lat, lng) pairs."""
    return PolygonGeometry(path=tuple(LatLng(lat=lat, lng=lng) for lat, lng in points))


def geometry_from_dict(data: Dict[str, Any]) -> Geometry:
    """
    Deserialize a geometry from the persisted wire format.

    Args:
        data: Wire dict with a "type" tag

    Returns:
        PolygonGeometry, RectangleGeometry or CircleGeometry

    Raises:
        ValueError: If the tag is unknown or fields are missing/invalid
    """
    if not isinstance(data, dict):
        raise ValueError(f"Geometry must be a dict, got {type(data).__name__}")

    try:
        kind = GeometryKind(data.get("type"))
    except ValueError:
        raise ValueError(f"Unknown geometry type: {data.get('type')!r}")

    try:
        if kind is GeometryKind.POLYGON:
            paths = data["paths"]
            if not isinstance(paths, list):
                raise ValueError("polygon 'paths' must be a list")
            return PolygonGeometry(path=tuple(LatLng.from_dict(p) for p in paths))

        if kind is GeometryKind.RECTANGLE:
            return RectangleGeometry(bounds=Bounds.from_dict(data["bounds"]))

        return CircleGeometry(
            center=LatLng.from_dict(data["center"]),
            radius=float(data["radius"]),
        )
    except KeyError as e:
        raise ValueError(f"Missing required {kind.value} field: {e}")
    except TypeError as e:
        raise ValueError(f"Invalid {kind.value} data: {e}")
