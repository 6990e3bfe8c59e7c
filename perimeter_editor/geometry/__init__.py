"""
Geometry Layer
==============

Bounded Context: Normalized boundary geometry.

Responsibilities:
- Shape representation (immutable, explicit kind tag)
- Persisted JSON wire format
- NO provider handles (see geometry.codec for that boundary)

Design Philosophy:
- Immutable data structures
- Fail-fast validation
- Zero side effects
"""

from perimeter_editor.geometry.shapes import (
    Bounds,
    CircleGeometry,
    Geometry,
    GeometryKind,
    LatLng,
    PolygonGeometry,
    RectangleGeometry,
    geometry_from_dict,
    polygon,
)

__all__ = [
    "Bounds",
    "CircleGeometry",
    "Geometry",
    "GeometryKind",
    "LatLng",
    "PolygonGeometry",
    "RectangleGeometry",
    "geometry_from_dict",
    "polygon",
]
