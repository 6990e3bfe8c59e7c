"""
Geometry Codec Module
=====================

Bidirectional mapping: normalized Geometry <-> provider overlay handle.

Design:
- to_normalized() switches on the handle's explicit kind tag, never inspects
  the handle's shape
- from_normalized() ALWAYS builds a new independent handle through the
  provider factory (edit-session setup and undo/redo time travel alike)
- Construction failures surface as CloneError so callers can abort cleanly
"""

import logging
from typing import Any, Callable, Dict, Optional

from perimeter_editor.errors import CloneError
from perimeter_editor.geometry.shapes import (
    CircleGeometry,
    Geometry,
    GeometryKind,
    PolygonGeometry,
    RectangleGeometry,
)
from perimeter_editor.provider.base import OverlayHandle

logger = logging.getLogger(__name__)

OverlayFactory = Callable[[Geometry, Optional[Dict[str, Any]]], OverlayHandle]


class GeometryCodec:
    """
    Geometry <-> overlay handle codec.

    Usage:
        codec = GeometryCodec(provider.create_overlay)
        handle = codec.from_normalized(record.geometry)
        geometry = codec.to_normalized(handle)
    """

    def __init__(self, factory: OverlayFactory):
        self._factory = factory

    @staticmethod
    def to_normalized(handle: OverlayHandle) -> Geometry:
        """
        Extract the exact geometry of a handle.

        Raises:
            ValueError: If the handle carries an unknown kind
        """
        kind = GeometryKind(handle.kind)

        if kind is GeometryKind.POLYGON:
            return PolygonGeometry(path=tuple(handle.get_path()))
        if kind is GeometryKind.RECTANGLE:
            return RectangleGeometry(bounds=handle.get_bounds())
        return CircleGeometry(center=handle.get_center(), radius=handle.get_radius())

    def from_normalized(
        self, geometry: Geometry, options: Optional[Dict[str, Any]] = None
    ) -> OverlayHandle:
        """
        Build a NEW overlay handle for geometry.

        Raises:
            CloneError: If the provider refuses to construct the overlay
        """
        if not isinstance(geometry, (PolygonGeometry, RectangleGeometry, CircleGeometry)):
            raise CloneError(f"Unknown geometry kind: {type(geometry).__name__}")

        try:
            return self._factory(geometry, options)
        except (TypeError, ValueError) as e:
            logger.warning(f"Overlay construction failed for {geometry.kind.value}: {e}")
            raise CloneError(f"Cannot rebuild {geometry.kind.value} overlay: {e}") from e

    def check(self, geometry: Geometry) -> None:
        """
        Verify geometry can be rebuilt (the throwaway handle is never attached).

        Raises:
            CloneError: If from_normalized() would refuse geometry
        """
        self.from_normalized(geometry)
