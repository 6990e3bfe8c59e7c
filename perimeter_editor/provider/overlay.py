"""
Overlay Handle Module
=====================

In-process drawable handles for the canvas map provider.

Design:
- Mutable by nature (a map SDK mutates overlays in place on user drags)
- Kind tag fixed at creation, accessors refuse the wrong kind (TypeError)
- Every mutator emits EXACTLY one OverlayEvent to its listeners
- A mutation whose resulting shape fails check_construction raises
  ValueError and leaves the overlay (and its listeners) untouched
- check_construction() holds the SDK construction constraints; the codec
  turns its ValueError into a CloneError
"""

import itertools
import logging
import math
from typing import Any, Callable, Dict, List, Optional

from perimeter_editor.geometry.shapes import (
    Bounds,
    CircleGeometry,
    Geometry,
    GeometryKind,
    LatLng,
    PolygonGeometry,
    RectangleGeometry,
)
from perimeter_editor.provider.base import Listener, OverlayCallback, OverlayEvent

logger = logging.getLogger(__name__)

MIN_POLYGON_VERTICES = 3


def _check_point(point: LatLng) -> None:
    if not (math.isfinite(point.lat) and math.isfinite(point.lng)):
        raise ValueError(f"Non-finite coordinate: {point}")
    if not -90.0 <= point.lat <= 90.0:
        raise ValueError(f"Latitude out of range [-90, 90]: {point.lat}")
    if not -180.0 <= point.lng <= 180.0:
        raise ValueError(f"Longitude out of range [-180, 180]: {point.lng}")


def _check_bounds(bounds: Bounds) -> None:
    _check_point(LatLng(lat=bounds.north, lng=bounds.east))
    _check_point(LatLng(lat=bounds.south, lng=bounds.west))
    if bounds.north < bounds.south:
        raise ValueError(f"Rectangle north ({bounds.north}) is below south ({bounds.south})")


def _check_radius(radius: float) -> None:
    if not (math.isfinite(radius) and radius > 0):
        raise ValueError(f"Circle radius must be finite and > 0, got {radius}")


def check_construction(geometry: Geometry) -> None:
    """
    Validate a geometry against overlay construction constraints.

    Raises:
        ValueError: Non-finite or out-of-range coordinates, fewer than three
            distinct polygon vertices, inverted rectangle, bad radius,
            unknown geometry kind
    """
    if isinstance(geometry, PolygonGeometry):
        for point in geometry.path:
            _check_point(point)
        if len(set(geometry.path)) < MIN_POLYGON_VERTICES:
            raise ValueError(
                f"Degenerate polygon: {len(set(geometry.path))} distinct vertices"
            )
    elif isinstance(geometry, RectangleGeometry):
        _check_bounds(geometry.bounds)
    elif isinstance(geometry, CircleGeometry):
        _check_point(geometry.center)
        _check_radius(geometry.radius)
    else:
        raise ValueError(f"Unknown geometry kind: {type(geometry).__name__}")


class Overlay:
    """
    Drawable overlay handle (polygon, rectangle or circle).

    Usage:
        overlay = Overlay.from_geometry(polygon([(0, 0), (0, 1), (1, 1)]))
        overlay.add_listener(OverlayEvent.VERTEX_SET, on_change)
        overlay.set_at(0, LatLng(0.1, 0.1))   # -> on_change(overlay, VERTEX_SET)
    """

    _ids = itertools.count(1)

    def __init__(
        self,
        kind: GeometryKind,
        path: Optional[List[LatLng]] = None,
        bounds: Optional[Bounds] = None,
        center: Optional[LatLng] = None,
        radius: Optional[float] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        self.kind = GeometryKind(kind)
        self.overlay_id = next(Overlay._ids)
        self.options: Dict[str, Any] = dict(options or {})
        self.provider: Optional[Any] = None

        self._path = list(path or [])
        self._bounds = bounds
        self._center = center
        self._radius = radius
        self._listeners: Dict[OverlayEvent, List[OverlayCallback]] = {}

    @classmethod
    def from_geometry(
        cls, geometry: Geometry, options: Optional[Dict[str, Any]] = None
    ) -> "Overlay":
        """
        Build a new independent overlay.

        Raises:
            ValueError: If geometry violates construction constraints
        """
        check_construction(geometry)

        if isinstance(geometry, PolygonGeometry):
            return cls(GeometryKind.POLYGON, path=list(geometry.path), options=options)
        if isinstance(geometry, RectangleGeometry):
            return cls(GeometryKind.RECTANGLE, bounds=geometry.bounds, options=options)
        return cls(
            GeometryKind.CIRCLE,
            center=geometry.center,
            radius=geometry.radius,
            options=options,
        )

    def __repr__(self) -> str:
        return f"Overlay(id={self.overlay_id}, kind={self.kind.value})"

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _require(self, kind: GeometryKind) -> None:
        if self.kind is not kind:
            raise TypeError(f"{self!r} is not a {kind.value}")

    def get_path(self) -> List[LatLng]:
        self._require(GeometryKind.POLYGON)
        return list(self._path)

    def get_bounds(self) -> Bounds:
        self._require(GeometryKind.RECTANGLE)
        return self._bounds

    def get_center(self) -> LatLng:
        self._require(GeometryKind.CIRCLE)
        return self._center

    def get_radius(self) -> float:
        self._require(GeometryKind.CIRCLE)
        return self._radius

    # ------------------------------------------------------------------
    # Listeners / options
    # ------------------------------------------------------------------

    def add_listener(self, event: OverlayEvent, callback: OverlayCallback) -> Listener:
        event = OverlayEvent(event)
        callbacks = self._listeners.setdefault(event, [])
        callbacks.append(callback)

        def remove() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return Listener(remove)

    def listener_count(self, event: Optional[OverlayEvent] = None) -> int:
        if event is not None:
            return len(self._listeners.get(OverlayEvent(event), []))
        return sum(len(callbacks) for callbacks in self._listeners.values())

    def set_options(self, **options: Any) -> None:
        self.options.update(options)

    def set_map(self, provider: Optional[Any]) -> None:
        self.provider = provider

    def _emit(self, event: OverlayEvent) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(self, event)

    # ------------------------------------------------------------------
    # Mutators (one event each)
    # ------------------------------------------------------------------

    def _commit(self, geometry: Geometry) -> None:
        """Adopt geometry if it passes check_construction; state is untouched otherwise."""
        check_construction(geometry)
        if isinstance(geometry, PolygonGeometry):
            self._path = list(geometry.path)
        elif isinstance(geometry, RectangleGeometry):
            self._bounds = geometry.bounds
        else:
            self._center = geometry.center
            self._radius = geometry.radius

    def set_at(self, index: int, point: LatLng) -> None:
        """Move vertex at index."""
        self._require(GeometryKind.POLYGON)
        path = list(self._path)
        path[index] = point
        self._commit(PolygonGeometry(path=tuple(path)))
        self._emit(OverlayEvent.VERTEX_SET)

    def insert_at(self, index: int, point: LatLng) -> None:
        """Insert a vertex before index."""
        self._require(GeometryKind.POLYGON)
        path = list(self._path)
        path.insert(index, point)
        self._commit(PolygonGeometry(path=tuple(path)))
        self._emit(OverlayEvent.VERTEX_INSERT)

    def remove_at(self, index: int) -> None:
        """Remove vertex at index (a polygon never drops below 3 distinct vertices)."""
        self._require(GeometryKind.POLYGON)
        if len(self._path) <= MIN_POLYGON_VERTICES:
            raise ValueError(f"Polygon cannot have fewer than {MIN_POLYGON_VERTICES} vertices")
        path = list(self._path)
        del path[index]
        self._commit(PolygonGeometry(path=tuple(path)))
        self._emit(OverlayEvent.VERTEX_REMOVE)

    def set_bounds(self, bounds: Bounds) -> None:
        self._require(GeometryKind.RECTANGLE)
        self._commit(RectangleGeometry(bounds=bounds))
        self._emit(OverlayEvent.BOUNDS_CHANGED)

    def set_center(self, center: LatLng) -> None:
        self._require(GeometryKind.CIRCLE)
        self._commit(CircleGeometry(center=center, radius=self._radius))
        self._emit(OverlayEvent.CENTER_CHANGED)

    def set_radius(self, radius: float) -> None:
        self._require(GeometryKind.CIRCLE)
        _check_radius(radius)
        self._commit(CircleGeometry(center=self._center, radius=radius))
        self._emit(OverlayEvent.RADIUS_CHANGED)

    def drag(self, d_lat: float, d_lng: float) -> None:
        """Translate the whole shape, emitted as a single drag_end."""
        if self.kind is GeometryKind.POLYGON:
            moved: Geometry = PolygonGeometry(
                path=tuple(p.offset(d_lat, d_lng) for p in self._path)
            )
        elif self.kind is GeometryKind.RECTANGLE:
            moved = RectangleGeometry(bounds=self._bounds.offset(d_lat, d_lng))
        else:
            moved = CircleGeometry(
                center=self._center.offset(d_lat, d_lng), radius=self._radius
            )
        self._commit(moved)
        self._emit(OverlayEvent.DRAG_END)


class CanvasDrawingRequest:
    """Draw-capture request of the canvas provider."""

    def __init__(
        self,
        kind: GeometryKind,
        on_complete: Callable[[Overlay], None],
        options: Optional[Dict[str, Any]] = None,
    ):
        self.kind = GeometryKind(kind)
        self.options = dict(options or {})
        self._on_complete = on_complete
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            logger.debug(f"Drawing request cancelled (kind={self.kind.value})")
        self._active = False

    def complete(self, overlay: Overlay) -> None:
        """Deliver the finished overlay (only once)."""
        if not self._active:
            raise RuntimeError("Drawing request is no longer active")
        self._active = False
        self._on_complete(overlay)
