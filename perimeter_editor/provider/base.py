"""
Map Provider Contract
=====================

Bounded Context: What the editor needs from a map surface.

Design:
- Protocols only (structural typing), no SDK imports
- Overlay handles carry an explicit GeometryKind assigned at creation
- Listener registration is scoped: ListenerGroup releases everything it
  attached, on every exit path (context manager or explicit release())

Events emitted by overlay handles (one per discrete mutation):

    polygon    -> vertex_set, vertex_insert, vertex_remove, drag_end
    rectangle  -> bounds_changed, drag_end
    circle     -> center_changed, radius_changed, drag_end
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from perimeter_editor.geometry.shapes import Bounds, Geometry, GeometryKind, LatLng
from perimeter_editor.rendering.visibility import MapScene

logger = logging.getLogger(__name__)


class OverlayEvent(str, Enum):
    """Mutation events of an overlay handle."""
    VERTEX_SET = "vertex_set"
    VERTEX_INSERT = "vertex_insert"
    VERTEX_REMOVE = "vertex_remove"
    BOUNDS_CHANGED = "bounds_changed"
    RADIUS_CHANGED = "radius_changed"
    CENTER_CHANGED = "center_changed"
    DRAG_END = "drag_end"


KIND_EVENTS: Dict[GeometryKind, Tuple[OverlayEvent, ...]] = {
    GeometryKind.POLYGON: (
        OverlayEvent.VERTEX_SET,
        OverlayEvent.VERTEX_INSERT,
        OverlayEvent.VERTEX_REMOVE,
        OverlayEvent.DRAG_END,
    ),
    GeometryKind.RECTANGLE: (
        OverlayEvent.BOUNDS_CHANGED,
        OverlayEvent.DRAG_END,
    ),
    GeometryKind.CIRCLE: (
        OverlayEvent.CENTER_CHANGED,
        OverlayEvent.RADIUS_CHANGED,
        OverlayEvent.DRAG_END,
    ),
}


OverlayCallback = Callable[[Any, OverlayEvent], None]


class Listener:
    """
    Registration token returned by OverlayHandle.add_listener().

    remove() is idempotent.
    """

    def __init__(self, remove_fn: Callable[[], None]):
        self._remove_fn: Optional[Callable[[], None]] = remove_fn

    @property
    def active(self) -> bool:
        return self._remove_fn is not None

    def remove(self) -> None:
        remove_fn, self._remove_fn = self._remove_fn, None
        if remove_fn is not None:
            remove_fn()


class OverlayHandle(Protocol):
    """Provider-native drawable handle."""

    kind: GeometryKind
    overlay_id: int

    def get_path(self) -> List[LatLng]: ...

    def get_bounds(self) -> Bounds: ...

    def get_center(self) -> LatLng: ...

    def get_radius(self) -> float: ...

    def add_listener(self, event: OverlayEvent, callback: OverlayCallback) -> Listener: ...

    def set_options(self, **options: Any) -> None: ...

    def set_map(self, provider: Optional["MapProvider"]) -> None: ...


class DrawingRequest(Protocol):
    """Pending draw-capture request."""

    kind: GeometryKind

    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class MapProvider(Protocol):
    """Map surface the editor renders into."""

    def create_overlay(
        self, geometry: Geometry, options: Optional[Dict[str, Any]] = None
    ) -> OverlayHandle: ...

    def start_drawing(
        self,
        kind: GeometryKind,
        on_complete: Callable[[OverlayHandle], None],
        options: Optional[Dict[str, Any]] = None,
    ) -> DrawingRequest: ...

    def render_scene(self, scene: MapScene) -> None: ...


class ListenerGroup:
    """
    Scoped set of overlay listeners.

    Usage:
        group = ListenerGroup()
        group.attach(handle, KIND_EVENTS[handle.kind], on_mutation)
        ...
        group.release()          # always, including error paths

        with ListenerGroup() as group:
            group.attach(...)
    """

    def __init__(self):
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def __enter__(self) -> "ListenerGroup":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def attach(
        self,
        handle: OverlayHandle,
        events: Iterable[OverlayEvent],
        callback: OverlayCallback,
    ) -> None:
        """Register callback on handle for every event."""
        for event in events:
            self._listeners.append(handle.add_listener(event, callback))

    def release(self) -> None:
        """Remove every registered listener (safe to call twice)."""
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener.remove()
        if listeners:
            logger.debug(f"Released {len(listeners)} overlay listeners")
