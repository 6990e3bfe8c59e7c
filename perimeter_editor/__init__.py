"""
Perimeter Editor
================

Bounded Context: Interactive boundary (geofence) editing for a site.

Architecture:

    perimeter_editor/
    ├── geometry/          # Normalized geometry (immutable) + codec
    │   ├── shapes.py      # Polygon/Rectangle/CircleGeometry, wire format
    │   └── codec.py       # GeometryCodec (geometry <-> overlay handle)
    │
    ├── editing/           # Session state (mutable)
    │   ├── history.py     # ShapeHistory (undo/redo)
    │   ├── session.py     # EditSession, EditorMode
    │   └── naming.py      # next_boundary_name
    │
    ├── rendering/         # Visibility + drawing (stateless)
    │   ├── visibility.py  # compute_render_state, palettes, MapScene
    │   ├── projection.py  # Viewport
    │   └── visualizer.py  # BoundaryVisualizer
    │
    ├── provider/          # Map provider contract + canvas provider
    ├── gateway.py         # BoundaryRecord, BoundaryGateway
    ├── errors.py          # EditorError hierarchy
    └── editor.py          # BoundaryEditor (state machine)

Usage:

    from perimeter_editor import BoundaryEditor, CanvasMapProvider, GeometryKind
    from perimeter_store import InMemoryBoundaryGateway

    provider = CanvasMapProvider()
    editor = BoundaryEditor("site-1", InMemoryBoundaryGateway(), provider)
    editor.load()
    editor.set_editing_enabled(True)
    editor.start_draw(GeometryKind.RECTANGLE)
    provider.complete_drawing(rectangle)
    editor.save()
"""

from perimeter_editor.errors import (
    CloneError,
    EditorBusyError,
    EditorError,
    InvalidTransitionError,
    PersistenceError,
    ValidationError,
)
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
from perimeter_editor.geometry.codec import GeometryCodec
from perimeter_editor.editing import EditorMode, ShapeHistory, next_boundary_name
from perimeter_editor.rendering import (
    BoundaryVisualizer,
    RenderState,
    Viewport,
    VisibilityContext,
    compute_render_state,
    merge_palettes,
)
from perimeter_editor.provider import ListenerGroup, Overlay, OverlayEvent
from perimeter_editor.provider.canvas import CanvasMapProvider
from perimeter_editor.gateway import BoundaryGateway, BoundaryRecord
from perimeter_editor.editor import BoundaryEditor, EditorStatus, Notice

__all__ = [
    # Errors
    "CloneError",
    "EditorBusyError",
    "EditorError",
    "InvalidTransitionError",
    "PersistenceError",
    "ValidationError",
    # Geometry
    "Bounds",
    "CircleGeometry",
    "Geometry",
    "GeometryKind",
    "LatLng",
    "PolygonGeometry",
    "RectangleGeometry",
    "geometry_from_dict",
    "polygon",
    "GeometryCodec",
    # Editing
    "EditorMode",
    "ShapeHistory",
    "next_boundary_name",
    # Rendering
    "BoundaryVisualizer",
    "RenderState",
    "Viewport",
    "VisibilityContext",
    "compute_render_state",
    "merge_palettes",
    # Provider
    "ListenerGroup",
    "Overlay",
    "OverlayEvent",
    "CanvasMapProvider",
    # Persistence
    "BoundaryGateway",
    "BoundaryRecord",
    # Editor
    "BoundaryEditor",
    "EditorStatus",
    "Notice",
]

__version__ = "1.0.0"
