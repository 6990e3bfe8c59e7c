"""
Provider Layer
==============

Bounded Context: Map surface collaborator.

Responsibilities:
- Map provider / overlay handle contract
- Scoped listener registration
- In-process overlays and the canvas provider (provider.canvas)
"""

from perimeter_editor.provider.base import (
    KIND_EVENTS,
    Listener,
    ListenerGroup,
    MapProvider,
    OverlayEvent,
    OverlayHandle,
)
from perimeter_editor.provider.overlay import CanvasDrawingRequest, Overlay, check_construction

__all__ = [
    "KIND_EVENTS",
    "Listener",
    "ListenerGroup",
    "MapProvider",
    "OverlayEvent",
    "OverlayHandle",
    "CanvasDrawingRequest",
    "Overlay",
    "check_construction",
]
