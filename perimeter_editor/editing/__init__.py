"""
Editing Layer
=============

Bounded Context: State of one edit session.

Responsibilities:
- Undo/redo history of geometry snapshots (ShapeHistory)
- Session state and owned working overlay (EditSession)
- Proposed names for new boundaries

Design Philosophy:
- Mutable accumulators (ShapeHistory, EditSession)
- Immutable entries (Geometry snapshots)
- Guaranteed teardown (EditSession.discard)
"""

from perimeter_editor.editing.history import ShapeHistory
from perimeter_editor.editing.naming import next_boundary_name
from perimeter_editor.editing.session import EditorMode, EditSession

__all__ = [
    "ShapeHistory",
    "next_boundary_name",
    "EditorMode",
    "EditSession",
]
