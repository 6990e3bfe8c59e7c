"""
Edit Session Module
===================

State of the single active edit session.

Design:
- Arena of one: the session exclusively owns at most ONE working overlay;
  replace_overlay() swaps it and releases everything bound to the old one
- discard() releases listeners, cancels draw capture and clears history on
  every path (try/finally)
- Holds state only; transitions live in BoundaryEditor
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from perimeter_editor.editing.history import ShapeHistory
from perimeter_editor.geometry.shapes import GeometryKind
from perimeter_editor.provider.base import ListenerGroup

logger = logging.getLogger(__name__)


class EditorMode(str, Enum):
    """Edit session modes."""
    IDLE = "idle"
    DRAWING = "drawing"
    CREATING = "creating"
    EDITING = "editing"


@dataclass
class EditSession:
    """
    One edit session (Drawing, Creating or Editing).

    Attributes:
        mode: Current session mode (never IDLE while the session lives)
        kind: Geometry kind being drawn or edited
        target_id: Record being edited (Editing only)
        name: Working name (Creating/Editing)
        overlay: Working overlay handle (Creating/Editing)
        drawing: Draw-capture request (Drawing only)
        history: Shape history of this session
        listeners: Mutation listeners bound to the working overlay
    """

    mode: EditorMode
    kind: GeometryKind
    target_id: Optional[str] = None
    name: str = ""
    overlay: Optional[Any] = None
    drawing: Optional[Any] = None
    history: ShapeHistory = field(default_factory=ShapeHistory)
    listeners: ListenerGroup = field(default_factory=ListenerGroup)

    def replace_overlay(self, overlay: Any) -> None:
        """Take ownership of overlay, dropping the previous one."""
        self.listeners.release()
        if self.overlay is not None and self.overlay is not overlay:
            self.overlay.set_map(None)
        self.overlay = overlay

    def discard(self) -> None:
        """Tear the session down (no persistence involved)."""
        try:
            self.listeners.release()
            if self.drawing is not None:
                self.drawing.cancel()
        finally:
            if self.overlay is not None:
                self.overlay.set_map(None)
            self.overlay = None
            self.drawing = None
            self.history.clear()
            logger.debug(f"Session discarded (mode={self.mode.value})")
