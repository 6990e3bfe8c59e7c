"""
Shape History Module
====================

Linear undo/redo stack of geometry snapshots with a cursor.

Design:
- Scoped to ONE edit session (the session owns it, cancel clears it)
- Snapshots are immutable Geometry values, so entries are shared, never copied
- push() after an undo discards the stale redo branch
- undo_target()/redo_target() peek without moving the cursor, so a caller
  that fails to materialize the target leaves history untouched

Cursor semantics:

    entries:  [g0, g1, g2, g3]
    cursor:          ^ (1)      -> g1 is the materialized geometry
    can_undo = cursor > 0
    can_redo = cursor < len - 1
"""

from typing import List, Optional

from perimeter_editor.geometry.shapes import Geometry


class ShapeHistory:
    """
    Append/undo/redo stack for one edit session.

    Usage:
        history = ShapeHistory()
        history.seed(initial)        # cursor = 0
        history.push(after_drag)     # cursor = 1
        history.undo()               # -> initial, cursor = 0
        history.redo()               # -> after_drag, cursor = 1
    """

    def __init__(self):
        self._entries: List[Geometry] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        """Index of the materialized geometry (-1 when empty)."""
        return self._cursor

    @property
    def current(self) -> Optional[Geometry]:
        """Geometry at the cursor, or None when empty."""
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def seed(self, geometry: Geometry) -> None:
        """Reset the stack to a single entry."""
        self._entries = [geometry]
        self._cursor = 0

    def push(self, geometry: Geometry) -> None:
        """
        Record a new geometry snapshot.

        Truncates everything past the cursor, appends, advances the cursor.
        """
        del self._entries[self._cursor + 1:]
        self._entries.append(geometry)
        self._cursor = len(self._entries) - 1

    def undo_target(self) -> Optional[Geometry]:
        """Geometry an undo would materialize (None if unavailable)."""
        if not self.can_undo:
            return None
        return self._entries[self._cursor - 1]

    def redo_target(self) -> Optional[Geometry]:
        """Geometry a redo would materialize (None if unavailable)."""
        if not self.can_redo:
            return None
        return self._entries[self._cursor + 1]

    def undo(self) -> Optional[Geometry]:
        """Move the cursor back; returns the new current geometry or None."""
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> Optional[Geometry]:
        """Move the cursor forward; returns the new current geometry or None."""
        if not self.can_redo:
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def clear(self) -> None:
        self._entries = []
        self._cursor = -1
