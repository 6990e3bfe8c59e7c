"""
Boundary Editor Module
======================

Bounded Context: Interactive boundary editing for one site.

Design:
- Orchestrator: owns mode, selection, the cached record list and the single
  edit session; delegates to GeometryCodec, ShapeHistory, the visibility
  policy and the gateway
- Confirmed writes only: the cache changes AFTER the gateway succeeds
- Rebuild, never patch: undo/redo clone the history target into a NEW
  working overlay
- Full re-sync: every visible change recomputes ALL render states and hands
  a complete MapScene to the provider
- Every error is reported as a Notice and re-raised

State machine:

    Idle --start_draw--> Drawing --overlay complete--> Creating --save--> Idle
    Idle --start_edit--> Editing --save--> Idle
    {Drawing, Creating, Editing} --cancel / edit mode off / new session--> Idle
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from perimeter_editor.editing.naming import next_boundary_name
from perimeter_editor.editing.session import EditorMode, EditSession
from perimeter_editor.errors import (
    CloneError,
    EditorBusyError,
    EditorError,
    InvalidTransitionError,
    PersistenceError,
    ValidationError,
)
from perimeter_editor.gateway import BoundaryGateway, BoundaryRecord
from perimeter_editor.geometry.codec import GeometryCodec
from perimeter_editor.geometry.shapes import Geometry, GeometryKind
from perimeter_editor.provider.base import KIND_EVENTS, MapProvider, OverlayEvent
from perimeter_editor.rendering.visibility import (
    DEFAULT_PALETTES,
    DRAWING,
    WORKING,
    MapScene,
    Palette,
    RenderState,
    ScenePlacement,
    VisibilityContext,
    compute_render_states,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """User-visible message (toast equivalent)."""

    level: str  # "info" | "error"
    code: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "code": self.code, "message": self.message}


@dataclass(frozen=True)
class EditorStatus:
    """Snapshot of the editor for UI gating."""

    site_id: str
    mode: EditorMode
    selected_id: Optional[str]
    default_id: Optional[str]
    editing_enabled: bool
    view_all: bool
    draw_kind: GeometryKind
    working_name: Optional[str]
    can_undo: bool
    can_redo: bool
    pending: Optional[str]
    boundaries: Tuple[Dict[str, Any], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site_id": self.site_id,
            "mode": self.mode.value,
            "selected_id": self.selected_id,
            "default_id": self.default_id,
            "editing_enabled": self.editing_enabled,
            "view_all": self.view_all,
            "draw_kind": self.draw_kind.value,
            "working_name": self.working_name,
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
            "pending": self.pending,
            "boundaries": list(self.boundaries),
        }


NoticeSink = Callable[[Notice], None]


class BoundaryEditor:
    """
    Edit session state machine for the boundaries of one site.

    Usage:
        editor = BoundaryEditor("site-1", gateway, provider)
        editor.load()
        editor.set_editing_enabled(True)

        editor.start_draw(GeometryKind.POLYGON)
        provider.complete_drawing(polygon([...]))     # -> Creating
        editor.save("Zone_01")                          # -> Idle

        editor.start_edit()                             # selected record
        overlay.set_at(0, LatLng(...))                  # history push
        editor.undo()
        editor.save()
    """

    def __init__(
        self,
        site_id: str,
        gateway: BoundaryGateway,
        provider: MapProvider,
        codec: Optional[GeometryCodec] = None,
        palettes: Optional[Mapping[str, Palette]] = None,
        name_base: str = "Zone",
        draw_kind: GeometryKind = GeometryKind.POLYGON,
        on_notice: Optional[NoticeSink] = None,
    ):
        """
        Initialize editor (no gateway call until load()).

        Args:
            site_id: Site whose boundaries are edited
            gateway: Persistence collaborator
            provider: Map provider collaborator
            codec: Geometry codec (defaults to the provider's overlay factory)
            palettes: Render palettes (defaults to DEFAULT_PALETTES)
            name_base: Base of proposed names ("Zone" -> "Zone_01")
            draw_kind: Initial draw kind
            on_notice: Sink for user-visible notices
        """
        if not site_id:
            raise ValueError("site_id must be non-empty")

        self.site_id = site_id
        self.gateway = gateway
        self.provider = provider
        self.codec = codec or GeometryCodec(provider.create_overlay)
        self.palettes = dict(palettes or DEFAULT_PALETTES)
        self.name_base = name_base
        self.on_notice = on_notice

        self._draw_kind = GeometryKind(draw_kind)
        self._records: List[BoundaryRecord] = []
        self._selected_id: Optional[str] = None
        self._editing_enabled = False
        self._view_all = False
        self._session: Optional[EditSession] = None
        self._pending: Optional[str] = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def boundaries(self) -> Tuple[BoundaryRecord, ...]:
        """Cached records in creation order."""
        return tuple(self._records)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def default_id(self) -> Optional[str]:
        for record in self._records:
            if record.is_default:
                return record.id
        return None

    @property
    def mode(self) -> EditorMode:
        return self._session.mode if self._session is not None else EditorMode.IDLE

    @property
    def session(self) -> Optional[EditSession]:
        return self._session

    @property
    def working_overlay(self) -> Optional[Any]:
        return self._session.overlay if self._session is not None else None

    @property
    def working_name(self) -> Optional[str]:
        return self._session.name if self._session is not None else None

    @property
    def can_undo(self) -> bool:
        return self._session is not None and self._session.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._session is not None and self._session.history.can_redo

    @property
    def editing_enabled(self) -> bool:
        return self._editing_enabled

    @property
    def view_all(self) -> bool:
        return self._view_all

    @property
    def draw_kind(self) -> GeometryKind:
        return self._draw_kind

    @property
    def pending(self) -> Optional[str]:
        """Name of the gateway operation in flight, or None."""
        return self._pending

    def find(self, boundary_id: str) -> Optional[BoundaryRecord]:
        for record in self._records:
            if record.id == boundary_id:
                return record
        return None

    def next_boundary_name(self) -> str:
        return next_boundary_name((r.name for r in self._records), self.name_base)

    def status(self) -> EditorStatus:
        return EditorStatus(
            site_id=self.site_id,
            mode=self.mode,
            selected_id=self._selected_id,
            default_id=self.default_id,
            editing_enabled=self._editing_enabled,
            view_all=self._view_all,
            draw_kind=self._draw_kind,
            working_name=self.working_name,
            can_undo=self.can_undo,
            can_redo=self.can_redo,
            pending=self._pending,
            boundaries=tuple(
                {
                    "id": r.id,
                    "name": r.name,
                    "type": r.geometry.kind.value,
                    "is_default": r.is_default,
                }
                for r in self._records
            ),
        )

    # ------------------------------------------------------------------
    # Notices / guards
    # ------------------------------------------------------------------

    def _notify(self, level: str, code: str, message: str) -> None:
        if self.on_notice is not None:
            self.on_notice(Notice(level=level, code=code, message=message))

    def _report(self, error: EditorError) -> EditorError:
        """Log and notify error; returns it for raising."""
        logger.warning(f"{type(error).__name__}: {error}")
        self._notify("error", error.code, str(error))
        return error

    def _guard_busy(self) -> None:
        if self._pending is not None:
            raise self._report(EditorBusyError(f"'{self._pending}' is still in progress"))

    def _require_editing(self, action: str) -> None:
        if not self._editing_enabled:
            raise self._report(
                InvalidTransitionError(f"Cannot {action}: editing mode is off")
            )

    def _require_idle(self, action: str) -> None:
        if self._session is not None:
            raise self._report(
                InvalidTransitionError(f"Cannot {action} while {self.mode.value}")
            )

    def _require_selected(self, action: str) -> BoundaryRecord:
        record = self.find(self._selected_id) if self._selected_id else None
        if record is None:
            raise self._report(
                InvalidTransitionError(f"Cannot {action}: no boundary selected")
            )
        return record

    # ------------------------------------------------------------------
    # Loading / switches
    # ------------------------------------------------------------------

    def load(self) -> Tuple[BoundaryRecord, ...]:
        """
        Fetch the site's records (discards any active session).

        Raises:
            PersistenceError: If the gateway list call fails
        """
        self._guard_busy()
        self._pending = "load"
        try:
            records = list(self.gateway.list(self.site_id))
        except PersistenceError as e:
            raise self._report(e)
        finally:
            self._pending = None

        self._discard_session()
        self._records = records
        if self._selected_id is None or self.find(self._selected_id) is None:
            self._selected_id = records[0].id if records else None

        logger.info(f"Loaded {len(records)} boundaries for site '{self.site_id}'")
        self._sync_map()
        return self.boundaries

    def set_editing_enabled(self, enabled: bool) -> None:
        """Edit mode switch. Either direction clears view-all; turning it off cancels any session."""
        self._guard_busy()
        enabled = bool(enabled)
        if enabled == self._editing_enabled:
            return

        self._editing_enabled = enabled
        self._view_all = False
        if not enabled:
            self._discard_session()

        logger.info(f"Editing mode {'enabled' if enabled else 'disabled'}")
        self._sync_map()

    def set_view_all(self, view_all: bool) -> None:
        """View-all switch (only while edit mode is off)."""
        self._guard_busy()
        view_all = bool(view_all)
        if view_all and self._editing_enabled:
            raise self._report(
                InvalidTransitionError("Cannot view all boundaries while editing mode is on")
            )
        if view_all == self._view_all:
            return

        self._view_all = view_all
        self._sync_map()

    def set_draw_kind(self, kind: GeometryKind) -> None:
        try:
            kind = GeometryKind(kind)
        except ValueError:
            raise self._report(ValidationError(f"Unknown draw kind: {kind!r}"))
        self._require_idle("change draw kind")
        self._draw_kind = kind

    def select(self, boundary_id: Optional[str]) -> None:
        """
        Select a boundary (None clears the selection).

        Raises:
            InvalidTransitionError: Editing mode off or a session is active
            ValidationError: Unknown boundary id
        """
        self._guard_busy()
        self._require_editing("select")
        if boundary_id == self._selected_id:
            return
        self._require_idle("select another boundary")
        if boundary_id is not None and self.find(boundary_id) is None:
            raise self._report(ValidationError(f"Unknown boundary: {boundary_id}"))

        self._selected_id = boundary_id
        self._sync_map()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def start_draw(self, kind: Optional[GeometryKind] = None) -> None:
        """
        Idle -> Drawing (any active session is discarded first).

        Args:
            kind: Shape to draw (defaults to the current draw kind)
        """
        self._guard_busy()
        self._require_editing("draw")
        if kind is not None:
            try:
                kind = GeometryKind(kind)
            except ValueError:
                raise self._report(ValidationError(f"Unknown draw kind: {kind!r}"))
        else:
            kind = self._draw_kind

        self._discard_session()
        self._draw_kind = kind

        session = EditSession(mode=EditorMode.DRAWING, kind=kind)
        self._session = session
        drawing_options = RenderState.from_palette(self.palettes[DRAWING]).to_options()
        drawing_options.update(editable=True, clickable=False)
        session.drawing = self.provider.start_drawing(
            kind, self.handle_overlay_complete, drawing_options
        )

        logger.info(f"Drawing started ({kind.value})")
        self._sync_map()

    def toggle_drawing(self) -> None:
        """Draw/Cancel button."""
        if self._session is not None:
            self.cancel()
        else:
            self.start_draw()

    def handle_overlay_complete(self, overlay: Any) -> None:
        """Drawing -> Creating when the provider finishes a shape."""
        session = self._session
        if session is None or session.mode is not EditorMode.DRAWING:
            logger.warning(f"Ignoring completed overlay outside drawing mode: {overlay!r}")
            overlay.set_map(None)
            return

        geometry = self.codec.to_normalized(overlay)
        session.drawing = None
        session.mode = EditorMode.CREATING
        session.kind = geometry.kind
        session.name = self.next_boundary_name()
        session.replace_overlay(overlay)
        session.history.seed(geometry)
        self._attach_listeners(session)

        logger.info(f"Shape drawn ({geometry.kind.value}), proposed name '{session.name}'")
        self._sync_map()
        self._notify("info", "shape_drawn", f"Shape drawn, name it and save ({session.name})")

    def start_edit(self) -> None:
        """
        Idle -> Editing on the selected record.

        The clone happens BEFORE any active session is discarded, so a
        CloneError leaves everything as it was.

        Raises:
            CloneError: If the stored geometry cannot be rebuilt
        """
        self._guard_busy()
        self._require_editing("edit")
        record = self._require_selected("edit")

        overlay = self._clone(record.geometry)

        self._discard_session()
        session = EditSession(
            mode=EditorMode.EDITING,
            kind=record.geometry.kind,
            target_id=record.id,
            name=record.name,
        )
        session.replace_overlay(overlay)
        session.history.seed(record.geometry)
        self._session = session
        self._attach_listeners(session)

        logger.info(f"Editing '{record.name}' ({record.id})")
        self._sync_map()

    def set_name(self, name: str) -> None:
        """Set the working name of the active Creating/Editing session."""
        self._guard_busy()
        session = self._require_shape_session("rename")
        session.name = "" if name is None else str(name)

    def cancel(self) -> bool:
        """
        Any session -> Idle, no persistence call.

        Returns:
            False when there was nothing to cancel
        """
        if self._session is None:
            return False
        self._guard_busy()

        mode = self.mode
        self._discard_session()
        logger.info(f"Session cancelled (was {mode.value})")
        self._sync_map()
        return True

    def save(self, name: Optional[str] = None) -> BoundaryRecord:
        """
        Creating/Editing -> Idle through the gateway.

        Args:
            name: Optional name overriding the working name

        Returns:
            Created or updated record

        Raises:
            ValidationError: Empty name or a shape the provider cannot rebuild
                (nothing changes)
            PersistenceError: Gateway failure (cache and session untouched)
        """
        self._guard_busy()
        session = self._require_shape_session("save")

        candidate = session.name if name is None else name
        candidate = (candidate or "").strip()
        if not candidate:
            raise self._report(ValidationError("Boundary name is required"))

        geometry = session.history.current
        try:
            self.codec.check(geometry)
        except CloneError as e:
            raise self._report(ValidationError(f"Boundary shape cannot be saved: {e}"))
        creating = session.mode is EditorMode.CREATING

        self._pending = "save"
        try:
            if creating:
                record = self.gateway.create(
                    self.site_id, candidate, geometry, is_default=not self._records
                )
            else:
                self.gateway.update(session.target_id, candidate, geometry)
                record = replace(self.find(session.target_id), name=candidate, geometry=geometry)
        except PersistenceError as e:
            raise self._report(e)
        finally:
            self._pending = None

        if creating:
            self._records.append(record)
            if record.is_default:
                self._records = [r.with_default(r.id == record.id) for r in self._records]
            self._selected_id = record.id
        else:
            self._records = [record if r.id == record.id else r for r in self._records]

        self._discard_session()
        logger.info(f"Boundary {'created' if creating else 'updated'}: '{record.name}' ({record.id})")
        self._sync_map()
        self._notify(
            "info",
            "boundary_created" if creating else "boundary_updated",
            f"Boundary '{record.name}' saved",
        )
        return record

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        """Step back; False when unavailable."""
        return self._time_travel(backwards=True)

    def redo(self) -> bool:
        """Step forward; False when unavailable."""
        return self._time_travel(backwards=False)

    def _time_travel(self, backwards: bool) -> bool:
        session = self._session
        if session is None or session.mode not in (EditorMode.CREATING, EditorMode.EDITING):
            return False
        self._guard_busy()

        history = session.history
        target = history.undo_target() if backwards else history.redo_target()
        if target is None:
            return False

        # Clone first: a CloneError leaves cursor and overlay untouched
        overlay = self._clone(target)
        if backwards:
            history.undo()
        else:
            history.redo()
        session.replace_overlay(overlay)
        self._attach_listeners(session)

        logger.debug(f"{'Undo' if backwards else 'Redo'} -> cursor {history.cursor}")
        self._sync_map()
        return True

    # ------------------------------------------------------------------
    # Record actions
    # ------------------------------------------------------------------

    def delete(self) -> None:
        """
        Delete the selected record.

        A deleted default is reassigned to the first remaining record and
        persisted through set_default. If that call fails the record stays
        deleted, no default remains and the PersistenceError is raised.
        """
        self._guard_busy()
        self._require_editing("delete")
        self._require_idle("delete")
        record = self._require_selected("delete")

        self._pending = "delete"
        try:
            self.gateway.delete(record.id)
        except PersistenceError as e:
            raise self._report(e)
        finally:
            self._pending = None

        remaining = [r for r in self._records if r.id != record.id]
        reassign_error = None
        if record.is_default and remaining:
            new_default = remaining[0]
            self._pending = "set_default"
            try:
                self.gateway.set_default(self.site_id, new_default.id)
                remaining = [r.with_default(r.id == new_default.id) for r in remaining]
            except PersistenceError as e:
                reassign_error = e
            finally:
                self._pending = None

        self._records = remaining
        self._selected_id = remaining[0].id if remaining else None

        logger.info(f"Boundary deleted: '{record.name}' ({record.id})")
        self._sync_map()
        self._notify("info", "boundary_deleted", f"Boundary '{record.name}' deleted")

        if reassign_error is not None:
            raise self._report(reassign_error)

    def set_default(self) -> None:
        """Make the selected record the site default."""
        self._guard_busy()
        self._require_editing("set default")
        self._require_idle("set default")
        record = self._require_selected("set default")

        self._pending = "set_default"
        try:
            self.gateway.set_default(self.site_id, record.id)
        except PersistenceError as e:
            raise self._report(e)
        finally:
            self._pending = None

        self._records = [r.with_default(r.id == record.id) for r in self._records]

        logger.info(f"Default boundary: '{record.name}' ({record.id})")
        self._sync_map()
        self._notify("info", "default_set", f"'{record.name}' is now the default boundary")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def visibility_context(self) -> VisibilityContext:
        session = self._session
        return VisibilityContext(
            editing_enabled=self._editing_enabled,
            view_all=self._view_all,
            selected_id=self._selected_id,
            default_id=self.default_id,
            session_target_id=session.target_id if session is not None else None,
            session_active=session is not None,
        )

    def render_states(self) -> Dict[str, RenderState]:
        """Render state of every cached record."""
        return compute_render_states(
            [r.id for r in self._records], self.visibility_context(), self.palettes
        )

    def _sync_map(self) -> None:
        """Recompute everything and hand the full scene to the provider."""
        states = self.render_states()
        working = self.working_overlay
        scene = MapScene(
            placements=tuple(
                ScenePlacement(r.id, r.name, r.geometry, states[r.id]) for r in self._records
            ),
            working=working,
            working_state=(
                RenderState.from_palette(self.palettes[WORKING]) if working is not None else None
            ),
            working_name=self.working_name,
        )
        self.provider.render_scene(scene)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_shape_session(self, action: str) -> EditSession:
        session = self._session
        if session is None or session.mode not in (EditorMode.CREATING, EditorMode.EDITING):
            raise self._report(
                InvalidTransitionError(f"Cannot {action}: no shape is being created or edited")
            )
        return session

    def _clone(self, geometry: Geometry) -> Any:
        options = RenderState.from_palette(self.palettes[WORKING]).to_options()
        options.update(editable=True, draggable=True)
        try:
            return self.codec.from_normalized(geometry, options)
        except CloneError as e:
            raise self._report(e)

    def _attach_listeners(self, session: EditSession) -> None:
        overlay = session.overlay
        session.listeners.attach(overlay, KIND_EVENTS[overlay.kind], self._on_overlay_mutation)

    def _on_overlay_mutation(self, overlay: Any, event: OverlayEvent) -> None:
        session = self._session
        if session is None or overlay is not session.overlay:
            return
        session.history.push(self.codec.to_normalized(overlay))
        logger.debug(f"{OverlayEvent(event).value} -> history cursor {session.history.cursor}")

    def _discard_session(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.discard()
