"""
Visibility Policy Module
========================

Pure render-state computation for every known boundary.

Design:
- Stateless: compute_render_state() is a pure function of its inputs
- Ordered rules, first match wins (see compute_render_state)
- No diffing: callers recompute ALL states and re-apply the whole scene

Palettes come from the map tab colors and can be overridden from config.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from perimeter_editor.geometry.shapes import Geometry


@dataclass(frozen=True)
class Palette:
    """Fill/stroke colors (hex) with fill opacity and z-order."""

    fill_color: str
    stroke_color: str
    fill_opacity: float = 0.3
    z_index: int = 0

    def __post_init__(self):
        if not 0.0 <= self.fill_opacity <= 1.0:
            raise ValueError(f"fill_opacity must be in [0.0, 1.0], got {self.fill_opacity}")
        for color in (self.fill_color, self.stroke_color):
            if not (isinstance(color, str) and color.startswith("#") and len(color) in (4, 7)):
                raise ValueError(f"Invalid hex color: {color!r}")


WORKING = "working"
SELECTED = "selected"
DRAWING = "drawing"
DEFAULT = "default"
VIEW_ALL = "view_all"

DEFAULT_PALETTES: Dict[str, Palette] = {
    WORKING: Palette("#3498db", "#2980b9", fill_opacity=0.3, z_index=4),
    SELECTED: Palette("#3498db", "#2980b9", fill_opacity=0.3, z_index=3),
    DRAWING: Palette("#1ABC9C", "#16A085", fill_opacity=0.3, z_index=1),
    DEFAULT: Palette("#f39c12", "#e67e22", fill_opacity=0.0, z_index=2),
    VIEW_ALL: Palette("#95a5a6", "#7f8c8d", fill_opacity=0.3, z_index=0),
}


def merge_palettes(overrides: Optional[Mapping[str, Mapping[str, Any]]] = None) -> Dict[str, Palette]:
    """
    Apply per-palette field overrides on top of DEFAULT_PALETTES.

    Raises:
        ValueError: On unknown palette names or invalid values
    """
    palettes = dict(DEFAULT_PALETTES)
    for name, fields in (overrides or {}).items():
        if name not in palettes:
            raise ValueError(
                f"Unknown palette '{name}'. Must be one of {sorted(palettes)}"
            )
        palettes[name] = replace(palettes[name], **dict(fields))
    return palettes


@dataclass(frozen=True)
class RenderState:
    """Render options for one overlay."""

    visible: bool
    fill_color: str = "#000000"
    stroke_color: str = "#000000"
    fill_opacity: float = 0.0
    z_index: int = 0

    @classmethod
    def hidden(cls) -> "RenderState":
        return cls(visible=False)

    @classmethod
    def from_palette(cls, palette: Palette) -> "RenderState":
        return cls(
            visible=True,
            fill_color=palette.fill_color,
            stroke_color=palette.stroke_color,
            fill_opacity=palette.fill_opacity,
            z_index=palette.z_index,
        )

    def to_options(self) -> Dict[str, Any]:
        """Provider overlay options."""
        return {
            "visible": self.visible,
            "fill_color": self.fill_color,
            "stroke_color": self.stroke_color,
            "fill_opacity": self.fill_opacity,
            "z_index": self.z_index,
        }


@dataclass(frozen=True)
class VisibilityContext:
    """
    Editor-wide inputs of the visibility policy.

    Attributes:
        editing_enabled: "Edit mode" switch
        view_all: "View all" switch (only meaningful with edit mode off)
        selected_id: Selected boundary id
        default_id: Default boundary id of the site
        session_target_id: Boundary being edited by the active session
        session_active: True when the editor mode is not Idle
    """

    editing_enabled: bool = False
    view_all: bool = False
    selected_id: Optional[str] = None
    default_id: Optional[str] = None
    session_target_id: Optional[str] = None
    session_active: bool = False


def compute_render_state(
    boundary_id: str,
    context: VisibilityContext,
    palettes: Mapping[str, Palette] = DEFAULT_PALETTES,
) -> RenderState:
    """
    Render state for one boundary. Rules, first match wins:

    1. Target of the active session -> hidden (the live overlay is shown)
    2. Edit mode on and selected -> "selected" palette
    3. Edit mode off and view-all -> default gets "default", others "view_all"
    4. Edit mode off and default -> "default" palette
    5. Otherwise -> hidden
    """
    if context.session_active and boundary_id == context.session_target_id:
        return RenderState.hidden()

    if context.editing_enabled and boundary_id == context.selected_id:
        return RenderState.from_palette(palettes[SELECTED])

    if not context.editing_enabled and context.view_all:
        if boundary_id == context.default_id:
            return RenderState.from_palette(palettes[DEFAULT])
        return RenderState.from_palette(palettes[VIEW_ALL])

    if not context.editing_enabled and boundary_id == context.default_id:
        return RenderState.from_palette(palettes[DEFAULT])

    return RenderState.hidden()


def compute_render_states(
    boundary_ids: Sequence[str],
    context: VisibilityContext,
    palettes: Mapping[str, Palette] = DEFAULT_PALETTES,
) -> Dict[str, RenderState]:
    """Render states for every boundary id (insertion order kept)."""
    return {
        boundary_id: compute_render_state(boundary_id, context, palettes)
        for boundary_id in boundary_ids
    }


@dataclass(frozen=True)
class ScenePlacement:
    """One saved boundary as placed on the map."""

    boundary_id: str
    name: str
    geometry: Geometry
    state: RenderState


@dataclass(frozen=True)
class MapScene:
    """
    Complete overlay set for the map provider (full re-sync unit).

    Attributes:
        placements: Every known boundary with its render state
        working: Live working overlay handle of the active session (or None)
        working_state: Render state of the working overlay
        working_name: Working name of the active session
    """

    placements: Tuple[ScenePlacement, ...] = ()
    working: Optional[Any] = None
    working_state: Optional[RenderState] = None
    working_name: Optional[str] = None

    def visible(self) -> List[ScenePlacement]:
        """Visible placements sorted by z-order (bottom first)."""
        return sorted(
            (p for p in self.placements if p.state.visible),
            key=lambda p: p.state.z_index,
        )
