"""
Rendering Layer
===============

Bounded Context: Boundary visibility and drawing.

Responsibilities:
- Render state of every boundary (visibility policy)
- Web-Mercator projection onto frames
- Draw boundaries on frames

Design:
- Pure functions and stateless drawing
- Uses supervision drawing utilities
- Configurable palettes
"""

from perimeter_editor.rendering.visibility import (
    DEFAULT_PALETTES,
    MapScene,
    Palette,
    RenderState,
    ScenePlacement,
    VisibilityContext,
    compute_render_state,
    compute_render_states,
    merge_palettes,
)
from perimeter_editor.rendering.projection import Viewport
from perimeter_editor.rendering.visualizer import BoundaryVisualizer

__all__ = [
    "DEFAULT_PALETTES",
    "MapScene",
    "Palette",
    "RenderState",
    "ScenePlacement",
    "VisibilityContext",
    "compute_render_state",
    "compute_render_states",
    "merge_palettes",
    "Viewport",
    "BoundaryVisualizer",
]
