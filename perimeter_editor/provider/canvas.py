"""
Canvas Map Provider
===================

In-process map provider: overlay factory, draw capture and a rasterized
scene.

Design:
- render_scene() is the ONLY writer of the overlay set and always replaces
  the whole scene (full re-sync, no patches)
- The working overlay is attached with set_map(self); the previous one is
  detached with set_map(None)
- complete_drawing() plays the role of the SDK drawing manager finishing a
  shape (remote front-ends send the finished geometry)
- render() rasterizes the current scene with BoundaryVisualizer
"""

import logging
from typing import Any, Callable, Dict, Optional

import numpy as np

from perimeter_editor.geometry.codec import GeometryCodec
from perimeter_editor.geometry.shapes import Geometry, GeometryKind, LatLng
from perimeter_editor.provider.overlay import CanvasDrawingRequest, Overlay
from perimeter_editor.rendering.projection import Viewport
from perimeter_editor.rendering.visibility import MapScene
from perimeter_editor.rendering.visualizer import BoundaryVisualizer

logger = logging.getLogger(__name__)


class CanvasMapProvider:
    """
    Map provider backed by numpy frames.

    Usage:
        provider = CanvasMapProvider(Viewport(center=LatLng(19.43, -99.13)))
        request = provider.start_drawing(GeometryKind.POLYGON, on_complete)
        provider.complete_drawing(polygon([...]))   # -> on_complete(overlay)
        provider.render_scene(scene)
        frame = provider.render()
    """

    def __init__(
        self,
        viewport: Optional[Viewport] = None,
        visualizer: Optional[BoundaryVisualizer] = None,
        background_color: tuple = (235, 235, 235),
    ):
        self.viewport = viewport or Viewport(center=LatLng(lat=0.0, lng=0.0))
        self.visualizer = visualizer or BoundaryVisualizer()
        self.background_color = background_color
        self.codec = GeometryCodec(self.create_overlay)

        self._drawing: Optional[CanvasDrawingRequest] = None
        self._scene = MapScene()
        self._attached: Optional[Overlay] = None
        self.sync_count = 0

    @property
    def scene(self) -> MapScene:
        """Last applied scene."""
        return self._scene

    @property
    def working(self) -> Optional[Overlay]:
        """Overlay currently attached as the working overlay."""
        return self._attached

    @property
    def drawing(self) -> Optional[CanvasDrawingRequest]:
        """Active draw-capture request, or None."""
        if self._drawing is not None and self._drawing.active:
            return self._drawing
        return None

    def create_overlay(
        self, geometry: Geometry, options: Optional[Dict[str, Any]] = None
    ) -> Overlay:
        """
        Build a new independent overlay (not attached yet).

        Raises:
            ValueError: If geometry violates construction constraints
        """
        return Overlay.from_geometry(geometry, options)

    def start_drawing(
        self,
        kind: GeometryKind,
        on_complete: Callable[[Overlay], None],
        options: Optional[Dict[str, Any]] = None,
    ) -> CanvasDrawingRequest:
        """Enter draw-capture mode (replaces any previous request)."""
        if self._drawing is not None:
            self._drawing.cancel()
        self._drawing = CanvasDrawingRequest(kind, on_complete, options)
        logger.debug(f"Drawing started: {GeometryKind(kind).value}")
        return self._drawing

    def complete_drawing(self, geometry: Geometry) -> Overlay:
        """
        Finish the active drawing with geometry.

        Raises:
            RuntimeError: If no drawing is active
            ValueError: If geometry kind differs from the requested kind or
                violates construction constraints
        """
        request = self.drawing
        if request is None:
            raise RuntimeError("No active drawing request")
        if geometry.kind is not request.kind:
            raise ValueError(
                f"Drawing expects a {request.kind.value}, got {geometry.kind.value}"
            )

        overlay = self.create_overlay(geometry, request.options)
        overlay.set_map(self)
        request.complete(overlay)
        return overlay

    def render_scene(self, scene: MapScene) -> None:
        """Replace the whole overlay set with scene."""
        if self._attached is not None and self._attached is not scene.working:
            self._attached.set_map(None)

        if scene.working is not None:
            if scene.working_state is not None:
                scene.working.set_options(**scene.working_state.to_options())
            scene.working.set_map(self)

        self._attached = scene.working
        self._scene = scene
        self.sync_count += 1

    def render(self, frame: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Rasterize the current scene.

        Args:
            frame: Optional background (BGR); a blank frame by default

        Returns:
            Frame with every visible boundary and the working overlay
        """
        if frame is None:
            width, height = self.viewport.frame_resolution_wh
            frame = np.full((height, width, 3), self.background_color, dtype=np.uint8)

        working_geometry = None
        if self._scene.working is not None:
            working_geometry = self.codec.to_normalized(self._scene.working)

        return self.visualizer.draw_scene(
            frame.copy(),
            self._scene,
            self.viewport,
            working_geometry=working_geometry,
            working_label=self._scene.working_name,
        )
