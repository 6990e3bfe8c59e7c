"""
Boundary Visualizer Module
==========================

Pure visualization layer for boundary scenes.

Design:
- Stateless rendering (pure functions)
- No business logic: render states come from the visibility policy
- Uses supervision drawing utilities

Dependencies:
- supervision (draw utilities, Color, Point)
- numpy (arrays)
"""

import numpy as np
import supervision as sv

from perimeter_editor.geometry.shapes import (
    CircleGeometry,
    Geometry,
    LatLng,
    PolygonGeometry,
    RectangleGeometry,
)
from perimeter_editor.rendering.projection import Viewport
from perimeter_editor.rendering.visibility import MapScene, RenderState


class BoundaryVisualizer:
    """
    Stateless visualizer for boundary overlays.

    Usage:
        visualizer = BoundaryVisualizer(thickness=2)
        frame = visualizer.draw_scene(frame, scene, viewport, working_geometry)
    """

    def __init__(
        self,
        text_color: sv.Color = sv.Color(r=255, g=255, b=255),
        text_background_color: sv.Color = sv.Color(r=0, g=0, b=0),
        thickness: int = 2,
        text_scale: float = 0.5,
        text_thickness: int = 1,
        text_padding: int = 6,
        circle_segments: int = 64,
        draw_labels: bool = True,
    ):
        """
        Initialize visualizer with style configuration.

        Args:
            text_color: Color for name labels
            text_background_color: Background color for labels
            thickness: Outline thickness
            text_scale: Scale factor for labels
            text_thickness: Thickness for labels
            text_padding: Padding for label background
            circle_segments: Vertices of the circle approximation
            draw_labels: Draw boundary names next to shapes
        """
        self.text_color = text_color
        self.text_background_color = text_background_color
        self.thickness = thickness
        self.text_scale = text_scale
        self.text_thickness = text_thickness
        self.text_padding = text_padding
        self.circle_segments = circle_segments
        self.draw_labels = draw_labels

    def to_pixels(self, geometry: Geometry, viewport: Viewport) -> np.ndarray:
        """Outline of geometry as an Nx2 pixel polygon."""
        if isinstance(geometry, PolygonGeometry):
            return viewport.project(geometry.path)

        if isinstance(geometry, RectangleGeometry):
            b = geometry.bounds
            corners = [
                (b.north, b.west),
                (b.north, b.east),
                (b.south, b.east),
                (b.south, b.west),
            ]
            return viewport.project([LatLng(lat=lat, lng=lng) for lat, lng in corners])

        if isinstance(geometry, CircleGeometry):
            # Polygon approximation of the circle
            center = viewport.project([geometry.center])[0]
            radius = viewport.meters_to_pixels(geometry.radius, geometry.center.lat)
            angles = np.linspace(0, 2 * np.pi, self.circle_segments, endpoint=False)
            return np.array([
                [int(center[0] + radius * np.cos(a)), int(center[1] + radius * np.sin(a))]
                for a in angles
            ], dtype=np.int32)

        raise TypeError(f"Unsupported geometry: {type(geometry).__name__}")

    def draw_boundary(
        self,
        frame: np.ndarray,
        geometry: Geometry,
        state: RenderState,
        viewport: Viewport,
        label: str | None = None,
    ) -> np.ndarray:
        """
        Draw one boundary with its render state.

        Args:
            frame: Frame to draw on
            geometry: Boundary geometry
            state: Colors/opacity from the visibility policy
            viewport: Projection of the frame
            label: Optional name drawn at the top-left of the shape

        Returns:
            Frame with the boundary drawn
        """
        if not state.visible:
            return frame

        polygon = self.to_pixels(geometry, viewport)
        fill_color = sv.Color.from_hex(state.fill_color)
        stroke_color = sv.Color.from_hex(state.stroke_color)

        # Fill skipped when fully transparent (default palette)
        if state.fill_opacity > 0:
            frame = sv.draw_filled_polygon(
                scene=frame,
                polygon=polygon,
                color=fill_color,
                opacity=state.fill_opacity,
            )

        frame = sv.draw_polygon(
            scene=frame,
            polygon=polygon,
            color=stroke_color,
            thickness=self.thickness,
        )

        if label and self.draw_labels:
            min_x = int(np.min(polygon[:, 0]))
            min_y = int(np.min(polygon[:, 1]))
            text_anchor = sv.Point(x=min_x, y=max(min_y - 10, 20))

            frame = sv.draw_text(
                scene=frame,
                text=label,
                text_anchor=text_anchor,
                text_color=self.text_color,
                text_scale=self.text_scale,
                text_thickness=self.text_thickness,
                text_padding=self.text_padding,
                background_color=self.text_background_color,
            )

        return frame

    def draw_scene(
        self,
        frame: np.ndarray,
        scene: MapScene,
        viewport: Viewport,
        working_geometry: Geometry | None = None,
        working_label: str | None = None,
    ) -> np.ndarray:
        """
        Draw every visible placement (bottom z first), then the working overlay.

        Returns:
            Frame with the scene drawn
        """
        for placement in scene.visible():
            frame = self.draw_boundary(
                frame, placement.geometry, placement.state, viewport, label=placement.name
            )

        if working_geometry is not None and scene.working_state is not None:
            frame = self.draw_boundary(
                frame, working_geometry, scene.working_state, viewport, label=working_label
            )

        return frame
