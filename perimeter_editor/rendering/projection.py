"""
Viewport Projection Module
==========================

Web-Mercator projection of geographic coordinates onto frame pixels.

Design:
- Immutable viewport (frozen dataclass pattern)
- 256px world tile at zoom 0, like the web map SDKs
- Latitude clamped to the Mercator limit (+-85.0511)
"""

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from perimeter_editor.geometry.shapes import LatLng

TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798
EARTH_CIRCUMFERENCE_M = 40075016.686


@dataclass(frozen=True)
class Viewport:
    """
    Map viewport.

    Attributes:
        center: Geographic center of the frame
        zoom: Web map zoom level (0 = whole world in one tile)
        frame_resolution_wh: (width, height) in pixels
    """

    center: LatLng
    zoom: float = 16.0
    frame_resolution_wh: Tuple[int, int] = (1280, 720)

    def __post_init__(self):
        if not 0 <= self.zoom <= 22:
            raise ValueError(f"zoom must be in [0, 22], got {self.zoom}")
        width, height = self.frame_resolution_wh
        if width <= 0 or height <= 0:
            raise ValueError(f"frame_resolution_wh must be positive, got {self.frame_resolution_wh}")

    @property
    def scale(self) -> float:
        return TILE_SIZE * 2 ** self.zoom

    def _world_xy(self, point: LatLng) -> Tuple[float, float]:
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, point.lat))
        siny = math.sin(math.radians(lat))
        x = (point.lng + 180.0) / 360.0 * self.scale
        y = (0.5 - math.log((1 + siny) / (1 - siny)) / (4 * math.pi)) * self.scale
        return x, y

    def project(self, points: Iterable[LatLng]) -> np.ndarray:
        """
        Project coordinates to frame pixels.

        Returns:
            Nx2 int array of (x, y)
        """
        cx, cy = self._world_xy(self.center)
        width, height = self.frame_resolution_wh
        pixels = [
            [round(x - cx + width / 2), round(y - cy + height / 2)]
            for x, y in (self._world_xy(p) for p in points)
        ]
        return np.array(pixels, dtype=np.int32).reshape(-1, 2)

    def meters_to_pixels(self, meters: float, at_lat: float) -> float:
        """Ground distance at a latitude expressed in pixels."""
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, at_lat))
        meters_per_pixel = EARTH_CIRCUMFERENCE_M * math.cos(math.radians(lat)) / self.scale
        return meters / meters_per_pixel
