# Model/projection.py
from __future__ import annotations
from dataclasses import dataclass

import numpy as np
from pyproj import Transformer

from .locations import Coordinate

# Web Mercator stops here, the world square would be infinite beyond it
MAX_LATITUDE = 85.05112878
# Half the EPSG:3857 world width in metres
_MERC_HALF = 20037508.342789244


@dataclass(frozen=True)
class SceneProjection:
    # EPSG:4326 <-> scene coordinates (EPSG:3857 scaled to a square of world_size units).
    # Scene y grows downwards like every QGraphicsScene, so north is up on screen.
    world_size: float = 256.0

    def __post_init__(self):
        object.__setattr__(self, "_to_merc",
            Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True))
        object.__setattr__(self, "_to_geo",
            Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True))

    @property
    def _scale(self) -> float:
        return self.world_size / (2.0 * _MERC_HALF)

    def to_scene(self, coord: Coordinate) -> tuple[float, float]:
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, coord.latitude))
        mx, my = self._to_merc.transform(coord.longitude, lat)
        return (mx + _MERC_HALF) * self._scale, (_MERC_HALF - my) * self._scale

    def to_coordinate(self, x: float, y: float) -> Coordinate:
        mx = x / self._scale - _MERC_HALF
        my = _MERC_HALF - y / self._scale
        lon, lat = self._to_geo.transform(mx, my)
        return Coordinate(float(lat), float(lon))

    def bounding_rect(self, coords, min_span: float = 0.0) -> tuple[float, float, float, float] | None:
        # (x, y, w, h) around all coordinates, at least min_span wide/high. None if empty.
        pts = np.array([self.to_scene(c) for c in coords], dtype=np.float64)
        if pts.size == 0:
            return None
        x0, y0 = pts.min(axis=0)
        x1, y1 = pts.max(axis=0)
        cx, cy = (x0 + x1) * 0.5, (y0 + y1) * 0.5
        w = max(float(x1 - x0), min_span)
        h = max(float(y1 - y0), min_span)
        return float(cx - w * 0.5), float(cy - h * 0.5), w, h
