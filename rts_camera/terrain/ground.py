# rts_camera/terrain/ground.py

import math
from abc import ABC, abstractmethod
from typing import Optional, Tuple
import numpy as np
from rts_camera.ecs.component import Component


class GroundShape(ABC):
    """
    Base ground shape.
    height_at() works in the owning entity's local XZ (translation only) and
    returns the top surface height, or None when (x, z) is outside the shape.
    """

    @abstractmethod
    def height_at(self, x: float, z: float) -> Optional[float]:
        pass


class PlaneGround(GroundShape):
    """Flat ground, unbounded unless half_extents (x, z) is given."""

    def __init__(self, height: float = 0.0, half_extents: Optional[Tuple[float, float]] = None):
        self.height = float(height)
        self.half_extents = half_extents

    def height_at(self, x: float, z: float) -> Optional[float]:
        if self.half_extents is not None:
            hx, hz = self.half_extents
            if abs(x) > hx or abs(z) > hz:
                return None
        return self.height


class BoxGround(GroundShape):
    """Axis-aligned box centred on the entity; its top face is walkable."""

    def __init__(self, size):
        self.size = np.asarray(size, dtype=np.float64)

    def height_at(self, x: float, z: float) -> Optional[float]:
        sx, sy, sz = self.size
        if abs(x) > sx / 2.0 or abs(z) > sz / 2.0:
            return None
        return sy / 2.0


class SphereGround(GroundShape):
    """Sphere centred on the entity (hills, domes)."""

    def __init__(self, radius: float):
        self.radius = float(radius)

    def height_at(self, x: float, z: float) -> Optional[float]:
        d2 = x * x + z * z
        r2 = self.radius * self.radius
        if d2 > r2:
            return None
        return math.sqrt(r2 - d2)


class HeightfieldGround(GroundShape):
    """
    Heightfield terrain.
    heightmap[row, col] is the height at local (col * cell_size, row * cell_size);
    values between samples are bilinearly interpolated.
    """

    def __init__(self, heightmap: np.ndarray, cell_size: float = 1.0, vertical_scale: float = 1.0):
        heightmap = np.asarray(heightmap, dtype=np.float64)
        if heightmap.ndim != 2 or heightmap.shape[0] < 2 or heightmap.shape[1] < 2:
            raise ValueError("heightmap must be a 2D array with at least 2x2 samples")
        if cell_size <= 0.0:
            raise ValueError("cell_size must be positive")
        self.heightmap = heightmap
        self.cell_size = float(cell_size)
        self.vertical_scale = float(vertical_scale)

    @property
    def extent(self) -> Tuple[float, float]:
        """Size along (x, z)."""
        rows, cols = self.heightmap.shape
        return (cols - 1) * self.cell_size, (rows - 1) * self.cell_size

    def height_at(self, x: float, z: float) -> Optional[float]:
        rows, cols = self.heightmap.shape
        gx = x / self.cell_size
        gz = z / self.cell_size
        if not (math.isfinite(gx) and math.isfinite(gz)):
            return None
        if gx < 0.0 or gz < 0.0 or gx > cols - 1 or gz > rows - 1:
            return None

        c0 = min(int(gx), cols - 2)
        r0 = min(int(gz), rows - 2)
        tx = gx - c0
        tz = gz - r0

        h = self.heightmap
        top = h[r0, c0] + (h[r0, c0 + 1] - h[r0, c0]) * tx
        bottom = h[r0 + 1, c0] + (h[r0 + 1, c0 + 1] - h[r0 + 1, c0]) * tx
        return float(top + (bottom - top) * tz) * self.vertical_scale


class Ground(Component):
    """
    Marks an entity as terrain for camera height following.
    Buildings and units should not carry this.
    """

    def __init__(self, shape: GroundShape):
        super().__init__()
        self.shape = shape
