# rts_camera/camera/camera.py

import math
from typing import Optional, Tuple
import numpy as np
from rts_camera.ecs.component import Component
from rts_camera.scene.transform import Transform


class Camera(Component):
    """
    Output camera.
    The renderer reads transform; projection settings are used to scale grab-drag.
    """

    def __init__(self, field_of_view: float = 45.0, orthographic: bool = False, ortho_height: float = 20.0):
        super().__init__()
        self.transform = Transform()

        # Projection
        self.field_of_view = field_of_view   # vertical, degrees
        self.orthographic = orthographic
        self.ortho_height = ortho_height     # world units visible vertically
        self.viewport_size: Tuple[float, float] = (1280.0, 720.0)

    @property
    def aspect_ratio(self) -> float:
        width, height = self.viewport_size
        return width / height if height > 0 else 1.0

    def world_per_pixel(self, distance: float) -> float:
        """World units covered by one viewport pixel at the given view distance."""
        height = self.viewport_size[1]
        if height <= 0:
            return 0.0
        if self.orthographic:
            return self.ortho_height / height
        half_fov = math.radians(self.field_of_view) / 2.0
        return 2.0 * distance * math.tan(half_fov) / height

    def viewport_ray(self, pixel: Tuple[float, float]) -> Tuple[np.ndarray, np.ndarray]:
        """World-space (origin, unit direction) of the ray through a viewport pixel."""
        width, height = self.viewport_size
        ndc_x = 2.0 * pixel[0] / width - 1.0
        ndc_y = 1.0 - 2.0 * pixel[1] / height

        rotation = self.transform.get_world_rotation_matrix()
        right, up, forward = rotation[:, 0], rotation[:, 1], -rotation[:, 2]
        origin = self.transform.get_world_position()

        if self.orthographic:
            half_height = self.ortho_height / 2.0
            origin = origin + right * ndc_x * half_height * self.aspect_ratio + up * ndc_y * half_height
            return origin, forward

        tan_half = math.tan(math.radians(self.field_of_view) / 2.0)
        direction = forward + right * ndc_x * tan_half * self.aspect_ratio + up * ndc_y * tan_half
        return origin, direction / np.linalg.norm(direction)

    def pick_ground(self, pixel: Tuple[float, float], ground_height: float = 0.0) -> Optional[np.ndarray]:
        """
        Point where the ray through pixel meets the horizontal plane y = ground_height,
        or None when the ray points away from it.
        """
        width, height = self.viewport_size
        if width <= 0 or height <= 0:
            return None

        origin, direction = self.viewport_ray(pixel)
        if direction[1] > -1e-9:
            return None
        t = (ground_height - origin[1]) / direction[1]
        if t < 0.0:
            return None
        return origin + direction * t

    def get_view_matrix(self) -> np.ndarray:
        """Get view matrix (inverse of camera transform)."""
        return np.linalg.inv(self.transform.get_world_matrix())
