# rts_camera/camera/pose.py

import math
from dataclasses import dataclass
from typing import Callable, Dict
import numpy as np
from rts_camera.utils.math import clamp, forward_vector, look_rotation, yaw_basis, WORLD_UP


def _linear(t: float, near: float, far: float) -> float:
    return near + (far - near) * t


def _smoothstep(t: float, near: float, far: float) -> float:
    return near + (far - near) * t * t * (3.0 - 2.0 * t)


def _exponential(t: float, near: float, far: float) -> float:
    # Equal zoom steps change the distance by equal ratios
    return near * math.pow(far / near, t)


ZOOM_CURVES: Dict[str, Callable[[float, float, float], float]] = {
    'linear': _linear,
    'smoothstep': _smoothstep,
    'exponential': _exponential,
}


@dataclass
class ComposedPose:
    """Final camera transform for one frame."""

    position: np.ndarray
    rotation: np.ndarray   # quaternion [x, y, z, w]
    focus_point: np.ndarray
    distance: float

    @property
    def forward(self) -> np.ndarray:
        return self.focus_point - self.position


def zoom_distance(zoom: float, config: 'CameraConfig') -> float:
    """Absolute camera distance for a zoom value, never below min_distance."""
    t = config.normalized_zoom(zoom)
    near, far = config.min_distance, config.max_distance
    curve = config.zoom_curve
    if callable(curve):
        distance = _linear(clamp(float(curve(t)), 0.0, 1.0), near, far)
    else:
        distance = ZOOM_CURVES[curve](t, near, far)
    return clamp(distance, near, far)


def compose_pose(focus_point: np.ndarray, zoom: float, yaw: float, pitch: float,
                 config: 'CameraConfig') -> ComposedPose:
    """
    Place the camera distance(zoom) back along the view direction and look at
    the focus point. No clamping or smoothing happens here.
    """
    focus_point = np.array(focus_point, dtype=np.float64)
    distance = zoom_distance(zoom, config)
    forward = forward_vector(yaw, pitch)
    position = focus_point - forward * distance

    # Looking (almost) straight down: screen-up follows the yaw heading
    if math.cos(pitch) < 1e-3:
        up_hint = yaw_basis(yaw)[0]
    else:
        up_hint = WORLD_UP

    return ComposedPose(
        position=position,
        rotation=look_rotation(forward, up_hint),
        focus_point=focus_point,
        distance=distance,
    )
