# rts_camera/camera/resolver.py

import math
import numpy as np
from typing import Optional
from rts_camera.camera.state import CameraPose
from rts_camera.camera.pose import zoom_distance
from rts_camera.core.config import CameraConfig
from rts_camera.input.frame_input import FrameInput
from rts_camera.utils.math import clamp, local_to_world_xz, wrap_angle, normalize_or_zero
from rts_camera.core.logging import get_logger

logger = get_logger()


def grab_distance(frame_input: FrameInput, actual: CameraPose, config: CameraConfig,
                  camera_position: Optional[np.ndarray] = None) -> float:
    """
    View distance used to scale grab-drag.

    When the drag carries a grab_point (the ground point picked under the pointer when
    the grab started) and the camera position is known, the distance from the camera to
    that point is used so the grabbed spot stays under the pointer. Otherwise the
    current zoom distance.
    """
    distance = zoom_distance(actual.zoom, config)
    if frame_input.grab_point is None or camera_position is None:
        return distance

    offset = frame_input.grab_point - np.asarray(camera_position, dtype=np.float64)
    anchored = float(np.linalg.norm(offset))
    if not math.isfinite(anchored) or anchored < 1e-6:
        return distance
    return anchored


class TargetStateResolver:
    """
    Applies one frame of input to the target pose. Instantaneous: no smoothing.

    Exactly one pan source is honoured per frame: grab-drag, then key/action pan,
    then edge pan.
    """

    def resolve(self, frame_input: FrameInput, config: CameraConfig, previous: CameraPose,
                actual_yaw: float, dt: float, world_per_pixel: Optional[float] = None,
                camera_position: Optional[np.ndarray] = None) -> CameraPose:
        """
        Return the new target pose. A non-finite input (or result) leaves the
        previous target untouched.

        world_per_pixel scales grab-drag; when omitted a 45 degree perspective on a
        720 pixel viewport is assumed, at the distance given by grab_distance().
        """
        if not frame_input.is_finite():
            logger.warning("Rejected non-finite camera input for this frame")
            return previous.copy()

        target = previous.copy()
        pan_scale = config.pan_scale(previous.zoom)

        if frame_input.grab_active:
            if world_per_pixel is None:
                distance = grab_distance(frame_input, previous, config, camera_position)
                world_per_pixel = 2.0 * math.tan(math.radians(22.5)) * distance / 720.0
            dx, dy = frame_input.grab_delta
            # Dragging moves the world with the pointer, so the camera goes the other way
            local = np.array([-dx, dy]) * world_per_pixel * config.grab_sensitivity
            target.focus_point += local_to_world_xz(local, actual_yaw)
        elif frame_input.pan.any():
            direction = frame_input.pan
            length = np.linalg.norm(direction)
            if length > 1.0:
                direction = direction / length
            step = direction * config.pan_speed * pan_scale * dt
            target.focus_point += local_to_world_xz(step, actual_yaw)
        elif frame_input.edge_pan_active:
            direction = normalize_or_zero(frame_input.edge_pan)
            step = direction * config.edge_pan_speed * pan_scale * dt
            target.focus_point += local_to_world_xz(step, actual_yaw)

        target.zoom = clamp(previous.zoom + frame_input.zoom_delta * config.zoom_speed * dt,
                            config.min_zoom, config.max_zoom)
        target.yaw = wrap_angle(previous.yaw + frame_input.rotate_delta * config.rotate_speed * dt)
        target.pitch = clamp(previous.pitch + frame_input.pitch_delta * config.pitch_speed * dt,
                             config.min_angle, config.max_angle)

        if not target.is_finite():
            logger.warning("Camera target became non-finite; keeping previous target")
            return previous.copy()
        return target
