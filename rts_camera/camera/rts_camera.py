# rts_camera/camera/rts_camera.py

from typing import Optional
import numpy as np
from rts_camera.camera.state import CameraPose, CameraState
from rts_camera.core.config import CameraConfig
from rts_camera.ecs.component import Component
from rts_camera.input.frame_input import FrameInput
from rts_camera.utils.math import clamp, wrap_angle, is_finite
from rts_camera.core.logging import get_logger

logger = get_logger()


class RtsCamera(Component):
    """
    RTS camera state for one camera entity: configuration, target/actual poses
    and the programmatic controls (snap, lock, queued input).

    Drive it with RtsCameraController (directly or through RtsCameraSystem).
    """

    def __init__(self, config: Optional[CameraConfig] = None, focus_point=(0.0, 0.0, 0.0),
                 zoom: Optional[float] = None, yaw: float = 0.0, pitch: Optional[float] = None):
        super().__init__()
        self.config = config or CameraConfig()

        if zoom is None:
            zoom = (self.config.min_zoom + self.config.max_zoom) / 2.0
        if pitch is None:
            pitch = self.config.default_pitch

        pose = CameraPose(
            focus_point=np.array(focus_point, dtype=np.float64),
            zoom=clamp(zoom, self.config.min_zoom, self.config.max_zoom),
            yaw=wrap_angle(yaw),
            pitch=clamp(pitch, self.config.min_angle, self.config.max_angle),
        )
        self.state = CameraState(target=pose, actual=pose.copy())

        self.lock_target = None   # Entity being followed
        self._pending_input: Optional[FrameInput] = None

    @property
    def target(self) -> CameraPose:
        return self.state.target

    @property
    def actual(self) -> CameraPose:
        return self.state.actual

    @property
    def is_locked(self) -> bool:
        return self.lock_target is not None

    def set_config(self, config: CameraConfig):
        """Swap in a new configuration and re-clamp the poses to its limits."""
        self.config = config
        for pose in (self.state.target, self.state.actual):
            pose.zoom = clamp(pose.zoom, config.min_zoom, config.max_zoom)
            pose.pitch = clamp(pose.pitch, config.min_angle, config.max_angle)

    def set_target(self, focus_point=None, zoom: Optional[float] = None,
                   yaw: Optional[float] = None, pitch: Optional[float] = None):
        """Move the target pose; the camera glides there through smoothing."""
        if focus_point is not None:
            focus_point = np.asarray(focus_point, dtype=np.float64)
            if is_finite(focus_point):
                self.state.target.focus_point[0] = focus_point[0]
                self.state.target.focus_point[2] = focus_point[2]
        if zoom is not None and is_finite(zoom):
            self.state.target.zoom = clamp(zoom, self.config.min_zoom, self.config.max_zoom)
        if yaw is not None and is_finite(yaw):
            self.state.target.yaw = wrap_angle(yaw)
        if pitch is not None and is_finite(pitch):
            self.state.target.pitch = clamp(pitch, self.config.min_angle, self.config.max_angle)

    def snap_to(self, focus_point, zoom: Optional[float] = None, yaw: Optional[float] = None):
        """
        Jump to a location with no smoothing. Target and actual are set together;
        the next update skips smoothing for the snapped fields and the ground
        height under the new location. An active entity lock is released.
        """
        focus_point = np.asarray(focus_point, dtype=np.float64)
        if not is_finite(focus_point):
            logger.warning(f"Ignoring snap to non-finite point {focus_point}")
            return

        self.release_lock()
        for pose in (self.state.target, self.state.actual):
            pose.focus_point[0] = focus_point[0]
            pose.focus_point[2] = focus_point[2]
        self.state.snap_focus = True

        if zoom is not None and is_finite(zoom):
            zoom = clamp(zoom, self.config.min_zoom, self.config.max_zoom)
            self.state.target.zoom = zoom
            self.state.actual.zoom = zoom
            self.state.snap_zoom = True

        if yaw is not None and is_finite(yaw):
            yaw = wrap_angle(yaw)
            self.state.target.yaw = yaw
            self.state.actual.yaw = yaw
            self.state.snap_yaw = True

        logger.debug(f"Camera snapped to ({focus_point[0]:.2f}, {focus_point[2]:.2f})")

    def lock_onto(self, entity):
        """Follow an entity's position every frame until released or destroyed."""
        self.lock_target = entity
        logger.debug(f"Camera locked onto {entity}")

    def release_lock(self):
        """Stop following; the current target stays where it is."""
        if self.lock_target is not None:
            logger.debug(f"Camera released lock on {self.lock_target}")
        self.lock_target = None

    def push_input(self, frame_input: FrameInput):
        """Queue input for the next update (merged with anything already queued)."""
        if self._pending_input is None:
            self._pending_input = frame_input
        else:
            self._pending_input = self._pending_input.merged(frame_input)

    def take_input(self) -> Optional[FrameInput]:
        frame_input = self._pending_input
        self._pending_input = None
        return frame_input

    def on_destroy(self):
        self.lock_target = None
        self._pending_input = None
