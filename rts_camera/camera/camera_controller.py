# rts_camera/camera/camera_controller.py

import math
from abc import ABC, abstractmethod
from typing import Optional
from rts_camera.camera.camera import Camera
from rts_camera.camera.pose import ComposedPose, compose_pose
from rts_camera.camera.resolver import TargetStateResolver, grab_distance
from rts_camera.camera.rts_camera import RtsCamera
from rts_camera.camera.smoothing import SmoothingEngine
from rts_camera.input.frame_input import FrameInput
from rts_camera.scene.transform import Transform
from rts_camera.terrain.sampler import TerrainSampler, NoGroundSampler, resolve_ground_height
from rts_camera.core.logging import get_logger
from rts_camera.utils.math import is_finite
from rts_camera.utils.profiler import profile_section

logger = get_logger()


class CameraController(ABC):
    """
    Base class for camera control strategies.
    Controllers update camera position/rotation based on different logic.
    """

    def __init__(self, camera: Camera):
        self.camera = camera
        self.enabled = True

    @abstractmethod
    def update(self, dt: float, frame_input: Optional[FrameInput] = None):
        """Update camera transform."""
        pass


class RtsCameraController(CameraController):
    """
    Per-frame RTS camera pipeline:
    input -> target resolve -> entity lock -> smoothing -> ground sample -> pose.

    Holds no camera data of its own; everything persistent lives in RtsCamera,
    so several controllers can drive several cameras independently.
    """

    def __init__(self, camera: Camera, rts_camera: RtsCamera, sampler: Optional[TerrainSampler] = None):
        super().__init__(camera)
        self.rts_camera = rts_camera
        self.sampler = sampler or NoGroundSampler()
        self.resolver = TargetStateResolver()
        self.smoothing = SmoothingEngine()
        self.last_pose: Optional[ComposedPose] = None

    def update(self, dt: float, frame_input: Optional[FrameInput] = None) -> Optional[ComposedPose]:
        if not self.enabled:
            return self.last_pose

        if not math.isfinite(dt) or dt < 0.0:
            logger.warning(f"Invalid frame time {dt!r}, treating as 0")
            dt = 0.0

        rts = self.rts_camera
        config = rts.config
        state = rts.state

        with profile_section("Camera:Resolve"):
            queued = rts.take_input()
            if frame_input is None:
                frame_input = queued or FrameInput.empty()
            elif queued is not None:
                frame_input = frame_input.merged(queued)

            camera_position = self.last_pose.position if self.last_pose is not None else None
            distance = grab_distance(frame_input, state.actual, config, camera_position)
            world_per_pixel = self.camera.world_per_pixel(distance)
            state.target = self.resolver.resolve(frame_input, config, state.target, state.actual.yaw,
                                                 dt, world_per_pixel)
            self._follow_lock_target()

        with profile_section("Camera:Smooth"):
            self.smoothing.apply(state, config, dt)

        with profile_section("Camera:Ground"):
            snap_height = not state.initialized or state.snap_focus
            self._follow_ground(dt, snap_height)

        state.initialized = True
        state.clear_snaps()

        with profile_section("Camera:Compose"):
            pose = compose_pose(state.actual.focus_point, state.actual.zoom,
                                state.actual.yaw, state.actual.pitch, config)
            self.camera.transform.set_world_position(pose.position)
            self.camera.transform.set_rotation(pose.rotation)

        self.last_pose = pose
        return pose

    def _follow_lock_target(self):
        """Override the target focus with the locked entity, or drop a dead lock."""
        rts = self.rts_camera
        entity = rts.lock_target
        if entity is None:
            return

        transform = entity.get_component(Transform) if entity.alive else None
        if transform is None or not entity.active:
            logger.debug(f"Lock target {entity} is gone, keeping last focus point")
            rts.release_lock()
            return

        position = transform.get_world_position()
        if not is_finite(position):
            logger.warning(f"Lock target {entity} has a non-finite position, keeping last focus point")
            return

        rts.state.target.focus_point[0] = position[0]
        rts.state.target.focus_point[2] = position[2]

    def _follow_ground(self, dt: float, snap: bool):
        """Sample under the smoothed focus and ease the focus height onto it."""
        rts = self.rts_camera
        state = rts.state
        config = rts.config
        actual = state.actual

        sampled = self.sampler.sample(float(actual.focus_point[0]), float(actual.focus_point[2]))
        ground = resolve_ground_height(sampled, state.ground_height, config.default_height)
        if sampled is not None:
            state.ground_height = sampled

        state.target.focus_point[1] = ground + config.height_offset
        self.smoothing.apply_height(state, config, dt, snap=snap)
