# rts_camera/camera/state.py

from dataclasses import dataclass, field
from typing import Optional
import numpy as np
from rts_camera.utils.math import is_finite


@dataclass
class CameraPose:
    """
    Focus point plus zoom / yaw / pitch.
    focus_point XZ is the pan position, Y is ground height plus the height offset.
    """

    focus_point: np.ndarray = field(default_factory=lambda: np.zeros(3))
    zoom: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0

    def __post_init__(self):
        self.focus_point = np.array(self.focus_point, dtype=np.float64)

    def copy(self) -> 'CameraPose':
        return CameraPose(self.focus_point.copy(), self.zoom, self.yaw, self.pitch)

    def is_finite(self) -> bool:
        return is_finite(self.focus_point, self.zoom, self.yaw, self.pitch)


@dataclass
class CameraState:
    """
    Target (instantaneous) and actual (smoothed, rendered) poses of one camera.
    """

    target: CameraPose = field(default_factory=CameraPose)
    actual: CameraPose = field(default_factory=CameraPose)

    # Last valid ground sample; kept when the ground disappears
    ground_height: Optional[float] = None
    initialized: bool = False

    # One-frame smoothing bypass, set by snap operations
    snap_focus: bool = False
    snap_zoom: bool = False
    snap_yaw: bool = False

    def clear_snaps(self):
        self.snap_focus = False
        self.snap_zoom = False
        self.snap_yaw = False
