# rts_camera/input/frame_input.py

from dataclasses import dataclass, field
from typing import Optional
import numpy as np
from rts_camera.utils.math import is_finite


def _vec2() -> np.ndarray:
    return np.zeros(2)


@dataclass
class FrameInput:
    """
    One frame of abstract camera input.

    pan and edge_pan are camera-local (x = right, y = forward) directions.
    zoom_delta, rotate_delta and pitch_delta are rates (per second); negative
    zoom_delta zooms in, positive rotate_delta turns left.
    grab_delta is this frame's pointer motion in screen pixels (y down).
    grab_point is the world ground point picked under the pointer when the grab
    started, if the host could pick one; grab-drag is then scaled by its distance.
    """

    pan: np.ndarray = field(default_factory=_vec2)
    zoom_delta: float = 0.0
    rotate_delta: float = 0.0
    pitch_delta: float = 0.0
    grab_active: bool = False
    grab_delta: np.ndarray = field(default_factory=_vec2)
    edge_pan_active: bool = False
    edge_pan: np.ndarray = field(default_factory=_vec2)
    grab_point: Optional[np.ndarray] = None

    def __post_init__(self):
        self.pan = np.asarray(self.pan, dtype=np.float64)
        self.grab_delta = np.asarray(self.grab_delta, dtype=np.float64)
        self.edge_pan = np.asarray(self.edge_pan, dtype=np.float64)
        if self.grab_point is not None:
            self.grab_point = np.asarray(self.grab_point, dtype=np.float64)

    @classmethod
    def empty(cls) -> 'FrameInput':
        return cls()

    def is_finite(self) -> bool:
        values = [self.pan, self.zoom_delta, self.rotate_delta, self.pitch_delta,
                  self.grab_delta, self.edge_pan]
        if self.grab_point is not None:
            values.append(self.grab_point)
        return is_finite(*values)

    def is_idle(self) -> bool:
        return (not self.grab_active and not self.edge_pan_active
                and not self.pan.any() and self.zoom_delta == 0.0
                and self.rotate_delta == 0.0 and self.pitch_delta == 0.0)

    def merged(self, other: 'FrameInput') -> 'FrameInput':
        """
        Combine two inputs for the same frame.
        Scalar deltas add up; pan sources follow the one-source rule in the resolver.
        """
        return FrameInput(
            pan=self.pan + other.pan,
            zoom_delta=self.zoom_delta + other.zoom_delta,
            rotate_delta=self.rotate_delta + other.rotate_delta,
            pitch_delta=self.pitch_delta + other.pitch_delta,
            grab_active=self.grab_active or other.grab_active,
            grab_delta=self.grab_delta + other.grab_delta,
            edge_pan_active=self.edge_pan_active or other.edge_pan_active,
            edge_pan=self.edge_pan + other.edge_pan,
            grab_point=self.grab_point if self.grab_point is not None else other.grab_point,
        )
