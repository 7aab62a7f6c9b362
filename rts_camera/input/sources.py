# rts_camera/input/sources.py

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Union
import numpy as np
from rts_camera.core.config import ControlBindings
from rts_camera.input.frame_input import FrameInput
from rts_camera.input.input_state import InputState
from rts_camera.utils.math import is_finite, normalize_or_zero

# Scroll lines per half of the zoom range
SCROLL_ZOOM_STEP = 0.5

GroundPicker = Callable[[Tuple[float, float]], Optional[np.ndarray]]


class InputSource(ABC):
    """
    Produces one FrameInput per camera per frame.
    The resolver never needs to know which implementation produced it.
    """

    @abstractmethod
    def produce(self, camera: 'RtsCamera', dt: float) -> FrameInput:
        """Build this frame's input for the given camera. Must not mutate the camera."""
        pass


def edge_pan_direction(pointer: Optional[Tuple[float, float]],
                       viewport_size: Tuple[float, float],
                       margin: float) -> np.ndarray:
    """
    Camera-local pan direction for a pointer near the viewport border.

    margin is a fraction of the viewport height. Each triggered edge adds its
    outward direction; corners come out as a normalised diagonal.
    """
    if pointer is None or margin <= 0.0:
        return np.zeros(2)

    width, height = viewport_size
    if width <= 0 or height <= 0:
        return np.zeros(2)

    px, py = pointer
    band = height * margin
    direction = np.zeros(2)
    if px < band:
        direction[0] -= 1.0
    if px > width - band:
        direction[0] += 1.0
    # Screen y grows downwards; the top edge pans forward
    if py < band:
        direction[1] += 1.0
    if py > height - band:
        direction[1] -= 1.0
    return normalize_or_zero(direction)


class BuiltinInputSource(InputSource):
    """
    Default controls: key pan, edge pan, wheel zoom, drag/key rotate and
    optional grab-drag, read from an InputState snapshot.

    ground_picker maps a pointer position to the world ground point under it
    (e.g. Camera.pick_ground). It is called once when a grab starts and the
    picked point is carried with the drag until the grab button is released.
    """

    def __init__(self, input_state: InputState, bindings: Optional[ControlBindings] = None,
                 ground_picker: Optional[GroundPicker] = None):
        self.input_state = input_state
        self.bindings = bindings or ControlBindings()
        self.ground_picker = ground_picker
        self._grabbing = False
        self._grab_point: Optional[np.ndarray] = None

    def produce(self, camera: 'RtsCamera', dt: float) -> FrameInput:
        state = self.input_state
        b = self.bindings
        frame = FrameInput()

        grabbing = b.button_grab is not None and state.is_down(b.button_grab)
        rotating = state.is_down(b.button_rotate)

        # Keyboard pan
        key_pan = np.zeros(2)
        if state.is_down(b.key_up):
            key_pan[1] += 1.0
        if state.is_down(b.key_down):
            key_pan[1] -= 1.0
        if state.is_down(b.key_left):
            key_pan[0] -= 1.0
        if state.is_down(b.key_right):
            key_pan[0] += 1.0
        frame.pan = normalize_or_zero(key_pan)

        # Edge pan only when nothing else is steering
        if not grabbing and not rotating and not frame.pan.any():
            edge = edge_pan_direction(state.pointer_position, state.viewport_size,
                                      camera.config.edge_pan_margin)
            if edge.any():
                frame.edge_pan_active = True
                frame.edge_pan = edge

        if grabbing:
            if not self._grabbing:
                self._grab_point = self._pick_grab_point()
            frame.grab_active = True
            frame.grab_delta = np.array(state.pointer_delta, dtype=np.float64)
            frame.grab_point = self._grab_point
        else:
            self._grab_point = None
        self._grabbing = grabbing

        if dt > 0.0:
            # Wheel and mouse motion are per-frame impulses; express them as rates
            scroll = state.scroll_amount()
            if scroll:
                zoom_range = camera.config.max_zoom - camera.config.min_zoom
                frame.zoom_delta = -scroll * SCROLL_ZOOM_STEP * zoom_range * b.zoom_sensitivity / dt

            if rotating:
                width = state.viewport_size[0]
                if width > 0:
                    # A full viewport width of drag is half a turn
                    frame.rotate_delta -= state.pointer_delta[0] / width * math.pi / dt

        key_rotate = 0.0
        if state.is_down(b.key_rotate_left):
            key_rotate += 1.0
        if state.is_down(b.key_rotate_right):
            key_rotate -= 1.0
        frame.rotate_delta += key_rotate * b.key_rotate_speed

        return frame

    def _pick_grab_point(self) -> Optional[np.ndarray]:
        pointer = self.input_state.pointer_position
        if self.ground_picker is None or pointer is None:
            return None
        point = self.ground_picker(pointer)
        if point is None:
            return None
        point = np.asarray(point, dtype=np.float64)
        return point if is_finite(point) else None


@dataclass
class ActionValues:
    """
    The minimal action set an external action-mapping layer has to supply.

    pan: 2D axis (x = right, y = forward), zoom_axis: 1D rate (negative = in),
    rotate_axis: 1D rate used while rotate_mode is held, grab_axis: screen-pixel
    motion used while grab_mode is held, grab_point: optional world ground point
    grabbed when grab_mode was pressed (held state, not reset per frame).
    """

    pan: np.ndarray = field(default_factory=lambda: np.zeros(2))
    zoom_axis: float = 0.0
    rotate_mode: bool = False
    rotate_axis: float = 0.0
    grab_mode: bool = False
    grab_axis: np.ndarray = field(default_factory=lambda: np.zeros(2))
    grab_point: Optional[np.ndarray] = None

    def reset_axes(self):
        """Zero the per-frame axes; held modes stay as they are."""
        self.pan = np.zeros(2)
        self.zoom_axis = 0.0
        self.rotate_axis = 0.0
        self.grab_axis = np.zeros(2)


class ActionInputSource(InputSource):
    """
    Input from an external action-mapping layer.
    Accepts an ActionValues instance (axes are zeroed after each read when
    auto_reset is set) or a callable returning fresh values every frame.
    """

    def __init__(self, actions: Union[ActionValues, Callable[[], ActionValues]], auto_reset: bool = True):
        self.actions = actions
        self.auto_reset = auto_reset

    def produce(self, camera: 'RtsCamera', dt: float) -> FrameInput:
        if isinstance(self.actions, ActionValues):
            values = self.actions
        else:
            values = self.actions()

        pan = np.asarray(values.pan, dtype=np.float64)
        length = np.linalg.norm(pan)
        if length > 1.0:
            pan = pan / length

        frame = FrameInput(
            pan=pan,
            zoom_delta=float(values.zoom_axis),
            rotate_delta=float(values.rotate_axis) if values.rotate_mode else 0.0,
            grab_active=bool(values.grab_mode),
            grab_delta=np.asarray(values.grab_axis, dtype=np.float64) if values.grab_mode else np.zeros(2),
            grab_point=values.grab_point if values.grab_mode else None,
        )

        if self.auto_reset and isinstance(self.actions, ActionValues):
            self.actions.reset_axes()
        return frame
