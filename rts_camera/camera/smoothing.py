# rts_camera/camera/smoothing.py

import math
from rts_camera.camera.state import CameraState
from rts_camera.core.config import CameraConfig
from rts_camera.utils.math import shortest_angle, wrap_angle

# Below this distance an axis is considered settled and snaps onto its target
SETTLE_EPSILON = 1e-6


def smoothing_factor(rate: float, dt: float) -> float:
    """
    Fraction of the remaining distance covered in dt: 1 - e^(-rate * dt).
    A rate of 0 (or infinity) disables smoothing and returns 1.
    """
    if rate <= 0.0 or math.isinf(rate):
        return 1.0
    if dt <= 0.0:
        return 0.0
    return -math.expm1(-rate * dt)


def smooth(actual: float, target: float, rate: float, dt: float, angular: bool = False) -> float:
    """
    Move actual towards target by exponential decay.
    angular=True follows the shortest arc and returns a wrapped angle.
    """
    if angular:
        diff = shortest_angle(actual, target)
    else:
        diff = target - actual

    if abs(diff) <= SETTLE_EPSILON:
        return wrap_angle(target) if angular else target

    result = actual + diff * smoothing_factor(rate, dt)
    if angular:
        result = wrap_angle(result)
        if abs(shortest_angle(result, target)) <= SETTLE_EPSILON:
            return wrap_angle(target)
        return result
    if abs(target - result) <= SETTLE_EPSILON:
        return target
    return result


class SmoothingEngine:
    """
    Moves the actual pose towards the target pose, one rate per axis.
    Height (focus Y) is handled separately, after the ground has been sampled.
    """

    def apply(self, state: CameraState, config: CameraConfig, dt: float):
        actual = state.actual
        target = state.target

        if state.snap_focus:
            actual.focus_point[0] = target.focus_point[0]
            actual.focus_point[2] = target.focus_point[2]
        else:
            actual.focus_point[0] = smooth(actual.focus_point[0], target.focus_point[0], config.smoothness_pan, dt)
            actual.focus_point[2] = smooth(actual.focus_point[2], target.focus_point[2], config.smoothness_pan, dt)

        if state.snap_zoom:
            actual.zoom = target.zoom
        else:
            actual.zoom = smooth(actual.zoom, target.zoom, config.smoothness_zoom, dt)

        if state.snap_yaw:
            actual.yaw = target.yaw
        else:
            actual.yaw = smooth(actual.yaw, target.yaw, config.smoothness_rotate, dt, angular=True)

        actual.pitch = smooth(actual.pitch, target.pitch, config.smoothness_rotate, dt)

    def apply_height(self, state: CameraState, config: CameraConfig, dt: float, snap: bool = False):
        if snap:
            state.actual.focus_point[1] = state.target.focus_point[1]
        else:
            state.actual.focus_point[1] = smooth(state.actual.focus_point[1], state.target.focus_point[1],
                                                 config.smoothness_height, dt)
