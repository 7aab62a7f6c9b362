# rts_camera/utils/math.py

import math
import numpy as np

TAU = 2.0 * math.pi
WORLD_UP = np.array([0.0, 1.0, 0.0])


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation."""
    return a + t * (b - a)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp value between min and max."""
    return max(min_val, min(max_val, value))


def wrap_angle(angle: float) -> float:
    """Wrap an angle into [0, 2*pi)."""
    wrapped = math.fmod(angle, TAU)
    if wrapped < 0.0:
        wrapped += TAU
    # fmod of a tiny negative number can round up to exactly TAU
    if wrapped >= TAU:
        wrapped = 0.0
    return wrapped


def shortest_angle(from_angle: float, to_angle: float) -> float:
    """Signed difference to_angle - from_angle along the short way, in [-pi, pi)."""
    diff = math.fmod(to_angle - from_angle + math.pi, TAU)
    if diff < 0.0:
        diff += TAU
    return diff - math.pi


def is_finite(*values) -> bool:
    """True when every scalar/array argument is finite."""
    return all(bool(np.all(np.isfinite(v))) for v in values)


def normalize_or_zero(v: np.ndarray) -> np.ndarray:
    """Unit vector in the direction of v, or zeros for a (near) zero vector."""
    v = np.asarray(v, dtype=np.float64)
    length = np.linalg.norm(v)
    if length < 1e-12 or not math.isfinite(length):
        return np.zeros_like(v)
    return v / length


def yaw_basis(yaw: float):
    """
    Horizontal (forward, right) unit vectors for a yaw angle.
    Yaw 0 looks down -Z, positive yaw turns left (counter-clockwise from above).
    """
    s, c = math.sin(yaw), math.cos(yaw)
    forward = np.array([-s, 0.0, -c])
    right = np.array([c, 0.0, -s])
    return forward, right


def local_to_world_xz(local: np.ndarray, yaw: float) -> np.ndarray:
    """Rotate a camera-local (right, forward) 2D vector into a world XZ offset (3D, y = 0)."""
    forward, right = yaw_basis(yaw)
    return right * float(local[0]) + forward * float(local[1])


def forward_vector(yaw: float, pitch: float) -> np.ndarray:
    """View direction for yaw and downward pitch (0 = horizontal, pi/2 = straight down)."""
    cp = math.cos(pitch)
    return np.array([
        -math.sin(yaw) * cp,
        -math.sin(pitch),
        -math.cos(yaw) * cp,
    ])


def quaternion_to_matrix(quat: np.ndarray) -> np.ndarray:
    """Convert quaternion [x, y, z, w] to a 3x3 rotation matrix."""
    x, y, z, w = quat[0], quat[1], quat[2], quat[3]

    return np.array([
        [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
        [2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)],
        [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)],
    ])


def matrix_to_quaternion(m: np.ndarray) -> np.ndarray:
    """Convert 3x3 rotation matrix to quaternion [x, y, z, w]."""
    tr = m[0, 0] + m[1, 1] + m[2, 2]
    if tr > 0:
        s = np.sqrt(tr + 1.0) * 2
        w = 0.25 * s
        x = (m[2, 1] - m[1, 2]) / s
        y = (m[0, 2] - m[2, 0]) / s
        z = (m[1, 0] - m[0, 1]) / s
    elif (m[0, 0] > m[1, 1]) and (m[0, 0] > m[2, 2]):
        s = np.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]) * 2
        w = (m[2, 1] - m[1, 2]) / s
        x = 0.25 * s
        y = (m[0, 1] + m[1, 0]) / s
        z = (m[0, 2] + m[2, 0]) / s
    elif m[1, 1] > m[2, 2]:
        s = np.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]) * 2
        w = (m[0, 2] - m[2, 0]) / s
        x = (m[0, 1] + m[1, 0]) / s
        y = 0.25 * s
        z = (m[1, 2] + m[2, 1]) / s
    else:
        s = np.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]) * 2
        w = (m[1, 0] - m[0, 1]) / s
        x = (m[0, 2] + m[2, 0]) / s
        y = (m[1, 2] + m[2, 1]) / s
        z = 0.25 * s
    return np.array([x, y, z, w])


def look_rotation(forward: np.ndarray, up_hint: np.ndarray = WORLD_UP) -> np.ndarray:
    """
    Quaternion that points local -Z along forward with local +Y as close to up_hint
    as possible.
    """
    forward = normalize_or_zero(forward)
    if not forward.any():
        return np.array([0.0, 0.0, 0.0, 1.0])

    right = np.cross(forward, up_hint)
    if np.linalg.norm(right) < 1e-6:
        # Looking along the hint; any perpendicular works
        fallback = np.array([0.0, 0.0, -1.0]) if abs(forward[2]) < 0.9 else np.array([1.0, 0.0, 0.0])
        right = np.cross(forward, fallback)
    right = right / np.linalg.norm(right)
    up = np.cross(right, forward)

    rot_mat = np.empty((3, 3))
    rot_mat[:, 0] = right
    rot_mat[:, 1] = up
    rot_mat[:, 2] = -forward
    return matrix_to_quaternion(rot_mat)
