# rts_camera/scene/transform.py

import numpy as np
from typing import Optional, List
from rts_camera.ecs.component import Component
from rts_camera.utils.math import quaternion_to_matrix, look_rotation, WORLD_UP


class Transform(Component):
    """
    Hierarchical transform component.
    Y-up, right-handed; local -Z is forward.
    """

    def __init__(self, position=None, rotation=None):
        super().__init__()
        self.local_position = np.zeros(3) if position is None else np.array(position, dtype=np.float64)
        # Quaternion [x, y, z, w]
        self.local_rotation = np.array([0.0, 0.0, 0.0, 1.0]) if rotation is None else np.array(rotation, dtype=np.float64)

        self.parent: Optional[Transform] = None
        self.children: List[Transform] = []

    def set_parent(self, parent: Optional['Transform']):
        """Set parent transform."""
        if self.parent:
            self.parent.children.remove(self)
        self.parent = parent
        if parent:
            parent.children.append(self)

    def get_world_matrix(self) -> np.ndarray:
        """4x4 world matrix (translation + rotation)."""
        local = np.eye(4)
        local[:3, :3] = quaternion_to_matrix(self.local_rotation)
        local[:3, 3] = self.local_position
        if self.parent:
            return self.parent.get_world_matrix() @ local
        return local

    def get_world_position(self) -> np.ndarray:
        """Get position in world space."""
        if self.parent is None:
            return self.local_position.copy()
        return self.get_world_matrix()[:3, 3]

    def get_world_rotation_matrix(self) -> np.ndarray:
        return self.get_world_matrix()[:3, :3]

    def set_world_position(self, position: np.ndarray):
        """Set position in world space."""
        position = np.asarray(position, dtype=np.float64)
        if self.parent:
            parent_inv = np.linalg.inv(self.parent.get_world_matrix())
            self.local_position = (parent_inv @ np.append(position, 1.0))[:3]
        else:
            self.local_position = position.copy()

    def set_rotation(self, rotation: np.ndarray):
        """Set local rotation (quaternion)."""
        self.local_rotation = np.asarray(rotation, dtype=np.float64).copy()

    def look_at(self, target: np.ndarray, up: np.ndarray = WORLD_UP):
        """Rotate so that forward points at target (root transforms only)."""
        direction = np.asarray(target, dtype=np.float64) - self.get_world_position()
        if np.linalg.norm(direction) < 1e-9:
            return
        self.local_rotation = look_rotation(direction, up)

    @property
    def forward(self) -> np.ndarray:
        """World forward vector (local -Z)."""
        return -self.get_world_rotation_matrix()[:, 2]

    @property
    def right(self) -> np.ndarray:
        """World right vector (local +X)."""
        return self.get_world_rotation_matrix()[:, 0]

    @property
    def up(self) -> np.ndarray:
        """World up vector (local +Y)."""
        return self.get_world_rotation_matrix()[:, 1]
