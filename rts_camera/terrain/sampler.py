# rts_camera/terrain/sampler.py

import math
from abc import ABC, abstractmethod
from typing import Callable, Optional
from rts_camera.ecs.world import World
from rts_camera.scene.transform import Transform
from rts_camera.terrain.ground import Ground


class TerrainSampler(ABC):
    """
    Ground height query.
    Stateless: sample() answers for the current scene only.
    """

    @abstractmethod
    def sample(self, x: float, z: float) -> Optional[float]:
        """Highest ground height at world (x, z), or None if there is no ground."""
        pass


class WorldGroundSampler(TerrainSampler):
    """Samples every active entity carrying a Ground component."""

    def __init__(self, world: World):
        self.world = world

    def sample(self, x: float, z: float) -> Optional[float]:
        best = None
        for entity in self.world.query(Ground):
            ground = entity.get_component(Ground)
            if not ground.enabled:
                continue

            transform = entity.get_component(Transform)
            if transform is not None:
                origin = transform.get_world_position()
            else:
                origin = (0.0, 0.0, 0.0)

            local_height = ground.shape.height_at(x - origin[0], z - origin[2])
            if local_height is None:
                continue

            height = local_height + origin[1]
            if not math.isfinite(height):
                continue
            if best is None or height > best:
                best = height
        return best


class CallableTerrainSampler(TerrainSampler):
    """Adapts any f(x, z) -> Optional[float] (host heightfield lookups, tests)."""

    def __init__(self, func: Callable[[float, float], Optional[float]]):
        self.func = func

    def sample(self, x: float, z: float) -> Optional[float]:
        height = self.func(x, z)
        if height is None:
            return None
        height = float(height)
        return height if math.isfinite(height) else None


class NoGroundSampler(TerrainSampler):
    """For cameras that do not follow terrain."""

    def sample(self, x: float, z: float) -> Optional[float]:
        return None


def resolve_ground_height(sampled: Optional[float], previous: Optional[float], default: float) -> float:
    """
    Sticky fallback: a missing sample keeps the previous height; the configured
    default is only used before any valid sample exists.
    """
    if sampled is not None:
        return sampled
    if previous is not None:
        return previous
    return default
