import math

import pytest

from rts_camera.ecs.world import World
from rts_camera.scene.transform import Transform
from rts_camera.terrain.ground import (
    BoxGround,
    Ground,
    GroundShape,
    HeightfieldGround,
    PlaneGround,
    SphereGround,
)
from rts_camera.terrain.sampler import (
    CallableTerrainSampler,
    NoGroundSampler,
    WorldGroundSampler,
    resolve_ground_height,
)


def add_ground(world: World, shape, position=(0.0, 0.0, 0.0), name="ground"):
    entity = world.create_entity(name)
    entity.add_component(Transform(position=position))
    entity.add_component(Ground(shape))
    return entity


def test_plane_ground() -> None:
    assert PlaneGround(2.0).height_at(1e6, -1e6) == 2.0
    bounded = PlaneGround(1.0, half_extents=(5.0, 5.0))
    assert bounded.height_at(4.0, -4.0) == 1.0
    assert bounded.height_at(6.0, 0.0) is None


def test_box_ground_top_face() -> None:
    box = BoxGround((4.0, 2.0, 6.0))
    assert box.height_at(1.9, 2.9) == 1.0
    assert box.height_at(2.1, 0.0) is None


def test_sphere_ground() -> None:
    sphere = SphereGround(5.0)
    assert sphere.height_at(0.0, 0.0) == 5.0
    assert sphere.height_at(3.0, 0.0) == pytest.approx(4.0)
    assert sphere.height_at(5.1, 0.0) is None


def test_heightfield_bilinear() -> None:
    field = HeightfieldGround([[0.0, 2.0], [4.0, 6.0]])
    assert field.height_at(0.5, 0.5) == pytest.approx(3.0)
    assert field.height_at(1.0, 1.0) == pytest.approx(6.0)
    assert field.height_at(1.0, 0.0) == pytest.approx(2.0)
    assert field.height_at(-0.1, 0.5) is None
    assert field.height_at(0.5, 1.1) is None


def test_heightfield_scale_and_extent() -> None:
    field = HeightfieldGround([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]], cell_size=2.0, vertical_scale=3.0)
    assert field.extent == (4.0, 2.0)
    assert field.height_at(3.0, 1.0) == pytest.approx(1.5)


def test_heightfield_outside_for_non_finite_point() -> None:
    field = HeightfieldGround([[0.0, 2.0], [4.0, 6.0]])
    assert field.height_at(math.nan, 0.5) is None
    assert field.height_at(0.5, math.inf) is None


def test_ground_shape_is_abstract() -> None:
    with pytest.raises(TypeError):
        GroundShape()


@pytest.mark.parametrize("heightmap", [[1.0, 2.0], [[1.0]], [[1.0, 2.0]]])
def test_heightfield_rejects_small_maps(heightmap) -> None:
    with pytest.raises(ValueError):
        HeightfieldGround(heightmap)


def test_world_sampler_takes_highest(world) -> None:
    add_ground(world, PlaneGround(0.0))
    add_ground(world, BoxGround((10.0, 4.0, 10.0)), position=(20.0, 0.0, 0.0), name="plateau")
    sampler = WorldGroundSampler(world)

    assert sampler.sample(0.0, 0.0) == 0.0
    assert sampler.sample(20.0, 0.0) == 2.0


def test_world_sampler_applies_entity_offset(world) -> None:
    add_ground(world, SphereGround(3.0), position=(10.0, 1.0, -10.0))
    sampler = WorldGroundSampler(world)
    assert sampler.sample(10.0, -10.0) == pytest.approx(4.0)
    assert sampler.sample(0.0, 0.0) is None


def test_world_sampler_ignores_non_ground(world) -> None:
    unit = world.create_entity("tank")
    unit.add_component(Transform(position=(0.0, 50.0, 0.0)))
    add_ground(world, PlaneGround(1.0))

    assert WorldGroundSampler(world).sample(0.0, 0.0) == 1.0


def test_world_sampler_skips_disabled_and_destroyed(world) -> None:
    add_ground(world, PlaneGround(1.0))
    tower = add_ground(world, PlaneGround(9.0), name="tower")
    hill = add_ground(world, PlaneGround(5.0), name="hill")
    sampler = WorldGroundSampler(world)
    assert sampler.sample(0.0, 0.0) == 9.0

    world.destroy_entity(tower)
    assert sampler.sample(0.0, 0.0) == 5.0

    hill.get_component(Ground).enabled = False
    assert sampler.sample(0.0, 0.0) == 1.0


def test_world_sampler_without_transform(world) -> None:
    entity = world.create_entity("bare")
    entity.add_component(Ground(PlaneGround(2.5)))
    assert WorldGroundSampler(world).sample(3.0, 3.0) == 2.5


def test_empty_world_has_no_ground(world) -> None:
    assert WorldGroundSampler(world).sample(0.0, 0.0) is None


def test_callable_sampler() -> None:
    sampler = CallableTerrainSampler(lambda x, z: x + z)
    assert sampler.sample(1.0, 2.0) == 3.0
    assert CallableTerrainSampler(lambda x, z: math.nan).sample(0.0, 0.0) is None
    assert CallableTerrainSampler(lambda x, z: None).sample(0.0, 0.0) is None


def test_no_ground_sampler() -> None:
    assert NoGroundSampler().sample(0.0, 0.0) is None


def test_resolve_ground_height_is_sticky() -> None:
    assert resolve_ground_height(3.0, 1.0, 0.0) == 3.0
    assert resolve_ground_height(None, 1.0, 0.0) == 1.0
    assert resolve_ground_height(None, None, 7.0) == 7.0
