import math

import numpy as np
import pytest

from rts_camera.camera.camera import Camera
from rts_camera.camera.pose import zoom_distance
from rts_camera.camera.rts_camera import RtsCamera
from rts_camera.camera.systems import RtsCameraControls, RtsCameraSystem
from rts_camera.core.config import CameraConfig
from rts_camera.ecs.system import System
from rts_camera.input.frame_input import FrameInput
from rts_camera.input.sources import ActionValues
from rts_camera.scene.transform import Transform
from rts_camera.terrain.ground import Ground, PlaneGround
from rts_camera.terrain.sampler import CallableTerrainSampler
from rts_camera.utils.math import quaternion_to_matrix
from rts_camera.utils.profiler import get_profiler

DT = 1.0 / 60.0


@pytest.fixture
def scenario_config() -> CameraConfig:
    return CameraConfig(
        pan_speed=10.0,
        smoothness_pan=5.0,
        rotate_speed=1.0,
        pan_scale_zoomed_in=1.0,
        pan_scale_zoomed_out=1.0,
        min_zoom=2.0,
        max_zoom=50.0,
    )


class MutableGround:
    """Ground height the test can change (or remove) between frames."""

    def __init__(self, height=None):
        self.height = height

    def __call__(self, x, z):
        return self.height


def test_forward_pan_scenario(make_controller, scenario_config) -> None:
    controller = make_controller(scenario_config, zoom=10.0)
    rts = controller.rts_camera

    for _ in range(60):
        controller.update(DT, FrameInput(pan=[0.0, 1.0]))

    assert rts.target.focus_point[2] == pytest.approx(-10.0)
    assert rts.target.focus_point[0] == pytest.approx(0.0, abs=1e-9)
    assert -9.5 < rts.actual.focus_point[2] < -7.0
    assert rts.actual.zoom == 10.0

    for _ in range(600):
        controller.update(DT)

    assert rts.actual.focus_point[2] == pytest.approx(-10.0)


def test_update_returns_pose_and_writes_camera(make_controller) -> None:
    controller = make_controller(focus_point=(3.0, 0.0, 4.0))
    pose = controller.update(DT)

    np.testing.assert_allclose(controller.camera.transform.get_world_position(), pose.position)
    forward = controller.camera.transform.forward
    direction = (pose.focus_point - pose.position) / pose.distance
    np.testing.assert_allclose(forward, direction, atol=1e-9)
    assert controller.last_pose is pose


def test_idle_camera_stays_put(make_controller) -> None:
    controller = make_controller(focus_point=(1.0, 0.0, 2.0))
    first = controller.update(DT)
    second = controller.update(DT)
    np.testing.assert_allclose(first.position, second.position)


def test_snap_has_no_lag(make_controller) -> None:
    ground = MutableGround(0.0)
    controller = make_controller(sampler=CallableTerrainSampler(ground))
    rts = controller.rts_camera
    controller.update(DT)

    ground.height = 7.0
    rts.snap_to((100.0, 0.0, 50.0), zoom=rts.config.max_zoom, yaw=1.0)
    pose = controller.update(DT)

    np.testing.assert_allclose(rts.actual.focus_point, [100.0, 7.0, 50.0])
    np.testing.assert_allclose(pose.focus_point, [100.0, 7.0, 50.0])
    assert rts.actual.zoom == rts.config.max_zoom
    assert rts.actual.yaw == 1.0
    assert not rts.state.snap_focus

    # Later terrain changes are smoothed again
    ground.height = 9.0
    controller.update(DT)
    assert 7.0 < rts.actual.focus_point[1] < 9.0


def test_snap_ignores_non_finite_point(make_controller) -> None:
    controller = make_controller(focus_point=(1.0, 0.0, 1.0))
    controller.rts_camera.snap_to((math.nan, 0.0, 0.0))
    assert controller.rts_camera.actual.focus_point[0] == 1.0
    assert not controller.rts_camera.state.snap_focus


def test_set_target_glides(make_controller) -> None:
    controller = make_controller()
    rts = controller.rts_camera
    rts.set_target((30.0, 99.0, 0.0), zoom=100.0)

    controller.update(DT)

    assert rts.target.focus_point[0] == 30.0
    # Height comes from the ground, not the caller
    assert rts.target.focus_point[1] == 0.0
    assert rts.target.zoom == rts.config.max_zoom
    assert 0.0 < rts.actual.focus_point[0] < 30.0


def test_set_config_reclamps(make_controller) -> None:
    controller = make_controller(zoom=1.0)
    rts = controller.rts_camera
    rts.set_config(CameraConfig(min_zoom=0.0, max_zoom=0.5))
    assert rts.target.zoom == 0.5
    assert rts.actual.zoom == 0.5


def test_lock_follows_entity_until_destroyed(make_controller, world) -> None:
    controller = make_controller()
    rts = controller.rts_camera
    unit = world.create_entity("scout")
    transform = unit.add_component(Transform(position=(20.0, 3.0, 5.0)))

    rts.lock_onto(unit)
    controller.update(DT)
    assert rts.target.focus_point[0] == 20.0
    assert rts.target.focus_point[2] == 5.0

    transform.local_position = np.array([25.0, 3.0, -5.0])
    controller.update(DT)
    assert rts.target.focus_point[0] == 25.0
    assert rts.target.focus_point[2] == -5.0

    world.destroy_entity(unit)
    controller.update(DT)
    assert not rts.is_locked
    assert rts.target.focus_point[0] == 25.0
    assert rts.target.focus_point[2] == -5.0


def test_lock_overrides_pan_input(make_controller, world) -> None:
    controller = make_controller()
    unit = world.create_entity("scout")
    unit.add_component(Transform(position=(4.0, 0.0, 4.0)))
    controller.rts_camera.lock_onto(unit)

    controller.update(DT, FrameInput(pan=[1.0, 0.0]))

    assert controller.rts_camera.target.focus_point[0] == 4.0


def test_release_lock_keeps_target(make_controller, world) -> None:
    controller = make_controller()
    rts = controller.rts_camera
    unit = world.create_entity("scout")
    transform = unit.add_component(Transform(position=(6.0, 0.0, 6.0)))
    rts.lock_onto(unit)
    controller.update(DT)

    rts.release_lock()
    transform.local_position = np.array([50.0, 0.0, 50.0])
    controller.update(DT)

    assert rts.target.focus_point[0] == 6.0


def test_lock_ignores_non_finite_entity_position(make_controller, world) -> None:
    controller = make_controller()
    rts = controller.rts_camera
    unit = world.create_entity("scout")
    transform = unit.add_component(Transform(position=(6.0, 0.0, 6.0)))
    rts.lock_onto(unit)
    controller.update(DT)

    transform.local_position = np.array([math.nan, 0.0, 1.0])
    controller.update(DT)
    assert rts.is_locked
    assert rts.target.focus_point[0] == 6.0
    assert np.isfinite(rts.actual.focus_point).all()

    # Once released the camera still pans normally
    rts.release_lock()
    start = rts.actual.focus_point[0]
    for _ in range(120):
        controller.update(DT, FrameInput(pan=[1.0, 0.0]))
    assert math.isfinite(rts.actual.focus_point[0])
    assert rts.actual.focus_point[0] > start


def test_snap_releases_lock(make_controller, world) -> None:
    controller = make_controller()
    rts = controller.rts_camera
    unit = world.create_entity("scout")
    unit.add_component(Transform(position=(6.0, 0.0, 6.0)))
    rts.lock_onto(unit)
    controller.update(DT)

    rts.snap_to((-40.0, 0.0, 12.0))
    controller.update(DT)

    assert not rts.is_locked
    np.testing.assert_allclose(rts.actual.focus_point, [-40.0, 0.0, 12.0])


def test_first_frame_uses_default_height(make_controller) -> None:
    controller = make_controller(CameraConfig(default_height=3.0, height_offset=1.0))
    controller.update(DT)
    assert controller.rts_camera.actual.focus_point[1] == 4.0


def test_first_frame_snaps_to_ground(make_controller) -> None:
    controller = make_controller(sampler=CallableTerrainSampler(lambda x, z: 12.0))
    controller.update(DT)
    assert controller.rts_camera.actual.focus_point[1] == 12.0


def test_height_is_sticky_over_gaps(make_controller) -> None:
    ground = MutableGround(5.0)
    controller = make_controller(CameraConfig(default_height=-100.0), sampler=CallableTerrainSampler(ground))
    rts = controller.rts_camera
    controller.update(DT)
    assert rts.actual.focus_point[1] == 5.0

    ground.height = None
    for _ in range(30):
        controller.update(DT)
    assert rts.target.focus_point[1] == 5.0
    assert rts.actual.focus_point[1] == 5.0

    ground.height = 8.0
    controller.update(DT)
    assert 5.0 < rts.actual.focus_point[1] < 8.0


def test_non_finite_frame_is_rejected(make_controller) -> None:
    controller = make_controller(focus_point=(1.0, 0.0, 1.0))
    controller.update(DT)

    pose = controller.update(DT, FrameInput(pan=[math.nan, 1.0], zoom_delta=1.0))

    assert controller.rts_camera.target.focus_point[0] == 1.0
    assert np.isfinite(pose.position).all()
    assert np.isfinite(pose.rotation).all()


@pytest.mark.parametrize("dt", [-1.0, math.nan, math.inf])
def test_invalid_dt_moves_nothing(make_controller, dt) -> None:
    controller = make_controller()
    controller.update(DT)
    before = controller.rts_camera.target.copy()

    pose = controller.update(dt, FrameInput(pan=[0.0, 1.0], zoom_delta=1.0))

    np.testing.assert_array_equal(controller.rts_camera.target.focus_point, before.focus_point)
    assert controller.rts_camera.target.zoom == before.zoom
    assert np.isfinite(pose.position).all()


def test_queued_input_is_merged(make_controller, scenario_config) -> None:
    controller = make_controller(scenario_config, zoom=10.0)
    rts = controller.rts_camera
    rts.push_input(FrameInput(pan=[0.0, 1.0]))
    rts.push_input(FrameInput(zoom_delta=60.0))

    controller.update(DT)

    assert rts.target.focus_point[2] < 0.0
    assert rts.target.zoom == pytest.approx(11.0)
    assert rts.take_input() is None


def test_disabled_controller_does_nothing(make_controller) -> None:
    controller = make_controller()
    first = controller.update(DT)
    controller.enabled = False
    assert controller.update(DT, FrameInput(pan=[0.0, 1.0])) is first
    assert controller.rts_camera.target.focus_point[2] == 0.0


def test_cameras_are_independent(make_controller) -> None:
    a = make_controller()
    b = make_controller(focus_point=(5.0, 0.0, 5.0))

    for _ in range(10):
        a.update(DT, FrameInput(pan=[1.0, 0.0], rotate_delta=1.0))
        b.update(DT)

    assert a.rts_camera.target.focus_point[0] > 0.0
    assert a.rts_camera.target.yaw > 0.0
    np.testing.assert_allclose(b.rts_camera.target.focus_point, [5.0, 0.0, 5.0])
    assert b.rts_camera.target.yaw == 0.0


def test_grab_scales_with_grabbed_point_distance(make_controller) -> None:
    anchored = make_controller()
    plain = make_controller()
    anchored.update(DT)
    plain.update(DT)

    grabbed = anchored.last_pose.position + np.array([0.0, -100.0, 0.0])
    anchored.update(DT, FrameInput(grab_active=True, grab_delta=[10.0, 0.0], grab_point=grabbed))
    plain.update(DT, FrameInput(grab_active=True, grab_delta=[10.0, 0.0]))

    distance = zoom_distance(plain.rts_camera.actual.zoom, plain.rts_camera.config)
    moved_anchored = anchored.rts_camera.target.focus_point[0]
    moved_plain = plain.rts_camera.target.focus_point[0]
    assert moved_plain < 0.0
    assert moved_anchored / moved_plain == pytest.approx(100.0 / distance)


def test_rotation_turns_camera(make_controller) -> None:
    controller = make_controller(CameraConfig(smoothness_rotate=0.0))
    pose = controller.update(1.0, FrameInput(rotate_delta=math.pi / 2))

    # A quarter turn left: the camera now looks down -X
    forward = -quaternion_to_matrix(pose.rotation)[:, 2]
    assert forward[0] < 0.0
    assert forward[2] == pytest.approx(0.0, abs=1e-9)


def test_profiler_records_stages(make_controller) -> None:
    controller = make_controller()
    controller.update(DT)
    profiler = get_profiler()
    assert "Camera:Smooth" in profiler.timings
    assert profiler.get_average("Camera:Compose") >= 0.0


def spawn_camera(world, controls=None, **camera_kwargs):
    entity = world.create_entity("camera")
    entity.add_component(Transform())
    entity.add_component(Camera())
    entity.add_component(RtsCamera(**camera_kwargs))
    if controls is not None:
        entity.add_component(controls)
    return entity


def test_system_drives_camera_with_controls(world) -> None:
    actions = ActionValues(pan=[0.0, 1.0])
    entity = spawn_camera(world, RtsCameraControls.from_actions(actions))
    world.add_system(RtsCameraSystem(world))

    world.update_systems(DT)

    rts = entity.get_component(RtsCamera)
    assert rts.target.focus_point[2] < 0.0
    np.testing.assert_allclose(entity.get_component(Transform).get_world_position(),
                               entity.get_component(Camera).transform.get_world_position())


def test_system_follows_ground_entities(world) -> None:
    terrain = world.create_entity("terrain")
    terrain.add_component(Ground(PlaneGround(4.0)))
    entity = spawn_camera(world)
    world.add_system(RtsCameraSystem(world))

    world.update_systems(DT)

    assert entity.get_component(RtsCamera).actual.focus_point[1] == 4.0


def test_system_without_controls_is_programmatic_only(world) -> None:
    entity = spawn_camera(world)
    world.add_system(RtsCameraSystem(world))
    rts = entity.get_component(RtsCamera)

    rts.set_target((10.0, 0.0, 0.0))
    world.update_systems(DT)

    assert rts.target.focus_point[0] == 10.0
    assert rts.actual.focus_point[0] > 0.0


def test_system_skips_disabled_controls(world) -> None:
    controls = RtsCameraControls.from_actions(ActionValues(pan=[0.0, 1.0]))
    controls.enabled = False
    entity = spawn_camera(world, controls)
    world.add_system(RtsCameraSystem(world))

    world.update_systems(DT)

    assert entity.get_component(RtsCamera).target.focus_point[2] == 0.0


def test_system_drops_destroyed_cameras(world) -> None:
    entity = spawn_camera(world)
    system = RtsCameraSystem(world)
    world.add_system(system)
    world.update_systems(DT)
    assert entity.id in system._controllers

    world.destroy_entity(entity)
    world.update_systems(DT)

    assert entity.id not in system._controllers
    assert not entity.alive


class ExplodingSystem(System):
    def get_required_components(self):
        return []

    def update(self, entities, dt):
        raise RuntimeError("boom")


def test_world_survives_failing_system(world, caplog) -> None:
    broken = ExplodingSystem()
    broken.priority = -1
    world.add_system(broken)
    entity = spawn_camera(world, RtsCameraControls.from_actions(ActionValues(pan=[0.0, 1.0])))
    world.add_system(RtsCameraSystem(world))

    world.update_systems(DT)

    assert entity.get_component(RtsCamera).target.focus_point[2] < 0.0
    assert "ExplodingSystem update failed" in caplog.text
