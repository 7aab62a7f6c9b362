import pytest

from rts_camera.camera.camera import Camera
from rts_camera.camera.camera_controller import RtsCameraController
from rts_camera.camera.rts_camera import RtsCamera
from rts_camera.core.config import CameraConfig
from rts_camera.ecs.world import World


@pytest.fixture
def config() -> CameraConfig:
    return CameraConfig()


@pytest.fixture
def world() -> World:
    return World()


@pytest.fixture
def make_controller():
    def _make(config=None, sampler=None, **camera_kwargs):
        rts = RtsCamera(config or CameraConfig(), **camera_kwargs)
        return RtsCameraController(Camera(), rts, sampler)

    return _make
