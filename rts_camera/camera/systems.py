# rts_camera/camera/systems.py

from typing import Callable, Dict, List, Optional, Type, Union
from rts_camera.camera.camera import Camera
from rts_camera.camera.camera_controller import RtsCameraController
from rts_camera.camera.rts_camera import RtsCamera
from rts_camera.core.config import ControlBindings
from rts_camera.ecs.component import Component
from rts_camera.ecs.system import System
from rts_camera.ecs.world import World
from rts_camera.input.input_state import InputState
from rts_camera.input.sources import InputSource, BuiltinInputSource, ActionInputSource, ActionValues, GroundPicker
from rts_camera.scene.transform import Transform
from rts_camera.terrain.sampler import TerrainSampler, WorldGroundSampler


class RtsCameraControls(Component):
    """
    Opt-in controls for an RTS camera entity.
    Without this component the camera only moves programmatically.
    """

    def __init__(self, source: InputSource):
        super().__init__()
        self.source = source

    @classmethod
    def builtin(cls, input_state: InputState, bindings: Optional[ControlBindings] = None,
                ground_picker: Optional[GroundPicker] = None) -> 'RtsCameraControls':
        """Keyboard / mouse controls read from a host-filled InputState."""
        return cls(BuiltinInputSource(input_state, bindings, ground_picker))

    @classmethod
    def from_actions(cls, actions: Union[ActionValues, Callable[[], ActionValues]]) -> 'RtsCameraControls':
        """Controls fed by an external action-mapping layer."""
        return cls(ActionInputSource(actions))


class RtsCameraSystem(System):
    """
    Runs the RTS camera pipeline once per frame for every entity with an
    RtsCamera and a Camera. Ground is sampled from Ground entities unless
    another sampler is supplied.
    """

    def __init__(self, world: World, sampler: Optional[TerrainSampler] = None):
        super().__init__()
        self.world = world
        self.sampler = sampler or WorldGroundSampler(world)
        self._controllers: Dict[int, RtsCameraController] = {}

    def get_required_components(self) -> List[Type[Component]]:
        return [RtsCamera, Camera]

    def update(self, entities: List, dt: float):
        for entity in entities:
            rts = entity.get_component(RtsCamera)
            camera = entity.get_component(Camera)
            if not rts.enabled:
                continue

            controller = self._controller_for(entity, camera, rts)

            frame_input = None
            controls = entity.get_component(RtsCameraControls)
            if controls is not None and controls.enabled:
                frame_input = controls.source.produce(rts, dt)

            pose = controller.update(dt, frame_input)

            # Mirror into the entity transform so scene-graph consumers see it too
            transform = entity.get_component(Transform)
            if pose is not None and transform is not None:
                transform.set_world_position(pose.position)
                transform.set_rotation(pose.rotation)

    def on_entity_destroyed(self, entity):
        self._controllers.pop(entity.id, None)

    def _controller_for(self, entity, camera: Camera, rts: RtsCamera) -> RtsCameraController:
        controller = self._controllers.get(entity.id)
        if controller is None or controller.camera is not camera or controller.rts_camera is not rts:
            controller = RtsCameraController(camera, rts, self.sampler)
            self._controllers[entity.id] = controller
        return controller
