# rts_camera/backends/panda_backend.py

from typing import Optional
import numpy as np
from rts_camera.camera.camera import Camera
from rts_camera.camera.pose import ComposedPose
from rts_camera.core.config import ControlBindings
from rts_camera.ecs.world import World
from rts_camera.input.input_state import InputState
from rts_camera.terrain.sampler import TerrainSampler
from rts_camera.utils.math import quaternion_to_matrix
from rts_camera.core.logging import get_logger

logger = get_logger()

# Panda3D is Z-up with +Y forward; the camera works Y-up with -Z forward.


def to_panda(v) -> np.ndarray:
    """Y-up camera space -> Panda3D Z-up space."""
    return np.array([v[0], -v[2], v[1]], dtype=np.float64)


def from_panda(v) -> np.ndarray:
    """Panda3D Z-up space -> Y-up camera space."""
    return np.array([v[0], v[2], -v[1]], dtype=np.float64)


class PandaGroundSampler(TerrainSampler):
    """
    Ground height by casting a ray straight down through a Panda3D scene graph.
    Only nodes carrying ground_tag (on themselves or an ancestor) count as ground.
    """

    def __init__(self, root, ground_tag: str = "ground", ray_height: float = 10000.0):
        from panda3d.core import (CollisionTraverser, CollisionHandlerQueue, CollisionNode,
                                  CollisionRay, GeomNode, BitMask32)

        self.root = root
        self.ground_tag = ground_tag
        self.ray_height = ray_height

        self._ray = CollisionRay()
        self._ray.setDirection(0, 0, -1)
        ray_node = CollisionNode("rts-camera-ground-ray")
        ray_node.addSolid(self._ray)
        ray_node.setFromCollideMask(CollisionNode.getDefaultCollideMask() | GeomNode.getDefaultCollideMask())
        ray_node.setIntoCollideMask(BitMask32.allOff())
        self._ray_np = root.attachNewNode(ray_node)

        self._queue = CollisionHandlerQueue()
        self._traverser = CollisionTraverser("rts-camera-ground")
        self._traverser.addCollider(self._ray_np, self._queue)

    def sample(self, x: float, z: float) -> Optional[float]:
        px, py, _ = to_panda((x, 0.0, z))
        self._ray.setOrigin(px, py, self.ray_height)
        self._traverser.traverse(self.root)

        best = None
        for i in range(self._queue.getNumEntries()):
            entry = self._queue.getEntry(i)
            if not entry.getIntoNodePath().hasNetTag(self.ground_tag):
                continue
            height = entry.getSurfacePoint(self.root).getZ()
            if best is None or height > best:
                best = height
        self._queue.clearEntries()
        return best

    def destroy(self):
        self._traverser.clearColliders()
        self._ray_np.removeNode()


class PandaInputPoller:
    """
    Fills an InputState from a ShowBase window each frame.
    Scroll arrives as wheel events and accumulates until end_frame().
    With lock_cursor_on_grab / lock_cursor_on_rotate set in the bindings the
    cursor is hidden and held in place while that button is down.
    """

    def __init__(self, base, bindings: Optional[ControlBindings] = None, input_state: Optional[InputState] = None):
        self.base = base
        self.bindings = bindings or ControlBindings()
        self.input_state = input_state or InputState()
        self._last_pointer = None
        self.cursor_locked = False

        base.accept('wheel_up', self._on_scroll, [1.0])
        base.accept('wheel_down', self._on_scroll, [-1.0])

    def _on_scroll(self, amount: float):
        self.input_state.scroll_lines += amount

    def _watched_names(self):
        b = self.bindings
        names = [b.key_up, b.key_down, b.key_left, b.key_right,
                 b.key_rotate_left, b.key_rotate_right, b.button_rotate, b.button_grab]
        return [name for name in names if name]

    def poll(self):
        """Read keys, buttons and the pointer for this frame."""
        from panda3d.core import ButtonRegistry

        state = self.input_state
        watcher = self.base.mouseWatcherNode
        win = self.base.win
        if watcher is None or win is None:
            return

        registry = ButtonRegistry.ptr()
        state.keys.clear()
        state.buttons.clear()
        for name in self._watched_names():
            handle = registry.findButton(name)
            if watcher.isButtonDown(handle):
                if name.startswith('mouse'):
                    state.buttons.add(name)
                else:
                    state.keys.add(name)

        b = self.bindings
        want_lock = ((b.lock_cursor_on_grab and state.is_down(b.button_grab))
                     or (b.lock_cursor_on_rotate and state.is_down(b.button_rotate)))
        if want_lock != self.cursor_locked:
            self._set_cursor_locked(want_lock)

        state.viewport_size = (float(win.getXSize()), float(win.getYSize()))

        pointer = win.getPointer(0)
        if pointer.getInWindow():
            position = (float(pointer.getX()), float(pointer.getY()))
            if self._last_pointer is not None:
                state.pointer_delta = (position[0] - self._last_pointer[0], position[1] - self._last_pointer[1])
            state.pointer_position = position
            self._last_pointer = position
        else:
            state.pointer_position = None
            state.pointer_delta = (0.0, 0.0)
            self._last_pointer = None

    def _set_cursor_locked(self, locked: bool):
        from panda3d.core import WindowProperties

        props = WindowProperties()
        props.setCursorHidden(locked)
        props.setMouseMode(WindowProperties.M_relative if locked else WindowProperties.M_absolute)
        self.base.win.requestProperties(props)
        self.cursor_locked = locked
        logger.debug(f"Cursor {'locked' if locked else 'released'}")

    def destroy(self):
        if self.cursor_locked and self.base.win is not None:
            self._set_cursor_locked(False)
        self.base.ignore('wheel_up')
        self.base.ignore('wheel_down')


def apply_pose(node_path, pose: ComposedPose):
    """Write a composed camera pose into a Panda3D NodePath."""
    from panda3d.core import Point3, Vec3

    position = to_panda(pose.position)
    focus = to_panda(pose.focus_point)
    up = to_panda(quaternion_to_matrix(pose.rotation)[:, 1])

    node_path.setPos(Point3(*position))
    node_path.lookAt(Point3(*focus), Vec3(*up))


class PandaCameraDriver:
    """
    Ticks a World from the Panda3D task manager and copies one camera
    entity's pose onto a NodePath (usually base.camera).
    """

    def __init__(self, base, world: World, camera_entity, node_path=None,
                 poller: Optional[PandaInputPoller] = None, task_name: str = "rts-camera-update"):
        self.base = base
        self.world = world
        self.camera_entity = camera_entity
        self.node_path = node_path if node_path is not None else base.camera
        self.poller = poller
        self.task_name = task_name

        base.taskMgr.add(self._update_task, task_name)
        logger.info(f"Panda camera driver started for {camera_entity}")

    def _update_task(self, task):
        from panda3d.core import ClockObject

        dt = ClockObject.getGlobalClock().getDt()

        if self.poller is not None:
            self.poller.poll()

        camera = self.camera_entity.get_component(Camera)
        if camera is not None and self.base.win is not None:
            camera.viewport_size = (float(self.base.win.getXSize()), float(self.base.win.getYSize()))

        self.world.update_systems(dt)

        if camera is not None:
            self._write_camera(camera)

        if self.poller is not None:
            self.poller.input_state.end_frame()
        return task.cont

    def _write_camera(self, camera: Camera):
        from panda3d.core import Point3, Vec3

        transform = camera.transform
        position = to_panda(transform.get_world_position())
        forward = to_panda(transform.forward)
        up = to_panda(transform.up)
        self.node_path.setPos(Point3(*position))
        self.node_path.lookAt(Point3(*(position + forward)), Vec3(*up))

    def stop(self):
        self.base.taskMgr.remove(self.task_name)
        if self.poller is not None:
            self.poller.destroy()
        logger.info("Panda camera driver stopped")
