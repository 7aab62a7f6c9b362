# rts_camera/ecs/world.py

from typing import List, Optional, Type
from rts_camera.ecs.entity import Entity
from rts_camera.ecs.system import System
from rts_camera.ecs.component import Component
from rts_camera.core.logging import get_logger
from rts_camera.utils.profiler import profile_section


class World:
    """
    ECS world manager.
    Owns entities and systems; one update_systems() call per rendered frame.
    """

    def __init__(self):
        self.entities: List[Entity] = []
        self.systems: List[System] = []
        self.logger = get_logger()

    def create_entity(self, name: Optional[str] = None) -> Entity:
        """Create a new entity."""
        entity = Entity(name)
        self.entities.append(entity)
        return entity

    def destroy_entity(self, entity: Entity):
        """Remove an entity from the world."""
        if entity not in self.entities:
            return

        for system in self.systems:
            system.on_entity_destroyed(entity)

        for component in entity.components.values():
            try:
                component.on_destroy()
            except Exception as e:
                self.logger.error(f"Error destroying component {type(component).__name__} on entity {entity.id}: {e}")
            # Break circular reference
            component.entity = None

        entity.components.clear()
        entity.alive = False
        entity.active = False
        self.entities.remove(entity)

    def add_system(self, system: System):
        """Register a system."""
        self.systems.append(system)
        self.systems.sort(key=lambda s: s.priority)
        self.logger.info(f"Registered system {type(system).__name__} with priority {system.priority}")

    def query(self, *component_types: Type[Component]) -> List[Entity]:
        """Active entities carrying every given component type."""
        return [
            entity for entity in self.entities
            if entity.active and all(entity.has_component(t) for t in component_types)
        ]

    def update_systems(self, dt: float):
        """Update all systems."""
        for system in self.systems:
            if not system.enabled:
                continue

            try:
                with profile_section(f"Sys:{type(system).__name__}"):
                    entities = self.query(*system.get_required_components())
                    system.update(entities, dt)
            except Exception as e:
                self.logger.error(f"System {type(system).__name__} update failed: {e}", exc_info=True)
