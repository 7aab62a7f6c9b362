# rts_camera/ecs/entity.py

from typing import Dict, Optional, Type, TypeVar
from rts_camera.ecs.component import Component

C = TypeVar('C', bound=Component)


class Entity:
    """
    An entity is just an ID with attached components.
    No logic lives here.
    """

    _next_id = 0

    def __init__(self, name: Optional[str] = None):
        self.id = Entity._next_id
        Entity._next_id += 1
        self.name = name or f"Entity_{self.id}"
        self.components: Dict[Type[Component], Component] = {}
        self.active = True
        # Cleared by World.destroy_entity; holders of a reference check this
        self.alive = True

    def add_component(self, component: C) -> C:
        """Attach a component."""
        self.components[type(component)] = component
        component.entity = self
        return component

    def get_component(self, component_type: Type[C]) -> Optional[C]:
        """Retrieve a component by type."""
        return self.components.get(component_type)

    def has_component(self, component_type: Type[Component]) -> bool:
        """Check if entity has a component."""
        return component_type in self.components

    def remove_component(self, component_type: Type[Component]):
        """Remove a component."""
        component = self.components.pop(component_type, None)
        if component is not None:
            component.entity = None

    def __repr__(self) -> str:
        return f"Entity({self.id}, {self.name!r})"
