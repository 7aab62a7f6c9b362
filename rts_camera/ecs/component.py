# rts_camera/ecs/component.py

class Component:
    """
    Base class for all components.
    Components are data containers attached to one entity.
    """

    def __init__(self):
        self.entity = None  # Back-reference to owner
        self.enabled = True

    def on_destroy(self):
        """Called when the owning entity is destroyed."""
        pass
