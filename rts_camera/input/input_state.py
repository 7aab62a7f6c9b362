# rts_camera/input/input_state.py

from dataclasses import dataclass, field
from typing import Optional, Set, Tuple


@dataclass
class InputState:
    """
    Raw input snapshot for one frame, filled in by the host backend.
    Pointer coordinates are viewport pixels with a top-left origin.
    """

    keys: Set[str] = field(default_factory=set)
    buttons: Set[str] = field(default_factory=set)
    pointer_position: Optional[Tuple[float, float]] = None   # None when outside the window
    pointer_delta: Tuple[float, float] = (0.0, 0.0)
    scroll_lines: float = 0.0
    scroll_pixels: float = 0.0
    viewport_size: Tuple[float, float] = (1280.0, 720.0)

    def is_down(self, name: Optional[str]) -> bool:
        if name is None:
            return False
        return name in self.keys or name in self.buttons

    def scroll_amount(self) -> float:
        """Scroll in lines; pixel scrolling is scaled down to roughly match."""
        return self.scroll_lines + self.scroll_pixels * 0.001

    def end_frame(self):
        """Clear per-frame accumulators after the input has been consumed."""
        self.pointer_delta = (0.0, 0.0)
        self.scroll_lines = 0.0
        self.scroll_pixels = 0.0
