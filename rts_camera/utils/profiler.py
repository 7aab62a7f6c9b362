# rts_camera/utils/profiler.py

import time
from typing import Dict
from collections import defaultdict, deque
from rts_camera.core.logging import get_logger

logger = get_logger()


class Profiler:
    """
    Simple frame-stage profiler.
    Keeps the last 60 samples per section.
    """

    def __init__(self, max_samples: int = 60):
        self.max_samples = max_samples
        self.timings: Dict[str, deque] = defaultdict(lambda: deque(maxlen=self.max_samples))
        self.current_frames: Dict[str, float] = {}
        self.enabled = True

    def begin(self, section_name: str):
        """Start timing a section."""
        if not self.enabled:
            return
        self.current_frames[section_name] = time.perf_counter()

    def end(self, section_name: str):
        """End timing a section."""
        if not self.enabled or section_name not in self.current_frames:
            return

        elapsed = time.perf_counter() - self.current_frames.pop(section_name)
        self.timings[section_name].append(elapsed * 1000.0)  # ms

    def get_average(self, section_name: str) -> float:
        """Get average time for a section."""
        samples = self.timings.get(section_name)
        if not samples:
            return 0.0
        return sum(samples) / len(samples)

    def reset(self):
        self.timings.clear()
        self.current_frames.clear()

    def print_report(self):
        """Log a performance report."""
        report = "\n=== Camera Performance Report ===\n"
        for section, times in sorted(self.timings.items()):
            avg_time = self.get_average(section)
            max_time = max(times) if times else 0.0
            min_time = min(times) if times else 0.0

            report += f"{section:30s}: avg={avg_time:6.3f}ms  min={min_time:6.3f}ms  max={max_time:6.3f}ms\n"
        report += "=================================\n"
        logger.info(report)


# Global profiler instance
_profiler = Profiler()


def get_profiler() -> Profiler:
    return _profiler


def profile_section(name: str):
    """Context manager for profiling."""

    class ProfileContext:
        def __enter__(self):
            _profiler.begin(name)
            return self

        def __exit__(self, *args):
            _profiler.end(name)

    return ProfileContext()
