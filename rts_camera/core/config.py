# rts_camera/core/config.py

import json
import math
from dataclasses import dataclass, asdict, fields, replace as dataclass_replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
from rts_camera.core.logging import get_logger
from rts_camera.utils.math import lerp

logger = get_logger()

ZoomCurve = Union[str, Callable[[float], float]]


class ConfigError(ValueError):
    """Raised when a camera configuration is inconsistent."""


@dataclass(frozen=True)
class CameraConfig:
    """
    Per-camera tuning. Read-only during updates; use replace() to derive a new one.

    Speeds are per second. Smoothness values are exponential decay rates
    (higher = snappier), 0 disables smoothing for that axis.
    """

    # Pan
    pan_speed: float = 15.0
    edge_pan_margin: float = 0.05   # fraction of viewport height, 0 disables
    edge_pan_speed: float = 15.0
    pan_scale_zoomed_in: float = 0.5
    pan_scale_zoomed_out: float = 1.0
    grab_sensitivity: float = 1.0

    # Zoom
    zoom_speed: float = 1.0
    min_zoom: float = 0.0
    max_zoom: float = 1.0
    min_distance: float = 5.0
    max_distance: float = 40.0
    zoom_curve: ZoomCurve = "linear"

    # Rotation / tilt (radians)
    rotate_speed: float = 1.0
    pitch_speed: float = 1.0
    min_angle: float = math.radians(30.0)
    max_angle: float = math.radians(80.0)
    default_pitch: float = math.radians(60.0)

    # Ground following
    height_offset: float = 0.0
    default_height: float = 0.0

    # Smoothing rates
    smoothness_pan: float = 8.0
    smoothness_zoom: float = 8.0
    smoothness_rotate: float = 8.0
    smoothness_height: float = 8.0

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Reject ranges that would break the per-frame math."""
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == 'zoom_curve':
                continue
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigError(f"{f.name} must be a finite number, got {value!r}")

        for name in ('pan_speed', 'edge_pan_speed', 'zoom_speed', 'rotate_speed', 'pitch_speed',
                     'grab_sensitivity', 'pan_scale_zoomed_in', 'pan_scale_zoomed_out',
                     'smoothness_pan', 'smoothness_zoom', 'smoothness_rotate', 'smoothness_height'):
            if getattr(self, name) < 0.0:
                raise ConfigError(f"{name} must not be negative")

        if not 0.0 <= self.edge_pan_margin <= 0.5:
            raise ConfigError("edge_pan_margin must be within [0, 0.5]")
        if self.min_zoom >= self.max_zoom:
            raise ConfigError(f"min_zoom ({self.min_zoom}) must be below max_zoom ({self.max_zoom})")
        if self.min_distance <= 0.0:
            raise ConfigError("min_distance must be positive")
        if self.min_distance >= self.max_distance:
            raise ConfigError(f"min_distance ({self.min_distance}) must be below max_distance ({self.max_distance})")
        if not 0.0 <= self.min_angle <= self.max_angle <= math.pi / 2:
            raise ConfigError("pitch limits must satisfy 0 <= min_angle <= max_angle <= pi/2")
        if not self.min_angle <= self.default_pitch <= self.max_angle:
            raise ConfigError("default_pitch must lie within [min_angle, max_angle]")

        if isinstance(self.zoom_curve, str):
            from rts_camera.camera.pose import ZOOM_CURVES
            if self.zoom_curve not in ZOOM_CURVES:
                raise ConfigError(f"Unknown zoom curve '{self.zoom_curve}' (expected one of {sorted(ZOOM_CURVES)})")
        elif not callable(self.zoom_curve):
            raise ConfigError("zoom_curve must be a curve name or a callable")

    def replace(self, **changes) -> 'CameraConfig':
        """Return a validated copy with some fields changed."""
        return dataclass_replace(self, **changes)

    def normalized_zoom(self, zoom: float) -> float:
        """Map zoom onto [0, 1] (0 = fully zoomed in)."""
        t = (zoom - self.min_zoom) / (self.max_zoom - self.min_zoom)
        return min(max(t, 0.0), 1.0)

    def pan_scale(self, zoom: float) -> float:
        """Pan speed multiplier at this zoom level."""
        t = self.normalized_zoom(zoom)
        return lerp(self.pan_scale_zoomed_in, self.pan_scale_zoomed_out, t)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CameraConfig':
        """Build from a plain dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown camera settings: {', '.join(sorted(unknown))}")
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class ControlBindings:
    """
    Built-in control bindings.
    Names follow the host's button naming ('arrow_up', 'q', 'mouse2', ...).
    """

    key_up: str = "arrow_up"
    key_down: str = "arrow_down"
    key_left: str = "arrow_left"
    key_right: str = "arrow_right"
    key_rotate_left: str = "q"
    key_rotate_right: str = "e"
    button_rotate: str = "mouse2"
    button_grab: Optional[str] = None
    key_rotate_speed: float = 1.5   # rad/s
    zoom_sensitivity: float = 1.0
    # Hide and lock the cursor while the button is held (host backends that support it)
    lock_cursor_on_grab: bool = False
    lock_cursor_on_rotate: bool = False

    def __post_init__(self):
        if self.key_rotate_speed < 0.0 or self.zoom_sensitivity < 0.0:
            raise ConfigError("key_rotate_speed and zoom_sensitivity must not be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ControlBindings':
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class Config:
    """
    Settings file management.
    Loads camera/control settings from JSON, merged over defaults.
    """

    def __init__(self, config_path: str = "camera.json", create_if_missing: bool = False):
        self.config_path = Path(config_path)
        self.create_if_missing = create_if_missing
        self.data: Dict[str, Any] = {}

        camera_defaults = asdict(CameraConfig())
        self.defaults = {
            'camera': camera_defaults,
            'controls': asdict(ControlBindings()),
            'logging': {
                'level': 'INFO',
                'dir': None,
            },
        }

        self.load()

    def load(self):
        """Load configuration from file."""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    loaded_data = json.load(f)

                # Loaded values override defaults
                self.data = self._deep_merge(self.defaults, loaded_data)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load configuration from {self.config_path}: {e}")
                self.data = self._deep_merge(self.defaults, {})
        else:
            self.data = self._deep_merge(self.defaults, {})
            if self.create_if_missing:
                logger.info(f"Configuration file not found, using defaults and creating {self.config_path}")
                self.save()
            else:
                logger.debug(f"Configuration file {self.config_path} not found, using defaults")

    def save(self):
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
            logger.info(f"Saved configuration to {self.config_path}")
        except OSError as e:
            logger.error(f"Failed to save configuration to {self.config_path}: {e}")

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get configuration value by path.
        Example: config.get('camera.pan_speed')
        """
        keys = path.split('.')
        value = self.data

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, path: str, value: Any):
        """
        Set configuration value by path.
        Example: config.set('camera.smoothness_pan', 12.0)
        """
        keys = path.split('.')
        data = self.data

        for key in keys[:-1]:
            if key not in data:
                data[key] = {}
            data = data[key]

        data[keys[-1]] = value

    def camera_config(self) -> CameraConfig:
        """Validated camera config from the 'camera' section."""
        return CameraConfig.from_dict(self.data.get('camera', {}))

    def bindings(self) -> ControlBindings:
        """Control bindings from the 'controls' section."""
        return ControlBindings.from_dict(self.data.get('controls', {}))

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Recursively merge override dict into a copy of base."""
        result = {key: (self._deep_merge(value, {}) if isinstance(value, dict) else value)
                  for key, value in base.items()}

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
