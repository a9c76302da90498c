"""
Engine and server configuration.
"""
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import json

from .camera import DEFAULT_FAR, DEFAULT_FOV, DEFAULT_NEAR, DEFAULT_POSITION, DEFAULT_TARGET
from .colors import to_hex_int
from .document import DEFAULT_FILENAME
from .renderer import DEFAULT_MAX_PIXEL_RATIO, SHADOW_MAP_PCF_SOFT
from .scene import DEFAULT_BACKGROUND


def _from_dict(cls, data: Optional[Dict[str, Any]]):
    """Build a config dataclass, ignoring unknown keys."""
    data = data or {}
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class CameraConfig:
    """Initial perspective camera."""
    fov: float = DEFAULT_FOV
    near: float = DEFAULT_NEAR
    far: float = DEFAULT_FAR
    position: Tuple[float, float, float] = DEFAULT_POSITION
    target: Tuple[float, float, float] = DEFAULT_TARGET

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'CameraConfig':
        return _from_dict(cls, data)


@dataclass
class RendererConfig:
    """Drawing surface and render loop settings."""
    width: int = 800
    height: int = 600
    device_pixel_ratio: float = 1.0
    max_pixel_ratio: float = DEFAULT_MAX_PIXEL_RATIO
    shadow_map_enabled: bool = True
    shadow_map_type: str = SHADOW_MAP_PCF_SOFT
    fps: float = 60.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'RendererConfig':
        return _from_dict(cls, data)


@dataclass
class LightingConfig:
    """Default lights added to every fresh scene."""
    ambient_color: int = 0xFFFFFF
    ambient_intensity: float = 0.5
    directional_color: int = 0xFFFFFF
    directional_intensity: float = 1.0
    directional_position: Tuple[float, float, float] = (5.0, 5.0, 5.0)

    def __post_init__(self):
        self.ambient_color = to_hex_int(self.ambient_color)
        self.directional_color = to_hex_int(self.directional_color)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'LightingConfig':
        return _from_dict(cls, data)


@dataclass
class ServerConfig:
    """HTTP/WebSocket server settings."""
    host: str = "0.0.0.0"
    port: int = 8000
    verbose: bool = False
    save_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ServerConfig':
        return _from_dict(cls, data)


@dataclass
class EngineConfig:
    """Top-level configuration."""
    background: int = DEFAULT_BACKGROUND
    export_filename: str = DEFAULT_FILENAME
    camera: CameraConfig = field(default_factory=CameraConfig)
    renderer: RendererConfig = field(default_factory=RendererConfig)
    lighting: LightingConfig = field(default_factory=LightingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def __post_init__(self):
        self.background = to_hex_int(self.background)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'EngineConfig':
        data = dict(data or {})
        return cls(
            background=data.get("background", DEFAULT_BACKGROUND),
            export_filename=data.get("export_filename", DEFAULT_FILENAME),
            camera=CameraConfig.from_dict(data.get("camera")),
            renderer=RendererConfig.from_dict(data.get("renderer")),
            lighting=LightingConfig.from_dict(data.get("lighting")),
            server=ServerConfig.from_dict(data.get("server")),
        )

    @classmethod
    def load(cls, path) -> 'EngineConfig':
        """Load configuration from a JSON file."""
        with open(Path(path), 'r') as f:
            return cls.from_dict(json.load(f))
