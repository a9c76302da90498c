"""
Renderer adapter and the bundled headless render backend.
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import logging
import numpy as np
import trimesh

from .camera import PerspectiveCamera
from .colors import hex_to_rgb
from .scene import Scene
from .scene_object import NodeKind

logger = logging.getLogger(__name__)

SHADOW_MAP_PCF_SOFT = "pcf_soft"
DEFAULT_MAX_PIXEL_RATIO = 2.0


class RenderBackend(ABC):
    """Drawing context behind the renderer."""

    @abstractmethod
    def set_viewport_size(self, width: int, height: int, pixel_ratio: float):
        pass

    @abstractmethod
    def render_frame(self, scene: Scene, camera: PerspectiveCamera):
        pass

    @abstractmethod
    def release(self, resource_ids: Iterable[str]):
        """Drop any GPU-side data held for the given resource ids."""

    @abstractmethod
    def dispose_context(self):
        pass


@dataclass
class DrawCall:
    node_id: str
    name: str
    geometry_id: str
    geometry_type: str
    world_matrix: List[List[float]]
    color: int
    cast_shadow: bool
    receive_shadow: bool


@dataclass
class LightInfo:
    node_id: str
    name: str
    kind: str
    color: int
    intensity: float
    position: List[float]
    cast_shadow: bool


@dataclass
class Frame:
    index: int
    width: int
    height: int
    pixel_ratio: float
    background: int
    camera_position: List[float]
    draw_calls: List[DrawCall] = field(default_factory=list)
    lights: List[LightInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class HeadlessBackend(RenderBackend):
    """Backend that records draw calls instead of rasterizing them.

    Geometry is "uploaded" once per mesh id into a buffer cache, the same
    way a GPU backend would keep vertex buffers alive between frames.
    """

    def __init__(self):
        self.width = 0
        self.height = 0
        self.pixel_ratio = 1.0
        self.buffers: Dict[str, trimesh.Trimesh] = {}
        self.frames_rendered = 0
        self.last_frame: Optional[Frame] = None
        self.disposed = False

    def set_viewport_size(self, width: int, height: int, pixel_ratio: float):
        self.width = width
        self.height = height
        self.pixel_ratio = pixel_ratio

    def _upload(self, mesh) -> trimesh.Trimesh:
        buffer = self.buffers.get(mesh.id)
        if buffer is None:
            data = mesh.get_mesh_data()
            buffer = trimesh.Trimesh(vertices=data["vertices"], faces=data["faces"], process=False)
            self.buffers[mesh.id] = buffer
        return buffer

    def render_frame(self, scene: Scene, camera: PerspectiveCamera):
        frame = Frame(index=self.frames_rendered,
                      width=self.width,
                      height=self.height,
                      pixel_ratio=self.pixel_ratio,
                      background=scene.background,
                      camera_position=camera.position.tolist())

        for node in scene.traverse():
            if not node.visible:
                continue
            if node.is_light and node.light is not None:
                frame.lights.append(LightInfo(node_id=node.id,
                                              name=node.name,
                                              kind=node.kind.value,
                                              color=node.light.get_hex(),
                                              intensity=float(node.light.intensity),
                                              position=node.transform.position.tolist(),
                                              cast_shadow=node.cast_shadow))
                continue

            mesh = node.mesh
            if node.kind != NodeKind.MESH or mesh is None or mesh.disposed or not mesh.visible:
                continue
            self._upload(mesh)
            material = node.material
            frame.draw_calls.append(DrawCall(node_id=node.id,
                                             name=node.name,
                                             geometry_id=mesh.id,
                                             geometry_type=mesh.geometry_type,
                                             world_matrix=node.get_world_matrix().tolist(),
                                             color=material.get_hex() if material is not None else 0xFFFFFF,
                                             cast_shadow=node.cast_shadow,
                                             receive_shadow=node.receive_shadow))

        self.frames_rendered += 1
        self.last_frame = frame
        return frame

    def release(self, resource_ids: Iterable[str]):
        for resource_id in resource_ids:
            self.buffers.pop(resource_id, None)

    def dispose_context(self):
        self.buffers.clear()
        self.last_frame = None
        self.disposed = True

    def snapshot(self) -> trimesh.Scene:
        """Scene of the last frame's draw calls, exportable as glTF."""
        snapshot = trimesh.Scene()
        if self.last_frame is None:
            return snapshot
        for call in self.last_frame.draw_calls:
            buffer = self.buffers.get(call.geometry_id)
            if buffer is None:
                continue
            geometry = buffer.copy()
            rgba = np.append(hex_to_rgb(call.color).numpy() * 255, 255).astype(np.uint8)
            geometry.visual.face_colors = rgba
            snapshot.add_geometry(geometry,
                                  node_name=call.node_id,
                                  geom_name=call.name or call.node_id,
                                  transform=np.asarray(call.world_matrix))
        return snapshot


class Renderer:
    """Adapter over a render backend with shadow and pixel-ratio settings."""

    def __init__(self,
                 backend: Optional[RenderBackend] = None,
                 device_pixel_ratio: float = 1.0,
                 max_pixel_ratio: float = DEFAULT_MAX_PIXEL_RATIO,
                 shadow_map_enabled: bool = True,
                 shadow_map_type: str = SHADOW_MAP_PCF_SOFT):
        self.backend = backend if backend is not None else HeadlessBackend()
        self.pixel_ratio = min(device_pixel_ratio, max_pixel_ratio)
        self.shadow_map_enabled = shadow_map_enabled
        self.shadow_map_type = shadow_map_type
        self.width = 0
        self.height = 0
        self.disposed = False

    def set_size(self, width: int, height: int) -> bool:
        """Resize the drawing surface. Returns False when nothing changed."""
        if width < 0 or height < 0:
            raise ValueError(f"Invalid size: {width}x{height}")
        if (width, height) == (self.width, self.height):
            return False
        self.width = width
        self.height = height
        self.backend.set_viewport_size(width, height, self.pixel_ratio)
        return True

    def render(self, scene: Scene, camera: PerspectiveCamera):
        if self.disposed:
            raise RuntimeError("Renderer has been disposed")
        return self.backend.render_frame(scene, camera)

    def release(self, resource_ids: Iterable[str]):
        if not self.disposed:
            self.backend.release(resource_ids)

    def dispose(self):
        if self.disposed:
            return
        self.backend.dispose_context()
        self.disposed = True
        logger.info("Renderer disposed")
