"""
Engine: owns the renderer, scene graph, camera, staging buffer and picker.
"""
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import asyncio
import logging

from .camera import CameraHolder, PerspectiveCamera
from .config import EngineConfig
from .descriptors import AmbientLightDescriptor, DirectionalLightDescriptor, ObjectDescriptor
from .document import FileDelivery, SceneDocument
from .extractor import extract_scene
from .factory import ObjectFactory
from .picking import PickResolver
from .renderer import Renderer, RenderBackend
from .scene import Scene, SceneGraph
from .scene_object import SceneNode

logger = logging.getLogger(__name__)

ObjectData = Union[ObjectDescriptor, Dict[str, Any]]


class World:
    """Named descriptors staged for the next batch build, in insertion order."""

    def __init__(self):
        self.objects: Dict[str, ObjectData] = {}

    def add_object(self, name: str, data: ObjectData):
        self.objects[name] = data

    def clear(self):
        self.objects = {}

    def items(self) -> Iterator[Tuple[str, ObjectData]]:
        return iter(list(self.objects.items()))

    def __len__(self):
        return len(self.objects)

    def __contains__(self, name: str):
        return name in self.objects


class Engine:
    """Scene authoring context around a render backend."""

    def __init__(self, config: Optional[EngineConfig] = None, backend: Optional[RenderBackend] = None):
        self.config = config or EngineConfig()
        renderer_config = self.config.renderer
        camera_config = self.config.camera

        self.renderer = Renderer(backend,
                                 device_pixel_ratio=renderer_config.device_pixel_ratio,
                                 max_pixel_ratio=renderer_config.max_pixel_ratio,
                                 shadow_map_enabled=renderer_config.shadow_map_enabled,
                                 shadow_map_type=renderer_config.shadow_map_type)
        self.scene_manager = SceneGraph(Scene(background=self.config.background))
        self.camera_manager = CameraHolder(fov=camera_config.fov,
                                           near=camera_config.near,
                                           far=camera_config.far,
                                           position=camera_config.position,
                                           target=camera_config.target)
        self.world = World()
        self.picker = PickResolver()

        self.scene_manager.on('resources_disposed', self._on_resources_disposed)

        self._running = False
        self._task: Optional[asyncio.Task] = None

        self.on_window_resize(renderer_config.width, renderer_config.height)
        self.add_lighting()

    def _on_resources_disposed(self, graph: SceneGraph, resource_ids: List[str]):
        self.renderer.release(resource_ids)

    # Scene and camera

    @property
    def scene(self) -> Scene:
        return self.scene_manager.scene

    @property
    def camera(self) -> PerspectiveCamera:
        return self.camera_manager.camera

    @property
    def selected_object(self) -> Optional[SceneNode]:
        return self.picker.selected

    def set_scene(self, scene: Scene):
        self.scene_manager.set_scene(scene)
        self.picker.clear()

    def set_camera(self, camera: PerspectiveCamera):
        self.camera_manager.set_camera(camera)
        self.camera_manager.set_aspect(self.renderer.width, self.renderer.height)

    def add_lighting(self) -> List[SceneNode]:
        """Add the default ambient and shadow-casting directional lights."""
        lighting = self.config.lighting
        lights = [
            ObjectFactory.build(AmbientLightDescriptor(color=lighting.ambient_color,
                                                       intensity=lighting.ambient_intensity)),
            ObjectFactory.build(DirectionalLightDescriptor(color=lighting.directional_color,
                                                           intensity=lighting.directional_intensity,
                                                           position=tuple(lighting.directional_position))),
        ]
        self.scene_manager.add(*lights)
        return lights

    def on_window_resize(self, width: int, height: int) -> bool:
        """Match camera aspect and drawing surface to the viewport.

        Returns False when the size is unchanged.
        """
        self.camera_manager.set_aspect(width, height)
        return self.renderer.set_size(width, height)

    # Render loop

    @property
    def running(self) -> bool:
        return self._running

    def tick(self):
        """Render one frame."""
        return self.renderer.render(self.scene_manager.scene, self.camera_manager.camera)

    async def run(self, fps: Optional[float] = None):
        """Render at ``fps`` frames per second until ``stop()``."""
        fps = fps or self.config.renderer.fps
        interval = 1.0 / fps
        self._running = True
        logger.info("Render loop started", extra={"fps": fps})
        try:
            while self._running:
                self.tick()
                await asyncio.sleep(interval)
        finally:
            self._running = False
            logger.info("Render loop stopped")

    def start(self, fps: Optional[float] = None) -> asyncio.Task:
        """Schedule the render loop on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(fps))
        return self._task

    async def stop(self):
        self._running = False
        if self._task is not None:
            await self._task
            self._task = None

    # Staging and building

    def add_object(self, name: str, data: ObjectData):
        """Stage a descriptor under ``name`` for the next batch build."""
        self.world.add_object(name, data)

    def create_object_from_data(self, data: ObjectData) -> Optional[SceneNode]:
        return ObjectFactory.build(data)

    def load_scene_from_data(self) -> List[SceneNode]:
        """Build every staged descriptor and add the results to the scene.

        A failing entry is logged and skipped; the rest of the batch continues.
        """
        added = []
        for name, data in self.world.items():
            try:
                node = self.create_object_from_data(data)
            except (ValueError, TypeError) as e:
                logger.error(f"Failed to load object {name}: {e}", extra={"object": name})
                continue
            if node is not None:
                self.scene_manager.add(node)
                added.append(node)
        logger.info("Staged objects loaded", extra={"added": len(added), "staged": len(self.world)})
        return added

    # Picking

    def on_scene_click(self, client_x: float, client_y: float) -> Optional[SceneNode]:
        """Select the object under a pointer position in viewport pixels."""
        return self.picker.pick((client_x, client_y),
                                (self.renderer.width, self.renderer.height),
                                self.camera_manager.camera,
                                self.scene_manager)

    # Clearing and persistence

    def clear_scene(self) -> List[SceneNode]:
        """Remove everything but the lights, empty the staging buffer and selection."""
        removed = self.scene_manager.clear()
        self.world.clear()
        self.picker.clear()
        logger.info("Scene cleared", extra={"removed": len(removed)})
        return removed

    def export_scene(self) -> SceneDocument:
        return extract_scene(self.scene_manager)

    def save_scene_to_json(self, delivery: Optional[FileDelivery] = None,
                           filename: Optional[str] = None) -> str:
        """Serialize the scene; hand the text to ``delivery`` when given."""
        text = self.export_scene().to_json(indent=2)
        if delivery is not None:
            delivery.deliver(text, filename or self.config.export_filename)
        return text

    def load_scene_from_json(self, text: str) -> List[SceneNode]:
        """Replace the scene with the contents of a JSON scene document.

        The document is parsed and every object built before the current
        scene is touched, so a malformed document leaves it unchanged.
        """
        return self.load_scene(SceneDocument.from_json(text))

    def load_scene(self, document: SceneDocument) -> List[SceneNode]:
        nodes = [node for node in (ObjectFactory.build(obj) for obj in document.objects)
                 if node is not None]

        self.scene_manager.dispose()
        self.scene_manager.set_scene(Scene(background=document.background))
        self.picker.clear()
        self.add_lighting()
        self.scene_manager.add(*nodes)
        logger.info("Scene imported", extra={"objects": len(nodes), "background": document.background})
        return nodes

    def dispose(self):
        """Stop rendering and release every held resource."""
        self._running = False
        self.renderer.dispose()
        self.scene_manager.dispose()
