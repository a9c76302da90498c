"""
Scene graph holding the root scene node and its background.
"""
from typing import Callable, Dict, Iterator, List, Optional
import logging

from .colors import to_hex_int
from .scene_object import SceneNode, NodeKind

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND = 0x87CEEB  # Sky blue


class Scene(SceneNode):
    """Root node of a scene graph."""

    def __init__(self, background: int = DEFAULT_BACKGROUND, name: str = "Scene"):
        super().__init__(kind=NodeKind.GROUP, name=name)
        self.background = to_hex_int(background)


class SceneGraph:
    """Owns the active scene and every node in it."""

    def __init__(self, scene: Optional[Scene] = None):
        self.scene = scene if scene is not None else Scene()
        self._callbacks: Dict[str, List[Callable]] = {
            'node_added': [],
            'node_removed': [],
            'node_updated': [],
            'scene_replaced': [],
            'resources_disposed': [],
        }
        self._set_graph(self.scene, self)

    def on(self, event: str, callback: Callable) -> None:
        """Register a callback for a scene event."""
        if event in self._callbacks:
            self._callbacks[event].append(callback)

    def off(self, event: str, callback: Callable) -> None:
        """Unregister a callback for a scene event."""
        if event in self._callbacks and callback in self._callbacks[event]:
            self._callbacks[event].remove(callback)

    def _emit(self, event: str, **kwargs) -> None:
        """Emit an event to all registered callbacks."""
        for callback in self._callbacks.get(event, []):
            try:
                callback(self, **kwargs)
            except Exception:
                logger.exception("Error in callback", extra={"event": event})

    @staticmethod
    def _set_graph(node: SceneNode, graph: Optional["SceneGraph"]):
        for descendant in node.traverse():
            descendant.graph = graph

    @property
    def background(self) -> int:
        return self.scene.background

    @background.setter
    def background(self, value: int):
        self.scene.background = to_hex_int(value)

    @property
    def children(self) -> List[SceneNode]:
        """Direct children of the root, in order."""
        return list(self.scene.children)

    def set_scene(self, scene: Scene) -> None:
        """Replace the active scene. The previous scene is not disposed."""
        previous = self.scene
        self._set_graph(previous, None)
        self.scene = scene
        self._set_graph(scene, self)
        self._emit('scene_replaced', scene=scene, previous=previous)

    def add(self, *nodes: SceneNode) -> None:
        """Add nodes as direct children of the root."""
        for node in nodes:
            self.scene.add(node)
            self._set_graph(node, self)
            self._emit('node_added', node=node)

    def remove(self, *nodes: SceneNode) -> None:
        """Remove direct children of the root. Resources are kept."""
        for node in nodes:
            if node.parent is not self.scene:
                continue
            self.scene.remove(node)
            self._set_graph(node, None)
            self._emit('node_removed', node=node)

    def traverse(self) -> Iterator[SceneNode]:
        return self.scene.traverse()

    def find(self, node_id: str) -> Optional[SceneNode]:
        for node in self.traverse():
            if node.id == node_id:
                return node
        return None

    def find_by_name(self, name: str) -> Optional[SceneNode]:
        for node in self.traverse():
            if node.name == name:
                return node
        return None

    def dispose(self) -> List[str]:
        """Release geometry and material resources of every held node.

        The node structure is left untouched and repeated calls release
        nothing further.
        """
        released = []
        for node in self.traverse():
            released.extend(node.dispose_resources())
        if released:
            self._emit('resources_disposed', resource_ids=released)
        logger.info("Scene resources disposed", extra={"released": len(released)})
        return released

    def clear(self) -> List[SceneNode]:
        """Remove every direct child except lights, releasing their resources."""
        removed = [child for child in self.scene.children if not child.is_light]
        released = []
        for child in removed:
            self.remove(child)
            for node in child.traverse():
                released.extend(node.dispose_resources())
        if released:
            self._emit('resources_disposed', resource_ids=released)
        return removed
