"""
WebSocket message handling for engine control.
"""
from typing import Any, Dict, Optional
import logging

from .document import SceneDocument, SceneDocumentError
from .engine import Engine
from .scene_object import SceneNode

logger = logging.getLogger(__name__)


def node_summary(node: Optional[SceneNode]) -> Optional[Dict[str, Any]]:
    """Compact description of a node for clients."""
    if node is None:
        return None
    return {"id": node.id, "name": node.name, "kind": node.kind.value}


class MessageHandler:
    """Routes client messages to engine operations."""

    MESSAGE_TYPES = (
        'click',
        'resize',
        'import_scene',
        'export_scene',
        'clear_scene',
        'add_object',
        'load_objects',
    )

    def __init__(self, engine: Engine):
        self.engine = engine

    async def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        """Route message to appropriate handler.

        Returns the reply for the sender, or None for unknown message types.
        Invalid requests produce an ``error`` reply instead of raising.
        """
        if not isinstance(message, dict):
            logger.error("Message is not a JSON object", extra={"payload_type": type(message).__name__})
            return {"type": "error", "request": None, "error": "Message must be a JSON object"}

        message_type = message.get('type')
        if message_type not in self.MESSAGE_TYPES:
            logger.warning(f"Unknown message type: {message_type}")
            return None

        handler = getattr(self, f"handle_{message_type}")
        try:
            return await handler(message)
        except (SceneDocumentError, ValueError, TypeError, KeyError, OverflowError) as e:
            logger.error(f"Failed to handle {message_type}: {e}", extra={"type": message_type})
            return {"type": "error", "request": message_type, "error": str(e)}

    async def handle_click(self, data: Dict[str, Any]) -> Dict[str, Any]:
        node = self.engine.on_scene_click(float(data['x']), float(data['y']))
        return {"type": "selection", "object": node_summary(node)}

    async def handle_resize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        width, height = int(data['width']), int(data['height'])
        changed = self.engine.on_window_resize(width, height)
        return {"type": "resized", "width": width, "height": height, "changed": changed}

    async def handle_import_scene(self, data: Dict[str, Any]) -> Dict[str, Any]:
        scene = data.get('scene')
        if isinstance(scene, str):
            document = SceneDocument.from_json(scene)
        else:
            document = SceneDocument.from_dict(scene)
        nodes = self.engine.load_scene(document)
        return {"type": "scene_imported", "objects": len(nodes)}

    async def handle_export_scene(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {"type": "scene", "scene": self.engine.export_scene().to_dict()}

    async def handle_clear_scene(self, data: Dict[str, Any]) -> Dict[str, Any]:
        removed = self.engine.clear_scene()
        return {"type": "scene_cleared", "removed": len(removed)}

    async def handle_add_object(self, data: Dict[str, Any]) -> Dict[str, Any]:
        name = data['name']
        descriptor = data['object']
        if not isinstance(descriptor, dict):
            raise TypeError("'object' must be a JSON object")
        self.engine.add_object(name, descriptor)
        return {"type": "object_staged", "name": name, "staged": len(self.engine.world)}

    async def handle_load_objects(self, data: Dict[str, Any]) -> Dict[str, Any]:
        added = self.engine.load_scene_from_data()
        return {"type": "objects_loaded", "objects": [node_summary(node) for node in added]}
