"""
SceneCraft package.

This package provides a declarative object model for 3D scenes, its
translation to and from scene-graph nodes, JSON scene persistence,
pointer picking, and an HTTP/WebSocket server around the engine.
"""

from .scene_object import SceneNode, NodeKind
from .scene import Scene, SceneGraph
from .descriptors import (
    ObjectDescriptor,
    BoxDescriptor,
    SphereDescriptor,
    AmbientLightDescriptor,
    DirectionalLightDescriptor,
    descriptor_from_dict,
)
from .factory import ObjectFactory
from .extractor import extract_scene, extract_object
from .document import SceneDocument, SceneDocumentError, FileDelivery, DirectoryDelivery
from .camera import PerspectiveCamera, CameraHolder
from .picking import PickResolver
from .renderer import Renderer, RenderBackend, HeadlessBackend
from .config import EngineConfig
from .engine import Engine, World
from .messages import MessageHandler
from .server import Server

__all__ = [
    'SceneNode',
    'NodeKind',
    'Scene',
    'SceneGraph',
    'ObjectDescriptor',
    'BoxDescriptor',
    'SphereDescriptor',
    'AmbientLightDescriptor',
    'DirectionalLightDescriptor',
    'descriptor_from_dict',
    'ObjectFactory',
    'extract_scene',
    'extract_object',
    'SceneDocument',
    'SceneDocumentError',
    'FileDelivery',
    'DirectoryDelivery',
    'PerspectiveCamera',
    'CameraHolder',
    'PickResolver',
    'Renderer',
    'RenderBackend',
    'HeadlessBackend',
    'EngineConfig',
    'Engine',
    'World',
    'Server',
    'MessageHandler',
]
