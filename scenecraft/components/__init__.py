"""
Component system for SceneCraft.
"""
from .base import (
    Component,
    ComponentRegistry,
    component,
    field,
    ComponentFieldType,
    ComponentFieldMeta,
    ABCComponentMeta
)
from .transform import TransformComponent
from .material import MaterialComponent, Texture
from .mesh import MeshComponent
from .light import LightComponent

__all__ = [
    # Base classes
    'Component',
    'ComponentRegistry',
    'component',
    'field',
    'ComponentFieldType',
    'ComponentFieldMeta',
    'ABCComponentMeta',
    # Components
    'TransformComponent',
    'MaterialComponent',
    'Texture',
    'MeshComponent',
    'LightComponent',
]
