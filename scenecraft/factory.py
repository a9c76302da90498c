"""
Factory turning object descriptors into scene nodes.
"""
from typing import Any, Callable, Dict, Optional, Type, Union
import logging

from .components import MaterialComponent, MeshComponent, LightComponent
from .components.light import AMBIENT, DIRECTIONAL
from .descriptors import (
    DESCRIPTOR_TYPES,
    AmbientLightDescriptor,
    BoxDescriptor,
    DirectionalLightDescriptor,
    ObjectDescriptor,
    SphereDescriptor,
    descriptor_from_dict,
)
from .scene_object import NodeKind, SceneNode

logger = logging.getLogger(__name__)

# Order in which optional common properties are applied to meshes
COMMON_PROPERTY_ORDER = ("name", "position", "rotation", "scale")

# Default position of a directional light (pointing down from +Y)
DEFAULT_DIRECTIONAL_POSITION = (0.0, 1.0, 0.0)


class ObjectFactory:
    """Builds scene nodes from descriptors."""

    @staticmethod
    def build(data: Union[ObjectDescriptor, Dict[str, Any]]) -> Optional[SceneNode]:
        """Create the node described by ``data``.

        Args:
            data: A descriptor instance or its dictionary form

        Returns:
            The new node, or None for an unknown object type

        Raises:
            ValueError, TypeError: if the descriptor holds invalid values
        """
        descriptor = data if isinstance(data, ObjectDescriptor) else descriptor_from_dict(data)
        if descriptor is None:
            return None

        builder = _BUILDERS.get(type(descriptor))
        if builder is None:
            logger.warning(f"Unknown object type: {descriptor.type}")
            return None
        return builder(descriptor)

    @staticmethod
    def create_box(descriptor: BoxDescriptor) -> SceneNode:
        """Create a box mesh."""
        mesh = MeshComponent.create_box(descriptor.width, descriptor.height, descriptor.depth)
        return ObjectFactory._create_mesh(mesh, descriptor)

    @staticmethod
    def create_sphere(descriptor: SphereDescriptor) -> SceneNode:
        """Create a sphere mesh."""
        mesh = MeshComponent.create_sphere(descriptor.radius)
        return ObjectFactory._create_mesh(mesh, descriptor)

    @staticmethod
    def create_ambient_light(descriptor: AmbientLightDescriptor) -> SceneNode:
        """Create an ambient light. Only name, color and intensity apply."""
        node = SceneNode(kind=NodeKind.AMBIENT_LIGHT)
        node["Light"] = LightComponent(light_type=AMBIENT,
                                       color=descriptor.color,
                                       intensity=descriptor.intensity)
        if descriptor.name:
            node.name = descriptor.name
        return node

    @staticmethod
    def create_directional_light(descriptor: DirectionalLightDescriptor) -> SceneNode:
        """Create a shadow-casting directional light.

        The position is assigned directly; lights never take rotation or scale.
        """
        node = SceneNode(kind=NodeKind.DIRECTIONAL_LIGHT)
        node["Light"] = LightComponent(light_type=DIRECTIONAL,
                                       color=descriptor.color,
                                       intensity=descriptor.intensity,
                                       cast_shadows=True)
        if descriptor.name:
            node.name = descriptor.name
        node.transform.position = descriptor.position or DEFAULT_DIRECTIONAL_POSITION
        node.cast_shadow = True
        return node

    @staticmethod
    def _create_mesh(mesh: MeshComponent, descriptor: ObjectDescriptor) -> SceneNode:
        node = SceneNode(kind=NodeKind.MESH)
        node["Mesh"] = mesh
        node["Material"] = MaterialComponent(color=descriptor.color)
        node.cast_shadow = True
        node.receive_shadow = True
        ObjectFactory.apply_common_properties(node, descriptor)
        return node

    @staticmethod
    def apply_common_properties(node: SceneNode, descriptor: ObjectDescriptor):
        """Apply name, position, rotation and scale, in that order, when present."""
        for prop in COMMON_PROPERTY_ORDER:
            value = getattr(descriptor, prop, None)
            if not value:
                continue
            if prop == "name":
                node.name = value
            else:
                setattr(node.transform, prop, value)


_BUILDERS: Dict[Type[ObjectDescriptor], Callable[[Any], SceneNode]] = {
    BoxDescriptor: ObjectFactory.create_box,
    SphereDescriptor: ObjectFactory.create_sphere,
    AmbientLightDescriptor: ObjectFactory.create_ambient_light,
    DirectionalLightDescriptor: ObjectFactory.create_directional_light,
}

_unhandled = set(DESCRIPTOR_TYPES.values()) - set(_BUILDERS)
if _unhandled:
    raise ImportError(f"No builder for descriptor types: {sorted(cls.__name__ for cls in _unhandled)}")
