"""
Reconstruct object descriptors from a live scene graph.

Only node shapes the factory can produce are recognized; everything else
is logged and left out of the document.
"""
from typing import List, Optional
import logging

from .components.mesh import BOX, SPHERE
from .descriptors import (
    UNNAMED,
    AmbientLightDescriptor,
    BoxDescriptor,
    DirectionalLightDescriptor,
    ObjectDescriptor,
    SphereDescriptor,
)
from .document import SceneDocument
from .scene import SceneGraph
from .scene_object import NodeKind, SceneNode

logger = logging.getLogger(__name__)


def _vector(tensor) -> tuple:
    return tuple(float(v) for v in tensor.tolist())


def _extract_mesh(node: SceneNode) -> Optional[ObjectDescriptor]:
    mesh = node.mesh
    geometry_type = mesh.geometry_type if mesh is not None else None
    material = node.material

    if geometry_type not in (BOX, SPHERE) or material is None:
        logger.warning("Unsupported geometry for export",
                       extra={"node": node.name, "geometry": geometry_type})
        return None

    transform = node.transform
    common = dict(
        name=node.name or UNNAMED,
        color=material.get_hex(),
        position=_vector(transform.position),
        rotation=_vector(transform.rotation),
        scale=_vector(transform.scale),
    )
    params = mesh.parameters
    if geometry_type == BOX:
        return BoxDescriptor(width=params.get("width", 1.0),
                             height=params.get("height", 1.0),
                             depth=params.get("depth", 1.0),
                             **common)
    return SphereDescriptor(radius=params.get("radius", 1.0), **common)


def extract_object(node: SceneNode) -> Optional[ObjectDescriptor]:
    """Descriptor for a single node, or None if the node cannot be persisted."""
    if node.kind == NodeKind.MESH:
        return _extract_mesh(node)

    if node.kind == NodeKind.AMBIENT_LIGHT and node.light is not None:
        return AmbientLightDescriptor(name=node.name or UNNAMED,
                                      color=node.light.get_hex(),
                                      intensity=float(node.light.intensity))

    if node.kind == NodeKind.DIRECTIONAL_LIGHT and node.light is not None:
        return DirectionalLightDescriptor(name=node.name or UNNAMED,
                                          color=node.light.get_hex(),
                                          intensity=float(node.light.intensity),
                                          position=_vector(node.transform.position))

    logger.warning("Unsupported object type for export",
                   extra={"node": node.name, "kind": node.kind.value})
    return None


def extract_scene(graph: SceneGraph) -> SceneDocument:
    """Build a scene document from the direct children of the graph root."""
    objects: List[ObjectDescriptor] = []
    for child in graph.children:
        descriptor = extract_object(child)
        if descriptor is not None:
            objects.append(descriptor)
    return SceneDocument(background=graph.background, objects=objects)
