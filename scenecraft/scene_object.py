"""
Scene graph node with dictionary-style component access.
"""
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional
import uuid
import torch

from .components import Component, ComponentRegistry, TransformComponent


class NodeKind(Enum):
    """Kind tag of a scene node."""
    GROUP = "group"
    MESH = "mesh"
    AMBIENT_LIGHT = "ambient_light"
    DIRECTIONAL_LIGHT = "directional_light"
    HELPER = "helper"


LIGHT_KINDS = (NodeKind.AMBIENT_LIGHT, NodeKind.DIRECTIONAL_LIGHT)


class SceneNode:
    """Renderable entity owned by a scene graph."""

    def __init__(self,
                 kind: NodeKind = NodeKind.GROUP,
                 name: str = "",
                 id: Optional[str] = None,
                 visible: bool = True):
        self.id = id or str(uuid.uuid4())
        self.kind = kind
        self._name = name
        self.visible = visible
        self.cast_shadow = False
        self.receive_shadow = False

        self.parent: Optional['SceneNode'] = None
        self.children: List['SceneNode'] = []
        self.graph = None  # Set when the node joins a SceneGraph

        self._components: Dict[str, Component] = {}
        self._attach("Transform", TransformComponent())

    def __repr__(self):
        return f"SceneNode(kind={self.kind.value}, name={self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str):
        """Set node name and notify the graph."""
        if self._name != value:
            self._name = value
            if self.graph is not None:
                self.graph._emit('node_updated', node=self, component_name=None, field_name='name')

    @property
    def is_light(self) -> bool:
        return self.kind in LIGHT_KINDS

    def _attach(self, component_name: str, comp: Component):
        comp._owner = self
        self._components[component_name] = comp

    def __getitem__(self, component_name: str) -> Optional[Component]:
        """Dictionary-style component access."""
        return self._components.get(component_name)

    def __setitem__(self, component_name: str, value: Any):
        """Dictionary-style component setting."""
        if isinstance(value, Component):
            self._attach(component_name, value)
        elif isinstance(value, dict):
            comp = ComponentRegistry.create_instance(component_name, **value)
            if comp is None:
                raise KeyError(f"Unknown component: {component_name}")
            self._attach(component_name, comp)
        else:
            raise TypeError(f"Expected Component instance, got {type(value)}")

    def __contains__(self, component_name: str) -> bool:
        return component_name in self._components

    def add_component(self, component_name: str, **kwargs) -> bool:
        """Add a registered component to the node."""
        if component_name in self._components:
            return False

        comp = ComponentRegistry.create_instance(component_name, **kwargs)
        if comp is None:
            return False
        self._attach(component_name, comp)
        return True

    def get_component(self, component_name: str) -> Optional[Component]:
        return self._components.get(component_name)

    def remove_component(self, component_name: str) -> bool:
        """Remove a component; the Transform is permanent."""
        if component_name == "Transform" or component_name not in self._components:
            return False
        self._components.pop(component_name)._owner = None
        return True

    def has_component(self, component_name: str) -> bool:
        return component_name in self._components

    @property
    def transform(self) -> TransformComponent:
        return self._components["Transform"]

    @property
    def mesh(self):
        return self._components.get("Mesh")

    @property
    def material(self):
        return self._components.get("Material")

    @property
    def light(self):
        return self._components.get("Light")

    # Hierarchy

    def add(self, *nodes: 'SceneNode'):
        """Append children, detaching them from any previous parent."""
        for node in nodes:
            if node is self:
                raise ValueError("A node cannot be its own child")
            if node.parent is not None:
                node.parent.remove(node)
            node.parent = self
            self.children.append(node)

    def remove(self, *nodes: 'SceneNode'):
        for node in nodes:
            if node in self.children:
                self.children.remove(node)
                node.parent = None

    def traverse(self) -> Iterator['SceneNode']:
        """Yield this node and all descendants, depth first."""
        yield self
        for child in list(self.children):
            yield from child.traverse()

    def get_world_matrix(self) -> torch.Tensor:
        """4x4 world matrix (float64)."""
        local = self.transform.get_transformation_matrix()
        if self.parent is None:
            return local
        return self.parent.get_world_matrix() @ local

    def dispose_resources(self) -> List[str]:
        """Release this node's geometry and material; returns released ids."""
        released = []
        if self.mesh is not None:
            released.extend(self.mesh.dispose())
        if self.material is not None:
            released.extend(self.material.dispose())
        return released

