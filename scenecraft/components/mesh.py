"""
Mesh component with vertex and face data.
"""
from typing import Dict, Any
import math
import uuid
import torch
import numpy as np
import trimesh
from .base import Component, component, field

BOX = 'box'
SPHERE = 'sphere'
CYLINDER = 'cylinder'
CUSTOM = 'custom'

SPHERE_SEGMENTS = 32


def _dimension(name: str, value: Any) -> float:
    """Validate a geometry dimension."""
    if isinstance(value, bool):
        raise TypeError(f"Invalid {name}: {value!r}")
    try:
        value = float(value)
    except OverflowError as e:
        raise ValueError(f"{name} out of range: {value!r}") from e
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Invalid {name}: {value!r}")
    return value


@component(name="Mesh")
class MeshComponent(Component):
    """Mesh component for geometry."""

    geometry_type = field(CUSTOM, description="Kind of geometry")
    visible = field(True, description="Whether the mesh is drawn")

    def __init__(self, **kwargs):
        """Initialize mesh component."""
        super().__init__(**kwargs)

        # Internal (non-field) data
        self.id = str(uuid.uuid4())
        self.vertices = torch.empty((0, 3), dtype=torch.float32)
        self.faces = torch.empty((0, 3), dtype=torch.long)
        self.parameters: Dict[str, float] = {}
        self.disposed = False

    def _set_trimesh(self, mesh: trimesh.Trimesh):
        self.vertices = torch.from_numpy(np.asarray(mesh.vertices, dtype=np.float32))
        self.faces = torch.from_numpy(np.asarray(mesh.faces, dtype=np.int64))

    def _create_box(self, width: float, height: float, depth: float):
        """Generate an axis-aligned box centered at the origin."""
        self.parameters = {
            "width": _dimension("width", width),
            "height": _dimension("height", height),
            "depth": _dimension("depth", depth),
        }
        self._set_trimesh(trimesh.creation.box(
            extents=[self.parameters["width"], self.parameters["height"], self.parameters["depth"]]))

    def _create_sphere(self, radius: float, width_segments: int = SPHERE_SEGMENTS,
                       height_segments: int = SPHERE_SEGMENTS):
        """Generate a UV sphere."""
        self.parameters = {
            "radius": _dimension("radius", radius),
            "width_segments": int(width_segments),
            "height_segments": int(height_segments),
        }
        self._set_trimesh(trimesh.creation.uv_sphere(
            radius=self.parameters["radius"], count=[height_segments, width_segments]))

    def _create_cylinder(self, radius: float, height: float, segments: int = 32):
        """Generate a cylinder along Y."""
        self.parameters = {
            "radius": _dimension("radius", radius),
            "height": _dimension("height", height),
            "segments": int(segments),
        }
        mesh = trimesh.creation.cylinder(radius=self.parameters["radius"],
                                         height=self.parameters["height"],
                                         sections=segments)
        # trimesh builds cylinders along Z
        mesh.apply_transform(trimesh.transformations.rotation_matrix(-math.pi / 2, [1, 0, 0]))
        self._set_trimesh(mesh)

    def dispose(self) -> list:
        """Release vertex and face buffers. Returns the released resource ids."""
        if self.disposed:
            return []
        self.vertices = torch.empty((0, 3), dtype=torch.float32)
        self.faces = torch.empty((0, 3), dtype=torch.long)
        self.disposed = True
        return [self.id]

    def get_mesh_data(self) -> Dict[str, Any]:
        """Get mesh data for rendering."""
        return {
            "vertices": self.vertices.numpy(),
            "faces": self.faces.numpy(),
            "type": self.geometry_type
        }

    @staticmethod
    def create_box(width: float = 1.0, height: float = 1.0, depth: float = 1.0) -> 'MeshComponent':
        """Create a box mesh component."""
        mesh = MeshComponent(geometry_type=BOX)
        mesh._create_box(width, height, depth)
        return mesh

    @staticmethod
    def create_sphere(radius: float = 1.0, width_segments: int = SPHERE_SEGMENTS,
                      height_segments: int = SPHERE_SEGMENTS) -> 'MeshComponent':
        """Create a sphere mesh component."""
        mesh = MeshComponent(geometry_type=SPHERE)
        mesh._create_sphere(radius, width_segments, height_segments)
        return mesh

    @staticmethod
    def create_cylinder(radius: float = 0.5, height: float = 1.0, segments: int = 32) -> 'MeshComponent':
        """Create a cylinder mesh component."""
        mesh = MeshComponent(geometry_type=CYLINDER)
        mesh._create_cylinder(radius, height, segments)
        return mesh
