"""
Pointer picking: cast a ray from the camera through a viewport pixel and
select the nearest mesh it hits.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
import logging
import torch

from .camera import PerspectiveCamera
from .scene import SceneGraph
from .scene_object import SceneNode

logger = logging.getLogger(__name__)

EPSILON = 1e-12


@dataclass
class Ray:
    origin: torch.Tensor
    direction: torch.Tensor


@dataclass
class Intersection:
    distance: float
    point: torch.Tensor
    node: SceneNode
    face_index: int


def normalize_pointer(pointer: Sequence[float], viewport_size: Sequence[float]) -> Tuple[float, float]:
    """Convert pixel coordinates to normalized device coordinates in [-1, 1]."""
    width, height = viewport_size
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid viewport size: {width}x{height}")
    x = (pointer[0] / width) * 2 - 1
    y = -(pointer[1] / height) * 2 + 1
    return x, y


def ray_from_camera(ndc: Tuple[float, float], camera: PerspectiveCamera) -> Ray:
    origin = camera.position.double()
    target = camera.unproject((ndc[0], ndc[1], 0.5))
    direction = target - origin
    return Ray(origin=origin, direction=direction / torch.linalg.norm(direction))


def ray_triangle_distances(ray: Ray, triangles: torch.Tensor) -> torch.Tensor:
    """Möller-Trumbore against (M, 3, 3) triangles, both faces.

    Returns the hit distance per triangle, ``inf`` where the ray misses.
    """
    v0, v1, v2 = torch.unbind(triangles, -2)
    e1 = v1 - v0
    e2 = v2 - v0
    d = ray.direction.expand_as(e1)
    pvec = torch.linalg.cross(d, e2, dim=-1)
    det = (e1 * pvec).sum(-1)
    inv_det = 1.0 / torch.where(det.abs() > EPSILON, det, torch.ones_like(det))
    s = ray.origin - v0
    u = (s * pvec).sum(-1) * inv_det
    qvec = torch.linalg.cross(s, e1, dim=-1)
    v = (d * qvec).sum(-1) * inv_det
    t = (e2 * qvec).sum(-1) * inv_det
    hit = (det.abs() > EPSILON) & (u >= 0) & (v >= 0) & (u + v <= 1) & (t >= 0)
    return torch.where(hit, t, torch.full_like(t, float('inf')))


def intersect_node(ray: Ray, node: SceneNode) -> Optional[Intersection]:
    mesh = node.mesh
    if mesh is None or mesh.faces.numel() == 0:
        return None

    world = node.get_world_matrix()
    vertices = mesh.vertices.double()
    vertices = vertices @ world[:3, :3].T + world[:3, 3]
    triangles = vertices[mesh.faces]

    distances = ray_triangle_distances(ray, triangles)
    distance, face = torch.min(distances, dim=0)
    if torch.isinf(distance):
        return None
    return Intersection(distance=float(distance),
                        point=ray.origin + ray.direction * distance,
                        node=node,
                        face_index=int(face))


def intersect_objects(ray: Ray, nodes: Iterable[SceneNode]) -> List[Intersection]:
    """All hits against ``nodes`` and their descendants, nearest first."""
    hits = []
    for root in nodes:
        for node in root.traverse():
            hit = intersect_node(ray, node)
            if hit is not None:
                hits.append(hit)
    hits.sort(key=lambda h: h.distance)
    return hits


class PickResolver:
    """Tracks the node selected by the last pointer click."""

    def __init__(self):
        self.selected: Optional[SceneNode] = None
        self._subscribers: List[Callable[[Optional[SceneNode]], None]] = []

    def subscribe(self, callback: Callable[[Optional[SceneNode]], None]):
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Optional[SceneNode]], None]):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _select(self, node: Optional[SceneNode]):
        if node is self.selected:
            return
        self.selected = node
        for callback in list(self._subscribers):
            try:
                callback(node)
            except Exception:
                logger.exception("Error in selection callback")

    def clear(self):
        self._select(None)

    def pick(self,
             pointer: Sequence[float],
             viewport_size: Sequence[float],
             camera: PerspectiveCamera,
             graph: SceneGraph) -> Optional[SceneNode]:
        """Select the nearest node under ``pointer``; None clears the selection."""
        ndc = normalize_pointer(pointer, viewport_size)
        ray = ray_from_camera(ndc, camera)
        hits = intersect_objects(ray, graph.children)

        node = hits[0].node if hits else None
        self._select(node)
        if node is not None:
            logger.info("Selected object", extra={"node": node.name, "distance": hits[0].distance})
        return node
