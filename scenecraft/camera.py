"""
Perspective camera and the holder that owns the active camera.
"""
from typing import Optional, Sequence
import math
import torch

from .components import TransformComponent

DEFAULT_FOV = 75.0
DEFAULT_NEAR = 0.1
DEFAULT_FAR = 1000.0
DEFAULT_POSITION = (3.0, 3.0, 5.0)
DEFAULT_TARGET = (0.0, 0.0, 0.0)


class PerspectiveCamera:
    """Pinhole camera looking down its local -Z axis."""

    def __init__(self,
                 fov: float = DEFAULT_FOV,
                 aspect: float = 1.0,
                 near: float = DEFAULT_NEAR,
                 far: float = DEFAULT_FAR):
        if not 0 < fov < 180:
            raise ValueError(f"Invalid field of view: {fov}")
        if not 0 < near < far:
            raise ValueError(f"Invalid clipping planes: near={near}, far={far}")
        self.fov = float(fov)
        self.aspect = float(aspect)
        self.near = float(near)
        self.far = float(far)
        self.transform = TransformComponent()
        self.projection_matrix = torch.eye(4, dtype=torch.float64)
        self.update_projection_matrix()

    @property
    def position(self) -> torch.Tensor:
        return self.transform.position

    @position.setter
    def position(self, value: Sequence[float]):
        self.transform.position = value

    def look_at(self, target: Sequence[float]):
        self.transform.look_at(target)

    def update_projection_matrix(self):
        """Recompute the OpenGL-style projection from fov, aspect and clip planes."""
        top = self.near * math.tan(math.radians(self.fov) / 2)
        height = 2 * top
        width = self.aspect * height
        left = -width / 2

        x = 2 * self.near / width
        y = 2 * self.near / height
        a = (2 * left + width) / width
        b = (2 * top - height) / height
        c = -(self.far + self.near) / (self.far - self.near)
        d = -2 * self.far * self.near / (self.far - self.near)

        self.projection_matrix = torch.tensor([
            [x, 0, a, 0],
            [0, y, b, 0],
            [0, 0, c, d],
            [0, 0, -1, 0],
        ], dtype=torch.float64)

    def get_world_matrix(self) -> torch.Tensor:
        return self.transform.get_transformation_matrix()

    def unproject(self, ndc: Sequence[float]) -> torch.Tensor:
        """Map a normalized device coordinate to a world-space point."""
        point = torch.tensor([ndc[0], ndc[1], ndc[2], 1.0], dtype=torch.float64)
        view = torch.linalg.inv(self.projection_matrix) @ point
        world = self.get_world_matrix() @ (view / view[3])
        return world[:3]


class CameraHolder:
    """Owns the active camera and keeps its aspect in sync with the viewport."""

    def __init__(self,
                 fov: float = DEFAULT_FOV,
                 near: float = DEFAULT_NEAR,
                 far: float = DEFAULT_FAR,
                 position: Sequence[float] = DEFAULT_POSITION,
                 target: Sequence[float] = DEFAULT_TARGET,
                 aspect: float = 1.0):
        camera = PerspectiveCamera(fov=fov, aspect=aspect, near=near, far=far)
        camera.position = position
        camera.look_at(target)
        self.camera = camera

    def set_camera(self, camera: PerspectiveCamera):
        self.camera = camera

    def set_aspect(self, width: int, height: int) -> Optional[float]:
        """Update the camera aspect; ignored for an empty viewport."""
        if width <= 0 or height <= 0:
            return None
        self.camera.aspect = width / height
        self.camera.update_projection_matrix()
        return self.camera.aspect
