"""
Transform component with PyTorch tensor support.
"""
from typing import Sequence
import torch
import numpy as np
from scipy.spatial.transform import Rotation
from .base import Component, component, field

# Intrinsic XYZ, the default Euler order of the rendering library
EULER_ORDER = 'XYZ'


@component(name="Transform")
class TransformComponent(Component):
    """Transform component with position, rotation, and scale."""

    position = field(torch.zeros(3), description="Local position")
    rotation = field(torch.zeros(3), description="Rotation in Euler angles (radians)")
    scale = field(torch.ones(3), description="Scale of the object")

    def get_rotation_matrix(self) -> torch.Tensor:
        """Get the 3x3 rotation matrix."""
        r = Rotation.from_euler(EULER_ORDER, self.rotation.tolist(), degrees=False)
        return torch.tensor(r.as_matrix(), dtype=torch.float64)

    def get_transformation_matrix(self) -> torch.Tensor:
        """Get 4x4 local transformation matrix (T * R * S)."""
        T = torch.eye(4, dtype=torch.float64)
        T[:3, 3] = self.position.double()

        R = torch.eye(4, dtype=torch.float64)
        R[:3, :3] = self.get_rotation_matrix()

        S = torch.diag(torch.cat([self.scale.double(), torch.ones(1, dtype=torch.float64)]))

        return T @ R @ S

    def look_at(self, target: Sequence[float], up: Sequence[float] = (0.0, 1.0, 0.0)):
        """Rotate so the local -Z axis points at ``target`` (camera convention)."""
        eye = self.position.double().numpy()
        target = np.asarray(target, dtype=np.float64)
        up = np.asarray(up, dtype=np.float64)

        z_axis = eye - target
        if np.linalg.norm(z_axis) == 0:
            z_axis = np.array([0.0, 0.0, 1.0])
        z_axis = z_axis / np.linalg.norm(z_axis)

        x_axis = np.cross(up, z_axis)
        if np.linalg.norm(x_axis) == 0:
            # up is parallel to the view direction
            z_axis = z_axis + np.array([1e-4, 0.0, 0.0])
            z_axis = z_axis / np.linalg.norm(z_axis)
            x_axis = np.cross(up, z_axis)
        x_axis = x_axis / np.linalg.norm(x_axis)
        y_axis = np.cross(z_axis, x_axis)

        matrix = np.stack([x_axis, y_axis, z_axis], axis=1)
        r = Rotation.from_matrix(matrix)
        self.rotation = torch.tensor(r.as_euler(EULER_ORDER, degrees=False), dtype=torch.float32)
