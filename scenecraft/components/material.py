"""
Material component for rendering properties.
"""
from typing import Optional
import uuid
import torch
from .base import Component, component, field
from ..colors import rgb_to_hex


class Texture:
    """Image map bound to a material."""

    def __init__(self, image: Optional[torch.Tensor] = None, name: str = ""):
        self.id = str(uuid.uuid4())
        self.name = name
        self.image = image
        self.disposed = False

    def dispose(self) -> bool:
        """Release the image data. Returns False if already released."""
        if self.disposed:
            return False
        self.image = None
        self.disposed = True
        return True


@component(name="Material")
class MaterialComponent(Component):
    """Standard (lit, physically based) material."""

    color = field(torch.tensor([1.0, 1.0, 1.0]), description="Base color")
    metalness = field(0.0, min=0.0, max=1.0, description="How metallic the surface is")
    roughness = field(1.0, min=0.0, max=1.0, description="How rough the surface is")
    emissive_color = field(torch.zeros(3), description="Emitted light color")

    def __init__(self, map: Optional[Texture] = None, **kwargs):
        super().__init__(**kwargs)
        self.id = str(uuid.uuid4())
        self.map = map
        self.disposed = False

    def get_hex(self) -> int:
        """Base color as a 24-bit integer."""
        return rgb_to_hex(self.color)

    def dispose(self) -> list:
        """Release the material and its bound map.

        Returns the ids of the resources released by this call, so a
        second call returns an empty list.
        """
        released = []
        if self.map is not None and self.map.dispose():
            released.append(self.map.id)
        if not self.disposed:
            self.disposed = True
            released.append(self.id)
        return released
