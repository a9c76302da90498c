"""
Light component for illumination.
"""
import torch
from .base import Component, component, field
from ..colors import rgb_to_hex

AMBIENT = 'ambient'
DIRECTIONAL = 'directional'


@component(name="Light")
class LightComponent(Component):
    """Light component for illumination."""

    light_type = field(AMBIENT, description="Type of light source")
    intensity = field(1.0, min=0.0, description="Brightness")
    color = field(torch.tensor([1.0, 1.0, 1.0]), description="Light color")
    cast_shadows = field(False, description="Whether this light casts shadows")

    def get_hex(self) -> int:
        """Light color as a 24-bit integer."""
        return rgb_to_hex(self.color)
