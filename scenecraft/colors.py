"""
Conversions between 24-bit RGB integers and normalized color tensors.
"""
from typing import Any
import math
import torch
import numpy as np

MAX_HEX = 0xFFFFFF


def to_hex_int(value: Any) -> int:
    """Normalize an int, ``"#rrggbb"`` string or RGB triple to a 24-bit integer."""
    if isinstance(value, bool):
        raise TypeError(f"Invalid color value: {value!r}")
    if isinstance(value, str):
        text = value.strip().lstrip('#')
        if text.lower().startswith('0x'):
            text = text[2:]
        if len(text) != 6:
            raise ValueError(f"Invalid color string: {value!r}")
        return int(text, 16)
    if isinstance(value, (torch.Tensor, np.ndarray, list, tuple)):
        return rgb_to_hex(value)
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValueError(f"Invalid color value: {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise TypeError(f"Invalid color value: {value!r}")
    if value < 0 or value > MAX_HEX:
        raise ValueError(f"Color out of 24-bit range: {value!r}")
    return value


def hex_to_rgb(value: int) -> torch.Tensor:
    """Convert a 24-bit integer to an RGB tensor in [0, 1]."""
    value = to_hex_int(value)
    r = (value >> 16) & 0xFF
    g = (value >> 8) & 0xFF
    b = value & 0xFF
    return torch.tensor([r / 255.0, g / 255.0, b / 255.0], dtype=torch.float32)


def rgb_to_hex(rgb: Any) -> int:
    """Convert an RGB triple in [0, 1] to a 24-bit integer."""
    if isinstance(rgb, torch.Tensor):
        rgb = rgb.tolist()
    rgb = list(rgb)
    if len(rgb) < 3:
        raise ValueError(f"Expected 3 color channels, got {len(rgb)}")
    channels = []
    for c in rgb[:3]:
        try:
            c = float(c)
        except OverflowError as e:
            raise ValueError(f"Color channel out of range: {c!r}") from e
        if not math.isfinite(c):
            raise ValueError(f"Invalid color channel: {c!r}")
        channels.append(int(round(min(max(c, 0.0), 1.0) * 255)))
    return (channels[0] << 16) | (channels[1] << 8) | channels[2]
