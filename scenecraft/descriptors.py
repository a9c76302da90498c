"""
Portable object descriptors and their dictionary form.

Each descriptor class carries its wire ``type`` tag. ``DESCRIPTOR_TYPES``
is the closed set of variants understood by the factory and produced by
the extractor.
"""
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Optional, Tuple, Type
import logging
import math

from .colors import to_hex_int

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]

UNNAMED = "unnamed"


def parse_vector(value: Any) -> Vector3:
    """Parse ``{x, y, z}`` or a 3-element sequence into a float triple."""
    if isinstance(value, dict):
        try:
            items = [value['x'], value['y'], value['z']]
        except KeyError as e:
            raise ValueError(f"Vector is missing component {e}") from e
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        raise TypeError(f"Expected a vector, got {value!r}")

    if len(items) != 3:
        raise ValueError(f"Expected 3 vector components, got {len(items)}")
    result = []
    for item in items:
        if isinstance(item, bool):
            raise TypeError(f"Invalid vector component: {item!r}")
        try:
            item = float(item)
        except OverflowError as e:
            raise ValueError(f"Vector component out of range: {item!r}") from e
        if not math.isfinite(item):
            raise ValueError(f"Invalid vector component: {item!r}")
        result.append(item)
    return tuple(result)


def vector_to_dict(value: Vector3) -> Dict[str, float]:
    x, y, z = value
    return {"x": float(x), "y": float(y), "z": float(z)}


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError(f"Invalid {name}: {value!r}")
    try:
        return float(value)
    except OverflowError as e:
        raise ValueError(f"{name} out of range: {value!r}") from e


class ObjectDescriptor:
    """Base class of all object descriptors."""

    type: ClassVar[str] = ""
    VECTOR_FIELDS: ClassVar[Tuple[str, ...]] = ()
    NUMBER_FIELDS: ClassVar[Tuple[str, ...]] = ()

    @property
    def is_light(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Wire form; optional fields that are unset are omitted."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name in self.VECTOR_FIELDS:
                value = vector_to_dict(value)
            result[f.name] = value
        result["type"] = self.type
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ObjectDescriptor':
        """Build the descriptor from its wire form; unknown keys are ignored."""
        kwargs = {}
        for f in fields(cls):
            if f.name not in data or data[f.name] is None:
                continue
            value = data[f.name]
            if f.name in cls.VECTOR_FIELDS:
                value = parse_vector(value)
            elif f.name in cls.NUMBER_FIELDS:
                value = _number(f.name, value)
            elif f.name == "color":
                value = to_hex_int(value)
            elif f.name == "name":
                value = str(value)
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass
class BoxDescriptor(ObjectDescriptor):
    width: float = 1.0
    height: float = 1.0
    depth: float = 1.0
    color: int = 0xFFFFFF
    name: Optional[str] = None
    position: Optional[Vector3] = None
    rotation: Optional[Vector3] = None
    scale: Optional[Vector3] = None

    type: ClassVar[str] = "box"
    VECTOR_FIELDS: ClassVar[Tuple[str, ...]] = ("position", "rotation", "scale")
    NUMBER_FIELDS: ClassVar[Tuple[str, ...]] = ("width", "height", "depth")


@dataclass
class SphereDescriptor(ObjectDescriptor):
    radius: float = 1.0
    color: int = 0xFFFFFF
    name: Optional[str] = None
    position: Optional[Vector3] = None
    rotation: Optional[Vector3] = None
    scale: Optional[Vector3] = None

    type: ClassVar[str] = "sphere"
    VECTOR_FIELDS: ClassVar[Tuple[str, ...]] = ("position", "rotation", "scale")
    NUMBER_FIELDS: ClassVar[Tuple[str, ...]] = ("radius",)


@dataclass
class AmbientLightDescriptor(ObjectDescriptor):
    color: int = 0xFFFFFF
    intensity: float = 1.0
    name: Optional[str] = None

    type: ClassVar[str] = "ambientLight"
    NUMBER_FIELDS: ClassVar[Tuple[str, ...]] = ("intensity",)

    @property
    def is_light(self) -> bool:
        return True


@dataclass
class DirectionalLightDescriptor(ObjectDescriptor):
    color: int = 0xFFFFFF
    intensity: float = 1.0
    name: Optional[str] = None
    position: Optional[Vector3] = None

    type: ClassVar[str] = "directionalLight"
    VECTOR_FIELDS: ClassVar[Tuple[str, ...]] = ("position",)
    NUMBER_FIELDS: ClassVar[Tuple[str, ...]] = ("intensity",)

    @property
    def is_light(self) -> bool:
        return True


DESCRIPTOR_TYPES: Dict[str, Type[ObjectDescriptor]] = {
    cls.type: cls for cls in (
        BoxDescriptor,
        SphereDescriptor,
        AmbientLightDescriptor,
        DirectionalLightDescriptor,
    )
}


def descriptor_from_dict(data: Dict[str, Any]) -> Optional[ObjectDescriptor]:
    """Parse a wire-form descriptor.

    Returns None (with a warning) for an unknown ``type``. Malformed values
    of a known type raise ``ValueError`` or ``TypeError``.
    """
    if not isinstance(data, dict):
        raise TypeError(f"Expected an object descriptor, got {type(data).__name__}")

    descriptor_cls = DESCRIPTOR_TYPES.get(data.get("type"))
    if descriptor_cls is None:
        logger.warning(f"Unknown object type: {data.get('type')}")
        return None
    return descriptor_cls.from_dict(data)
