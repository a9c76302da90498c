"""
Component system with decorator-based registration and PyTorch storage.
"""
from typing import Any, Dict, Optional, Type, Callable
from dataclasses import dataclass
from enum import Enum
from abc import ABC
import torch
import numpy as np

from ..colors import hex_to_rgb


class ComponentFieldType(Enum):
    """Field types supported by the component system."""
    FLOAT = "float"
    VECTOR3 = "vector3"
    COLOR = "color"
    BOOLEAN = "boolean"
    STRING = "string"
    TENSOR = "tensor"


@dataclass
class ComponentFieldMeta:
    """Metadata for component fields."""
    name: str
    field_type: ComponentFieldType
    default_value: Any
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    description: Optional[str] = None
    readonly: bool = False


class ABCComponentMeta(type(ABC), type):
    """Combined metaclass for ABC and automatic component registration."""
    _registry: Dict[str, Type['Component']] = {}

    def __new__(mcs, name, bases, namespace):
        cls = super().__new__(mcs, name, bases, namespace)

        # Don't register the base Component class
        if name != 'Component' and not name.startswith('_'):
            ABCComponentMeta._registry[name] = cls
            cls._component_name = name
            cls._fields_meta = {}

        return cls

    @classmethod
    def get_registry(mcs) -> Dict[str, Type['Component']]:
        """Get all registered components."""
        return mcs._registry.copy()


class Component(metaclass=ABCComponentMeta):
    """Base class for all components using PyTorch tensors."""

    _component_name: str = ""
    _fields_meta: Dict[str, ComponentFieldMeta] = {}

    def __init__(self, **kwargs):
        """Initialize component with default values."""
        self._values = {}
        self._owner = None  # Owning SceneNode
        self._callbacks = {}

        for field_name, field_meta in self._fields_meta.items():
            value = kwargs.get(field_name, field_meta.default_value)
            self._set_field_value(field_name, value, notify=False)

    @classmethod
    def _process_fields(cls):
        """Collect ``field()`` declarations into field metadata."""
        cls._fields_meta = {}

        for attr_name, attr in list(vars(cls).items()):
            if attr_name.startswith('_') or not isinstance(attr, Field):
                continue

            default_val = attr.value
            field_info = attr.metadata
            # Remove the Field object so attribute access goes through __getattr__
            delattr(cls, attr_name)

            cls._fields_meta[attr_name] = ComponentFieldMeta(
                name=attr_name,
                field_type=cls._infer_field_type(attr_name, default_val),
                default_value=default_val,
                min_value=field_info.get('min'),
                max_value=field_info.get('max'),
                description=field_info.get('description'),
                readonly=field_info.get('readonly', False)
            )

    @classmethod
    def _infer_field_type(cls, field_name: str, default_val: Any) -> ComponentFieldType:
        """Infer the field type from its default value."""
        if isinstance(default_val, torch.Tensor):
            if default_val.numel() == 1:
                return ComponentFieldType.FLOAT
            if default_val.dim() == 1 and default_val.shape[0] == 3:
                if 'color' in field_name.lower():
                    return ComponentFieldType.COLOR
                return ComponentFieldType.VECTOR3
            return ComponentFieldType.TENSOR
        if isinstance(default_val, bool):
            return ComponentFieldType.BOOLEAN
        if isinstance(default_val, (int, float)):
            return ComponentFieldType.FLOAT
        if isinstance(default_val, str):
            return ComponentFieldType.STRING
        return ComponentFieldType.TENSOR

    def _set_field_value(self, field_name: str, value: Any, notify: bool = True):
        """Set a field value with type conversion to PyTorch tensor."""
        if field_name not in self._fields_meta:
            raise AttributeError(f"Component {self._component_name} has no field '{field_name}'")

        field_meta = self._fields_meta[field_name]

        if field_meta.readonly and notify:
            raise AttributeError(f"Field '{field_name}' is readonly")

        tensor_value = self._convert_to_tensor(value, field_meta.field_type)

        if not self._validate_field_value(tensor_value, field_meta):
            raise ValueError(f"Invalid value for field '{field_name}': {value!r}")

        old_value = self._values.get(field_name)
        self._values[field_name] = tensor_value

        if notify:
            self._trigger_callbacks(field_name, old_value, tensor_value)

    def _convert_to_tensor(self, value: Any, field_type: ComponentFieldType) -> Any:
        """Convert value to appropriate PyTorch tensor."""
        if field_type == ComponentFieldType.FLOAT:
            if isinstance(value, torch.Tensor):
                if value.numel() != 1:
                    raise ValueError(f"Expected a scalar, got shape {tuple(value.shape)}")
                return value.detach().clone().float().reshape(())
            if isinstance(value, bool):
                raise TypeError(f"Expected a number, got {value!r}")
            return torch.tensor(float(value), dtype=torch.float32)

        elif field_type == ComponentFieldType.BOOLEAN:
            if isinstance(value, torch.Tensor):
                return bool(value.item()) if value.numel() == 1 else bool(value[0])
            return bool(value)

        elif field_type == ComponentFieldType.STRING:
            return str(value)

        elif field_type == ComponentFieldType.COLOR:
            if isinstance(value, (int, str)) and not isinstance(value, bool):
                return hex_to_rgb(value)
            return self._convert_vector(value)

        elif field_type == ComponentFieldType.VECTOR3:
            return self._convert_vector(value)

        if isinstance(value, torch.Tensor):
            return value.detach().clone().float()
        return torch.tensor(value, dtype=torch.float32)

    @staticmethod
    def _convert_vector(value: Any) -> torch.Tensor:
        """Convert a 3-vector given as tensor, sequence or ``{x, y, z}`` dict."""
        if isinstance(value, torch.Tensor):
            tensor = value.detach().clone().float().reshape(-1)
        elif isinstance(value, dict):
            try:
                tensor = torch.tensor([float(value['x']), float(value['y']), float(value['z'])],
                                      dtype=torch.float32)
            except KeyError as e:
                raise ValueError(f"Vector is missing component {e}") from e
        elif isinstance(value, (list, tuple, np.ndarray)):
            tensor = torch.tensor([float(v) for v in value], dtype=torch.float32)
        else:
            raise TypeError(f"Expected a 3-vector, got {value!r}")

        if tensor.shape[0] != 3:
            raise ValueError(f"Expected 3 values, got {tensor.shape[0]}")
        return tensor

    def _validate_field_value(self, value: Any, field_meta: ComponentFieldMeta) -> bool:
        """Validate a field value against its constraints."""
        if field_meta.field_type == ComponentFieldType.FLOAT:
            if not torch.isfinite(value):
                return False
            if field_meta.min_value is not None and value < field_meta.min_value:
                return False
            if field_meta.max_value is not None and value > field_meta.max_value:
                return False
        elif field_meta.field_type == ComponentFieldType.VECTOR3:
            return bool(torch.isfinite(value).all())
        elif field_meta.field_type == ComponentFieldType.COLOR:
            return bool(torch.isfinite(value).all()) and bool(((value >= 0) & (value <= 1)).all())
        return True

    def _trigger_callbacks(self, field_name: str, old_value: Any, new_value: Any):
        """Trigger callbacks for field changes."""
        if field_name in self._callbacks:
            for callback in self._callbacks[field_name]:
                callback(self, field_name, old_value, new_value)

        # Propagate to the scene graph the owner lives in
        if self._owner is not None:
            graph = getattr(self._owner, 'graph', None)
            if graph is not None:
                graph._emit('node_updated',
                            node=self._owner,
                            component_name=self._component_name,
                            field_name=field_name)

    def __getattr__(self, name: str) -> Any:
        """Get field value using dot notation."""
        if name.startswith('_'):
            return object.__getattribute__(self, name)

        fields_meta = type(self)._fields_meta
        if name in fields_meta:
            values = object.__getattribute__(self, '_values')
            return values.get(name, fields_meta[name].default_value)

        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any):
        """Set field value using dot notation."""
        if name.startswith('_'):
            object.__setattr__(self, name, value)
        elif name in type(self)._fields_meta:
            self._set_field_value(name, value)
        else:
            object.__setattr__(self, name, value)

    def add_callback(self, field_name: str, callback: Callable):
        """Add a callback for field changes."""
        self._callbacks.setdefault(field_name, []).append(callback)

    def remove_callback(self, field_name: str, callback: Callable):
        """Remove a callback for field changes."""
        if field_name in self._callbacks:
            self._callbacks[field_name].remove(callback)


class ComponentRegistry:
    """Global registry for all components."""

    @classmethod
    def get(cls, name: str) -> Optional[Type[Component]]:
        """Get a component class by name."""
        return ABCComponentMeta.get_registry().get(name)

    @classmethod
    def create_instance(cls, name: str, **kwargs) -> Optional[Component]:
        """Create an instance of a component."""
        component_class = cls.get(name)
        if component_class:
            return component_class(**kwargs)
        return None


def component(name: Optional[str] = None):
    """Decorator for registering components."""
    def decorator(cls):
        cls._component_name = name or cls.__name__

        if name and name != cls.__name__:
            ABCComponentMeta._registry.pop(cls.__name__, None)
            ABCComponentMeta._registry[name] = cls

        cls._process_fields()
        return cls

    return decorator


class Field:
    """Field descriptor for component fields with metadata."""
    def __init__(self, default_value, **metadata):
        self.value = default_value
        self.metadata = metadata

    def __repr__(self):
        return f"Field(value={self.value}, metadata={self.metadata})"


def field(default_value,
          min: Optional[float] = None,
          max: Optional[float] = None,
          description: Optional[str] = None,
          readonly: bool = False):
    """Create a field with metadata.

    Usage:
        class MyComponent(Component):
            intensity = field(1.0, min=0, description="Brightness")
            position = field(torch.zeros(3), description="Local position")
    """
    return Field(default_value, min=min, max=max,
                 description=description, readonly=readonly)
