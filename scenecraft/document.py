"""
Scene documents: the portable JSON form of a scene, and delivery of
exported documents as files.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging

from .descriptors import ObjectDescriptor, descriptor_from_dict

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "scene.json"


class SceneDocumentError(ValueError):
    """Raised when a scene document cannot be parsed."""


@dataclass
class SceneDocument:
    """Background color plus an ordered list of object descriptors."""

    background: int
    objects: List[ObjectDescriptor] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "background": self.background,
            "objects": [obj.to_dict() for obj in self.objects],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> 'SceneDocument':
        """Validate and parse the dictionary form.

        Entries with an unknown ``type`` are dropped with a warning; any other
        malformed entry makes the whole document invalid.
        """
        if not isinstance(data, dict):
            raise SceneDocumentError("Scene document must be a JSON object")

        background = data.get("background")
        if isinstance(background, bool) or not isinstance(background, int) \
                or not 0 <= background <= 0xFFFFFF:
            raise SceneDocumentError(f"Invalid background color: {background!r}")

        raw_objects = data.get("objects")
        if not isinstance(raw_objects, list):
            raise SceneDocumentError("Scene document 'objects' must be a list")

        objects = []
        for index, entry in enumerate(raw_objects):
            if not isinstance(entry, dict):
                raise SceneDocumentError(f"Object #{index} is not a JSON object")
            try:
                descriptor = descriptor_from_dict(entry)
            except (TypeError, ValueError) as e:
                raise SceneDocumentError(f"Object #{index} is invalid: {e}") from e
            if descriptor is not None:
                objects.append(descriptor)

        return cls(background=background, objects=objects)

    @classmethod
    def from_json(cls, text: str) -> 'SceneDocument':
        try:
            data = json.loads(text)
        except (TypeError, json.JSONDecodeError) as e:
            raise SceneDocumentError(f"Invalid scene JSON: {e}") from e
        return cls.from_dict(data)


class FileDelivery(ABC):
    """Destination for exported scene files."""

    @abstractmethod
    def deliver(self, text: str, filename: str = DEFAULT_FILENAME) -> None:
        pass


class DirectoryDelivery(FileDelivery):
    """Writes exported files into a directory."""

    def __init__(self, directory):
        self.directory = Path(directory)

    def deliver(self, text: str, filename: str = DEFAULT_FILENAME) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        with open(path, 'w') as f:
            f.write(text)
        logger.info(f"Scene saved to {path}")
