"""
Content Repository Interface
============================

The embed classifier resolves embedded object and location ids through a
Repository. Lookups return explicit Found / NotFound results instead of
raising.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Generic, Optional, TypeVar, Union
import json
import logging

import yaml

from richtext_core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ContentInfo:
    """Minimal content metadata needed for classification."""
    id: int
    content_type_id: int


@dataclass(frozen=True)
class Location:
    """A tree location pointing at a content object."""
    id: int
    content_info: ContentInfo


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    kind: str
    id: int


LookupResult = Union[Found, NotFound]


class Repository(ABC):
    """
    Content repository facade consumed by the embed classifier.

    Implementations may block on I/O; timeouts and cancellation belong to
    the implementation, the pipeline does not impose any.
    """

    @abstractmethod
    def load_content_info(self, content_id: int) -> LookupResult:
        """Return Found(ContentInfo) or NotFound for a content id."""

    @abstractmethod
    def load_location(self, location_id: int) -> LookupResult:
        """Return Found(Location) or NotFound for a location id."""


class StaticRepository(Repository):
    """
    In-memory repository.

    Example:
        repo = StaticRepository(
            content_types={10: 5, 11: 2},   # content id -> content type id
            locations={42: 10},             # location id -> content id
        )
        repo.load_location(42)  # Found(Location(42, ContentInfo(10, 5)))
    """

    def __init__(self,
                 content_types: Optional[Dict[int, int]] = None,
                 locations: Optional[Dict[int, int]] = None):
        self.content_types: Dict[int, int] = dict(content_types or {})
        self.locations: Dict[int, int] = dict(locations or {})

    def load_content_info(self, content_id: int) -> LookupResult:
        type_id = self.content_types.get(content_id)
        if type_id is None:
            return NotFound("content", content_id)
        return Found(ContentInfo(content_id, type_id))

    def load_location(self, location_id: int) -> LookupResult:
        content_id = self.locations.get(location_id)
        if content_id is None:
            return NotFound("location", location_id)
        content = self.load_content_info(content_id)
        if isinstance(content, NotFound):
            return NotFound("location", location_id)
        return Found(Location(location_id, content.value))

    @classmethod
    def from_dict(cls, data: dict) -> 'StaticRepository':
        """Create from a mapping with ``content`` and ``locations`` sections."""
        try:
            content = {int(k): int(v) for k, v in (data.get('content') or {}).items()}
            locations = {int(k): int(v) for k, v in (data.get('locations') or {}).items()}
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid repository mapping: {e}") from e
        return cls(content, locations)

    @classmethod
    def from_file(cls, path: Path) -> 'StaticRepository':
        """
        Load a repository mapping from a YAML or JSON file.

        Expected layout::

            content:
              10: 5
            locations:
              42: 10
        """
        if not path.exists():
            raise FileNotFoundError(f"Repository file not found: {path}")

        suffix = path.suffix.lower()
        with open(path, 'r', encoding='utf-8') as f:
            if suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            elif suffix == '.json':
                data = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported repository format: {suffix}")

        repo = cls.from_dict(data or {})
        logger.info(f"Loaded {len(repo.content_types)} content and "
                    f"{len(repo.locations)} location entries from {path}")
        return repo
