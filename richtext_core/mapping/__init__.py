"""
Reference Mapping
=================

Resolution of embedded object and location references.

Components:
- Repository / StaticRepository: content lookup collaborator
- EmbedClassifier: image marker tagging for embeds
"""

from richtext_core.mapping.repository import (
    ContentInfo,
    Location,
    Found,
    NotFound,
    Repository,
    StaticRepository,
)

from richtext_core.mapping.embeds import (
    EmbedClassifier,
    IMAGE_CLASS,
    parse_embed_href,
    add_class_value,
    remove_class_value,
)

__all__ = [
    "ContentInfo",
    "Location",
    "Found",
    "NotFound",
    "Repository",
    "StaticRepository",
    "EmbedClassifier",
    "IMAGE_CLASS",
    "parse_embed_href",
    "add_class_value",
    "remove_class_value",
]
