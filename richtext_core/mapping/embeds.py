"""
Embed Classification
====================

Embedded images need the ``ezxhtml:class="ez-embed-type-image"`` marker in
order to be recognized by the editor. The classifier resolves every
``ezembed`` / ``ezembedinline`` target through the repository and adds or
removes the marker accordingly.
"""

from typing import FrozenSet, Iterable, Optional, Tuple
import logging
import re

from lxml import etree

from richtext_core.diagnostics import DiagnosticCollector, field_label
from richtext_core.mapping.repository import NotFound, Repository
from richtext_core.xml.utils import EZXHTML_CLASS, XLINK_HREF, class_tokens

logger = logging.getLogger(__name__)

IMAGE_CLASS = "ez-embed-type-image"
CONTENT_SCHEME = "ezcontent"
EMBED_TAGS = ("ezembed", "ezembedinline")

_LEADING_DIGITS = re.compile(r"\d+")


def parse_embed_href(href: Optional[str]) -> Tuple[int, bool]:
    """
    Split an embed reference such as ``ezcontent://123`` or ``ezlocation://42``.

    Returns:
        Tuple of (id, is_content_id). Ids that are not numeric become 0.
    """
    href = href or ""
    is_content_id = href.startswith(CONTENT_SCHEME)
    match = _LEADING_DIGITS.match(href[href.rfind("/") + 1:])
    return (int(match.group()) if match else 0), is_content_id


def add_class_value(node, value: str) -> bool:
    """Add a token to ezxhtml:class. Returns True if the node was changed."""
    current = node.get(EZXHTML_CLASS)
    if current is None:
        node.set(EZXHTML_CLASS, value)
        return True

    if value in class_tokens(current):
        return False

    node.set(EZXHTML_CLASS, f"{current} {value}")
    return True


def remove_class_value(node, value: str) -> bool:
    """Remove a token from ezxhtml:class. Returns True if the node was changed."""
    current = node.get(EZXHTML_CLASS)
    if current is None:
        return False

    tokens = class_tokens(current)
    if value not in tokens:
        return False

    remaining = [token for token in tokens if token != value]
    if remaining:
        node.set(EZXHTML_CLASS, " ".join(remaining))
    else:
        del node.attrib[EZXHTML_CLASS]
    return True


class EmbedClassifier:
    """
    Tags embedded images in a converted RichText document.

    Example:
        classifier = EmbedClassifier(repository, {5, 7}, collector)
        changed = classifier.tag_embedded_images(tree, content_field_id=12)
    """

    def __init__(self, repository: Repository,
                 image_content_types: Iterable[int] = (),
                 diagnostics: Optional[DiagnosticCollector] = None):
        self.repository = repository
        self.image_content_types: FrozenSet[int] = frozenset(image_content_types)
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()

    def is_image_content_type(self, target_id: int, is_content_id: bool,
                              content_field_id: Optional[int] = None) -> bool:
        """
        Resolve an embed target and test its content type.

        Unresolvable targets are reported and classified as non-images.
        """
        label = field_label(content_field_id)

        if is_content_id:
            found = self.repository.load_content_info(target_id)
            if isinstance(found, NotFound):
                self.diagnostics.warning(
                    f"Unable to find content_id={target_id}, referred to in embedded tag "
                    f"in contentobject_attribute.id={label}.",
                    content_field_id,
                )
                return False
            content_info = found.value
        else:
            found = self.repository.load_location(target_id)
            if isinstance(found, NotFound):
                self.diagnostics.warning(
                    f"Unable to find node_id={target_id}, referred to in embedded tag "
                    f"in contentobject_attribute.id={label}.",
                    content_field_id,
                )
                return False
            content_info = found.value.content_info

        if content_info is None:
            return False

        return content_info.content_type_id in self.image_content_types

    def tag_embedded_images(self, tree: etree._ElementTree,
                            content_field_id: Optional[int] = None) -> int:
        """
        Add or remove the image marker on every embed node.

        Returns:
            Number of embed nodes that were changed
        """
        root = tree.getroot()
        namespace = etree.QName(root).namespace
        tags = [f"{{{namespace}}}{name}" if namespace else name for name in EMBED_TAGS]

        count = 0
        for node in root.iter(*tags):
            target_id, is_content_id = parse_embed_href(node.get(XLINK_HREF))
            if self.is_image_content_type(target_id, is_content_id, content_field_id):
                changed = add_class_value(node, IMAGE_CLASS)
            else:
                changed = remove_class_value(node, IMAGE_CLASS)
            if changed:
                count += 1

        if count:
            logger.debug(f"Retagged {count} embed(s)")
        return count
