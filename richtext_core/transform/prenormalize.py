"""
Pre-normalization
=================

Tree rewrites applied to the legacy XmlText document before the XSLT
stage, so that the stylesheets only ever see paragraphs holding inline
content and list items holding paragraphs.

Passes (applied by PreNormalize in this order):
1. ExpandingToRichText: lift block elements out of paragraphs
2. ExpandingList: wrap loose list item content into paragraphs
3. EmbedLinking: fold links around embeds into the embed itself
"""

from typing import Any, List, Sequence
import logging

from lxml import etree

from richtext_core.transform.base import Converter
from richtext_core.xml.utils import (
    LEGACY_BLOCK_ELEMENTS,
    LEGACY_EMBED_ELEMENTS,
    LEGACY_XHTML_NS,
    copy_element_attributes,
    has_content,
    iter_by_local_name,
    local_name,
    qualified_tag,
)

logger = logging.getLogger(__name__)

EMBED_LINK_PREFIX = "ezlegacytmp-embed-link-"

# Attributes that must stay on one element only when a paragraph is split
_UNIQUE_ATTRIBUTES = {f"{{{LEGACY_XHTML_NS}}}id", "id"}


def _is_block_custom(element: Any) -> bool:
    return any(local_name(child) == 'paragraph' for child in element)


def is_legacy_block(element: Any) -> bool:
    """
    Check whether a legacy element may not live inside a paragraph.

    A link wrapping nothing but a block embed counts as a block as well,
    so that EmbedLinking later finds it outside the paragraph.
    """
    name = local_name(element)
    if name == 'custom':
        return _is_block_custom(element)
    if name in LEGACY_BLOCK_ELEMENTS:
        return True
    if name == 'link' and len(element) == 1 and local_name(element[0]) == 'embed':
        return not has_content_besides(element, element[0])
    return False


def has_content_besides(parent: Any, child: Any) -> bool:
    """True if parent has text other than whitespace around child."""
    if parent.text and parent.text.strip():
        return True
    return bool(child.tail and child.tail.strip())


class PreNormalize(Converter):
    """Runs an ordered list of pre-normalization converters."""

    def __init__(self, converters: Sequence[Converter]):
        self._converters: List[Converter] = list(converters)

    def convert(self, tree: etree._ElementTree) -> etree._ElementTree:
        for converter in self._converters:
            logger.debug(f"Pre-normalizing: {converter.name}")
            tree = converter.convert(tree)
        return tree

    @classmethod
    def default(cls) -> 'PreNormalize':
        return cls([ExpandingToRichText(), ExpandingList(), EmbedLinking()])


class ExpandingToRichText(Converter):
    """
    Splits paragraphs around block level children.

    ``<paragraph>a<ul>..</ul>b</paragraph>`` becomes
    ``<paragraph>a</paragraph><ul>..</ul><paragraph>b</paragraph>``.
    Split halves without content are dropped.
    """

    def convert(self, tree: etree._ElementTree) -> etree._ElementTree:
        for paragraph in iter_by_local_name(tree.getroot(), {'paragraph'}):
            if any(is_legacy_block(child) for child in paragraph):
                self._expand(paragraph)
        return tree

    def _new_paragraph(self, source: Any, first: bool) -> Any:
        paragraph = etree.Element(source.tag)
        exclude = None if first else _UNIQUE_ATTRIBUTES
        copy_element_attributes(source, paragraph, exclude=exclude)
        return paragraph

    def _expand(self, paragraph: Any) -> None:
        parent = paragraph.getparent()
        if parent is None:
            return

        segments = []
        current = self._new_paragraph(paragraph, first=True)
        current.text = paragraph.text

        for child in list(paragraph):
            if not isinstance(child.tag, str) or not is_legacy_block(child):
                current.append(child)
                continue
            tail = child.tail
            child.tail = None
            segments.append(current)
            segments.append(child)
            current = self._new_paragraph(paragraph, first=False)
            current.text = tail
        segments.append(current)

        kept = [s for s in segments if local_name(s) != 'paragraph' or has_content(s)]
        # The unique attributes belong to the first paragraph that survives
        first_kept = next((s for s in kept if local_name(s) == 'paragraph'), None)
        if first_kept is not None and first_kept is not segments[0]:
            for attr in _UNIQUE_ATTRIBUTES:
                value = paragraph.get(attr)
                if value is not None:
                    first_kept.set(attr, value)

        index = parent.index(paragraph)
        for offset, segment in enumerate(kept):
            parent.insert(index + offset, segment)
        if kept:
            kept[-1].tail = paragraph.tail
        parent.remove(paragraph)


class ExpandingList(Converter):
    """
    Wraps loose inline content of list items into paragraphs.

    ``<li>text <strong>x</strong></li>`` becomes
    ``<li><paragraph>text <strong>x</strong></paragraph></li>``.
    """

    CONTAINERS = {'paragraph', 'ul', 'ol'}

    def convert(self, tree: etree._ElementTree) -> etree._ElementTree:
        for item in iter_by_local_name(tree.getroot(), {'li'}):
            if self._has_loose_content(item):
                self._wrap(item)
        return tree

    def _has_loose_content(self, item: Any) -> bool:
        if item.text and item.text.strip():
            return True
        for child in item:
            if local_name(child) not in self.CONTAINERS:
                return True
            if child.tail and child.tail.strip():
                return True
        return False

    def _wrap(self, item: Any) -> None:
        tag = qualified_tag(item, 'paragraph')
        children = []
        current = None

        if item.text and item.text.strip():
            current = etree.Element(tag)
            current.text = item.text
        item.text = None

        for child in list(item):
            if local_name(child) in self.CONTAINERS:
                if current is not None:
                    children.append(current)
                    current = None
                tail = child.tail
                child.tail = None
                children.append(child)
                if tail and tail.strip():
                    current = etree.Element(tag)
                    current.text = tail
            else:
                if current is None:
                    current = etree.Element(tag)
                current.append(child)

        if current is not None:
            children.append(current)

        for child in children:
            item.append(child)


class EmbedLinking(Converter):
    """
    Moves link information onto embeds wrapped by a link.

    The link attributes are copied onto the embed as
    ``ezlegacytmp-embed-link-<name>`` attributes, which the base stylesheet
    turns into an ``ezlink`` element. A link holding nothing but the embed
    is removed.
    """

    def convert(self, tree: etree._ElementTree) -> etree._ElementTree:
        for embed in iter_by_local_name(tree.getroot(), LEGACY_EMBED_ELEMENTS):
            link = embed.getparent()
            if link is None or local_name(link) != 'link':
                continue

            for attr, value in link.attrib.items():
                embed.set(EMBED_LINK_PREFIX + etree.QName(attr).localname, value)

            if len(link) == 1 and not has_content_besides(link, embed):
                self._unwrap(link, embed)
        return tree

    def _unwrap(self, link: Any, embed: Any) -> None:
        parent = link.getparent()
        if parent is None:
            return
        index = parent.index(link)
        link.remove(embed)
        embed.tail = link.tail
        parent.insert(index, embed)
        parent.remove(link)
