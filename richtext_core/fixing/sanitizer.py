"""
Input Sanitizer
===============

Clean-up and sanity checks run on the legacy XmlText document before it
is handed to the structural converter.
"""

from typing import List, Optional
import logging

from lxml import etree

from richtext_core.diagnostics import Diagnostic, Severity, field_label

logger = logging.getLogger(__name__)

EMPTY_EMBED_XPATH = (
    '//embed[not(@node_id|@object_id)] | //embed-inline[not(@node_id|@object_id)]'
)


def _remove_preserving_tail(node) -> None:
    parent = node.getparent()
    tail = node.tail
    if tail:
        previous = node.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
    parent.remove(node)


def strip_comments(tree: etree._ElementTree) -> int:
    """
    Remove every comment node inside the document element, at any depth.

    Text following a comment is kept in place. Comments outside the
    document element are never emitted by the converter and are left alone.

    Returns:
        Number of comments removed
    """
    removed = 0
    for comment in tree.xpath('//comment()'):
        if comment.getparent() is None:
            continue
        _remove_preserving_tail(comment)
        removed += 1

    if removed:
        logger.debug(f"Removed {removed} comment(s)")
    return removed


def check_empty_embed_references(tree: etree._ElementTree,
                                 content_field_id: Optional[int] = None) -> List[Diagnostic]:
    """
    Report embed and embed-inline tags that have neither node_id nor object_id.

    Such tags are tolerated and left untouched; a single warning summarizes
    them.

    Returns:
        A list holding one warning, or an empty list
    """
    nodes = tree.xpath(EMPTY_EMBED_XPATH)
    if not nodes:
        return []

    return [Diagnostic(
        Severity.WARNING,
        f"Warning: ezxmltext for contentobject_attribute.id={field_label(content_field_id)} "
        f"contains {len(nodes)} embed or embed-inline tag(s) without node_id or object_id",
        content_field_id,
    )]
