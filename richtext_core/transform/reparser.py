"""
Re-parse Normalization
======================

The XSLT stage may write disable-output-escaping text (legacy line
markers and similar). Serializing the result and parsing it again turns
that text into real nodes, or exposes it as a parse error.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from lxml import etree

from richtext_core.diagnostics import Diagnostic, Severity, field_label
from richtext_core.xml.utils import serialize_document

logger = logging.getLogger(__name__)


@dataclass
class ReparseOutcome:
    """Either a freshly parsed tree or the error diagnostic explaining why not."""
    tree: Optional[etree._ElementTree] = None
    diagnostic: Optional[Diagnostic] = None

    @property
    def ok(self) -> bool:
        return self.tree is not None


def _parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def reparse(tree: etree._ElementTree,
            original: Optional[etree._ElementTree] = None,
            content_field_id: Optional[int] = None) -> ReparseOutcome:
    """
    Serialize a converted document and parse it into a new tree.

    Args:
        tree: Converted document
        original: Legacy input document, attached to the diagnostic on failure
        content_field_id: Field id used in the diagnostic message

    Returns:
        ReparseOutcome holding the new tree, or an error diagnostic
    """
    serialized = serialize_document(tree)

    if not serialized.strip():
        return _failure(serialized, "converted richtext output is empty", original, content_field_id)

    try:
        root = etree.fromstring(serialized, _parser())
    except etree.XMLSyntaxError as e:
        logger.debug(f"Re-parse failed: {e}")
        return _failure(serialized, str(e), original, content_field_id)

    return ReparseOutcome(tree=root.getroottree())


def _failure(serialized: bytes, reason: str,
             original: Optional[etree._ElementTree],
             content_field_id: Optional[int]) -> ReparseOutcome:
    context = {
        'result': serialized.decode('utf-8', errors='replace'),
        'errors': f"Unable to parse converted richtext output: {reason}",
        'xmlString': (
            etree.tostring(original, encoding='unicode') if original is not None else None
        ),
    }
    return ReparseOutcome(diagnostic=Diagnostic(
        Severity.ERROR,
        f"Unable to convert ezmltext for contentobject_attribute.id={field_label(content_field_id)}",
        content_field_id,
        context,
    ))
