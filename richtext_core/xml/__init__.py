"""
XML Processing Utilities
========================

Namespace constants and lxml helpers used across the conversion stages.
"""

from richtext_core.xml.utils import (
    local_name,
    qualified_tag,
    as_tree,
    iter_by_local_name,
    iter_identified,
    get_xml_id,
    copy_element_attributes,
    has_content,
    class_tokens,
    serialize_document,
    document_to_string,
    DOCBOOK_NS,
    XLINK_NS,
    EZXHTML_NS,
    EZCUSTOM_NS,
    XML_NS,
    XML_ID,
    XLINK_HREF,
    EZXHTML_CLASS,
    LEGACY_BLOCK_ELEMENTS,
    LEGACY_EMBED_ELEMENTS,
)

__all__ = [
    "local_name",
    "qualified_tag",
    "as_tree",
    "iter_by_local_name",
    "iter_identified",
    "get_xml_id",
    "copy_element_attributes",
    "has_content",
    "class_tokens",
    "serialize_document",
    "document_to_string",
    "DOCBOOK_NS",
    "XLINK_NS",
    "EZXHTML_NS",
    "EZCUSTOM_NS",
    "XML_NS",
    "XML_ID",
    "XLINK_HREF",
    "EZXHTML_CLASS",
    "LEGACY_BLOCK_ELEMENTS",
    "LEGACY_EMBED_ELEMENTS",
]
