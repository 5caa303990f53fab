"""
XML Utility Functions
=====================

Common XML manipulation utilities shared by the conversion stages.
These functions work with lxml elements and provide consistent handling
of namespaces, identity attributes and serialization.
"""

from typing import Any, Iterator, List, Optional, Set, Union
import logging

from lxml import etree

logger = logging.getLogger(__name__)


# Namespaces of the RichText output vocabulary
DOCBOOK_NS = "http://docbook.org/ns/docbook"
XLINK_NS = "http://www.w3.org/1999/xlink"
EZXHTML_NS = "http://ez.no/xmlns/ezpublish/docbook/xhtml"
EZCUSTOM_NS = "http://ez.no/xmlns/ezpublish/docbook/custom"
XML_NS = "http://www.w3.org/XML/1998/namespace"

# Namespaces used by legacy XmlText documents
LEGACY_XHTML_NS = "http://ez.no/namespaces/ezpublish3/xhtml/"
LEGACY_CUSTOM_NS = "http://ez.no/namespaces/ezpublish3/custom/"
LEGACY_IMAGE_NS = "http://ez.no/namespaces/ezpublish3/image/"

XML_ID = f"{{{XML_NS}}}id"
XLINK_HREF = f"{{{XLINK_NS}}}href"
EZXHTML_CLASS = f"{{{EZXHTML_NS}}}class"

# Legacy elements that may not stay inside a paragraph
LEGACY_BLOCK_ELEMENTS: Set[str] = {
    'ul', 'ol', 'table', 'literal', 'embed', 'custom',
}

LEGACY_EMBED_ELEMENTS: Set[str] = {'embed', 'embed-inline'}


def local_name(element: Any) -> str:
    """
    Extract local name from element tag, stripping any namespace prefix.

    Args:
        element: XML element

    Returns:
        Local tag name without namespace, or "" for comments and PIs

    Example:
        >>> elem = etree.Element("{http://docbook.org/ns/docbook}para")
        >>> local_name(elem)
        'para'
    """
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def qualified_tag(element: Any, tag_name: str) -> str:
    """
    Get qualified tag name matching element's namespace.

    Args:
        element: Reference element for namespace
        tag_name: Local tag name

    Returns:
        Qualified tag name with namespace (if any)
    """
    ref_tag = element.tag
    if not isinstance(ref_tag, str):
        return tag_name
    if ref_tag.startswith("{"):
        ns = ref_tag.split("}", 1)[0] + "}"
        return ns + tag_name
    return tag_name


def as_tree(document: Union[etree._Element, etree._ElementTree]) -> etree._ElementTree:
    """Return an ElementTree for either a tree or a root element."""
    if isinstance(document, etree._ElementTree):
        return document
    if isinstance(document, etree._Element):
        return etree.ElementTree(document)
    raise TypeError("document must be an lxml Element or ElementTree")


def iter_by_local_name(root: Any, names: Set[str]) -> Iterator[Any]:
    """
    Iterate over elements whose local name is in names.

    The list is materialized first so callers may restructure the tree
    while iterating.
    """
    for elem in list(root.iter()):
        if local_name(elem) in names:
            yield elem


def get_xml_id(element: Any) -> Optional[str]:
    """Return the element's xml:id value, or None."""
    return element.get(XML_ID)


def iter_identified(root: Any) -> Iterator[Any]:
    """Iterate over elements carrying an xml:id attribute."""
    for elem in root.iter():
        if isinstance(elem.tag, str) and elem.get(XML_ID) is not None:
            yield elem


def copy_element_attributes(source: Any, target: Any,
                            exclude: Optional[Set[str]] = None) -> None:
    """
    Copy attributes from source to target element.

    Args:
        source: Source element
        target: Target element
        exclude: Set of attribute names to exclude
    """
    exclude = exclude or set()
    for attr, value in source.attrib.items():
        if attr not in exclude:
            target.set(attr, value)


def has_content(element: Any) -> bool:
    """Check whether an element has non-whitespace text or any child element."""
    if element.text and element.text.strip():
        return True
    return len(element) > 0


def class_tokens(value: Optional[str]) -> List[str]:
    """Split a space separated class attribute into tokens."""
    if not value:
        return []
    return value.split()


def serialize_document(tree: etree._ElementTree) -> bytes:
    """
    Serialize a document to bytes.

    XSLT result trees are serialized through their stylesheet output
    method, so disable-output-escaping text is written verbatim.

    Args:
        tree: Document to serialize

    Returns:
        Serialized XML, empty when an XSLT result has no root
    """
    if isinstance(tree, etree._XSLTResultTree):
        return bytes(tree)
    return etree.tostring(tree, encoding="UTF-8", xml_declaration=True)


def document_to_string(tree: etree._ElementTree) -> str:
    """Serialize a document to a UTF-8 decoded string with declaration."""
    return serialize_document(tree).decode("utf-8")

