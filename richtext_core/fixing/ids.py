"""
Identifier Reconciliation
=========================

Two independent scans over the converted RichText document:

1. Duplicate id reporting. The base stylesheet renames the second and
   later occurrences of an id to ``duplicated_id_<original>_<generated>``.
   Those renames are surfaced as warnings; nothing is changed.
2. Id value sanitization. xml:id values that are not valid NCNames in the
   restricted ASCII form ``[A-Za-z_][A-Za-z0-9_-]*`` are rewritten in place.
"""

from typing import List, Optional
import logging
import re
import string

from lxml import etree

from richtext_core.diagnostics import Diagnostic, Severity, field_label
from richtext_core.xml.utils import XML_ID, get_xml_id, iter_identified

logger = logging.getLogger(__name__)

DUPLICATED_ID_PREFIX = "duplicated_id_"
REWRITE_PREFIX = "rewrite_"

FIRST_CHAR_WHITELIST = string.ascii_letters + "_"
CHAR_WHITELIST = string.digits + string.ascii_letters + "_-"

# Whitelisted first characters all map onto the same marker.
_VALID_MARKER = "a"
_FIRST_CHAR_MAP = str.maketrans(FIRST_CHAR_WHITELIST, _VALID_MARKER * len(FIRST_CHAR_WHITELIST))
_DISALLOWED = re.compile(r"[^0-9A-Za-z_\-]")


def original_of_duplicated_id(value: str) -> str:
    """
    Recover the colliding id from a ``duplicated_id_<original>_<suffix>`` value.

    >>> original_of_duplicated_id("duplicated_id_foo_bar_idm45226413447104")
    'foo_bar'
    """
    start = value.find(DUPLICATED_ID_PREFIX) + len(DUPLICATED_ID_PREFIX)
    end = value.rfind("_")
    if end < start:
        return value[start:]
    return value[start:end]


def report_duplicate_ids(tree: etree._ElementTree,
                         content_field_id: Optional[int] = None) -> List[Diagnostic]:
    """
    Emit one warning per element whose xml:id carries the duplicate marker.

    Returns:
        Warnings naming the recovered original id and the generated id
    """
    label = field_label(content_field_id)
    diagnostics = []

    for elem in iter_identified(tree.getroot()):
        value = get_xml_id(elem)
        if DUPLICATED_ID_PREFIX not in value:
            continue
        duplicated = original_of_duplicated_id(value)
        diagnostics.append(Diagnostic(
            Severity.WARNING,
            f"Duplicated id in original ezxmltext for contentobject_attribute.id={label}, "
            f"automatically generated new id : {duplicated} --> {value}",
            content_field_id,
        ))

    return diagnostics


def is_invalid_id(value: str) -> bool:
    """
    Check an id value against the first and trailing character whitelists.

    Empty values are never reported.
    """
    if not value:
        return False
    if value[0].translate(_FIRST_CHAR_MAP) != _VALID_MARKER:
        return True
    return any(ch not in CHAR_WHITELIST for ch in value[1:])


def rewrite_id(value: str) -> str:
    """Prefix the value with ``rewrite_`` and replace disallowed characters by ``_``."""
    return _DISALLOWED.sub("_", REWRITE_PREFIX + value)


def sanitize_id_values(tree: etree._ElementTree,
                       content_field_id: Optional[int] = None) -> List[Diagnostic]:
    """
    Rewrite every invalid xml:id in place.

    Returns:
        One warning per rewritten id, recording old and new value
    """
    label = field_label(content_field_id)
    diagnostics = []

    for elem in list(iter_identified(tree.getroot())):
        value = get_xml_id(elem)
        if not is_invalid_id(value):
            continue
        new_value = rewrite_id(value)
        elem.set(XML_ID, new_value)
        diagnostics.append(Diagnostic(
            Severity.WARNING,
            f"Replaced non-validating id value in richtext for contentobject_attribute.id={label}, "
            f"changed from : {value} --> {new_value}",
            content_field_id,
        ))

    if diagnostics:
        logger.debug(f"Rewrote {len(diagnostics)} id value(s)")
    return diagnostics
