"""
Base Validation Classes
=======================

Abstract base class for the validation framework. Validators check a
converted document and return a list of violation messages; they never
decide whether the document is emitted.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional
import logging

from lxml import etree

logger = logging.getLogger(__name__)


class BaseValidator(ABC):
    """
    Abstract base class for validators.

    Example:
        class NoEmptyParaValidator(BaseValidator):
            def validate(self, tree):
                return [f"Empty para at line {p.sourceline}"
                        for p in tree.iter("{http://docbook.org/ns/docbook}para")
                        if not len(p) and not (p.text or "").strip()]
    """

    @abstractmethod
    def validate(self, tree: etree._ElementTree) -> List[str]:
        """
        Validate a document.

        Args:
            tree: Document to validate

        Returns:
            Violation messages; empty when the document is valid
        """

    def validate_string(self, xml_string: str) -> List[str]:
        """
        Validate XML from a string.

        Args:
            xml_string: XML content as string

        Returns:
            Violation messages, including a syntax error message if the
            string is not well-formed
        """
        try:
            root = etree.fromstring(xml_string.encode('utf-8'))
        except etree.XMLSyntaxError as e:
            return [f"XML Syntax Error: {e}"]
        return self.validate(root.getroottree())

    @property
    def schema_type(self) -> str:
        """Return the type of schema this validator uses (e.g., 'RelaxNG', 'XSD')."""
        return "Unknown"

    @property
    def schema_path(self) -> Optional[Path]:
        """Return the path to the schema file (if applicable)."""
        return None
