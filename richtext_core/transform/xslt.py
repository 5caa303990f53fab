"""
XSLT Converter
==============

Converts legacy XmlText documents into RichText using a main stylesheet
into which a priority-ordered list of stylesheets is imported.

Ordering
--------

Stylesheets are imported in descending priority number; entries with the
same priority keep their list order (the built-in base entry, priority 99,
is prepended and therefore comes first among equals). In XSLT a later
import takes precedence over an earlier one, so the base stylesheet is
applied first with the lowest precedence, and a stylesheet with a lower
priority number overrides templates of those with higher numbers.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union
import logging
import threading

from lxml import etree

from richtext_core.exceptions import StructuralConversionError
from richtext_core.transform.base import Converter

logger = logging.getLogger(__name__)

XSL_NS = "http://www.w3.org/1999/XSL/Transform"


@dataclass(frozen=True)
class StylesheetSpec:
    """A stylesheet path and its priority."""
    path: str
    priority: int

    @classmethod
    def from_value(cls, value: Union['StylesheetSpec', dict]) -> 'StylesheetSpec':
        if isinstance(value, StylesheetSpec):
            return value
        return cls(path=str(value['path']), priority=int(value['priority']))

    def to_dict(self) -> dict:
        return {'path': self.path, 'priority': self.priority}


def order_stylesheets(stylesheets: Sequence[StylesheetSpec]) -> List[StylesheetSpec]:
    """
    Return stylesheets in import order: descending priority, stable on ties.

    >>> [s.priority for s in order_stylesheets(
    ...     [StylesheetSpec("a", 10), StylesheetSpec("b", 99), StylesheetSpec("c", 50)])]
    [99, 50, 10]
    """
    return sorted(stylesheets, key=lambda spec: -spec.priority)


def _error_messages(error_log) -> List[str]:
    return [f"{entry.line}:{entry.column} {entry.message}" for entry in error_log]


def load_xslt_transform(main_stylesheet: Path,
                        imports: Sequence[Path] = ()) -> etree.XSLT:
    """
    Load the main stylesheet and import the given stylesheets into it.

    Args:
        main_stylesheet: Path to the main XSLT stylesheet
        imports: Stylesheets to import, lowest precedence first

    Returns:
        Compiled XSLT transform

    Raises:
        FileNotFoundError: If a stylesheet file doesn't exist
        StructuralConversionError: If a stylesheet is malformed
    """
    for path in [main_stylesheet, *imports]:
        if not path.exists():
            raise FileNotFoundError(f"XSLT stylesheet not found: {path}")

    logger.info(f"Loading XSLT stylesheet: {main_stylesheet}")
    try:
        xslt_doc = etree.parse(str(main_stylesheet))
    except etree.XMLSyntaxError as e:
        raise StructuralConversionError(
            f"Unable to parse stylesheet {main_stylesheet}", _error_messages(e.error_log)
        ) from e

    root = xslt_doc.getroot()
    # xsl:import must precede every other top-level element.
    for index, path in enumerate(imports):
        import_el = etree.Element(f"{{{XSL_NS}}}import")
        import_el.set("href", path.resolve().as_uri())
        root.insert(index, import_el)
        logger.debug(f"Importing stylesheet: {path}")

    try:
        transform = etree.XSLT(xslt_doc)
    except etree.XSLTParseError as e:
        raise StructuralConversionError(
            f"Unable to compile stylesheet {main_stylesheet}", _error_messages(e.error_log)
        ) from e

    logger.info(f"XSLT stylesheet loaded successfully ({len(imports)} import(s))")
    return transform


def apply_xslt_transform(tree: etree._ElementTree, xslt_transform: etree.XSLT,
                         **params) -> etree._ElementTree:
    """
    Apply an XSLT transformation to a document.

    Args:
        tree: Input document
        xslt_transform: Compiled XSLT transform
        **params: XSLT string parameters

    Returns:
        The XSLT result tree

    Raises:
        StructuralConversionError: If the transformation fails or yields no root
    """
    xslt_params = {k: etree.XSLT.strparam(str(v)) for k, v in params.items()}

    try:
        result = xslt_transform(tree, **xslt_params)
    except etree.XSLTApplyError as e:
        logger.error(f"XSLT transformation failed: {e}")
        raise StructuralConversionError(
            f"XSLT transformation failed: {e}", _error_messages(xslt_transform.error_log)
        ) from e

    if result.getroot() is None:
        raise StructuralConversionError(
            "XSLT transformation produced an empty document",
            _error_messages(xslt_transform.error_log),
        )

    if xslt_transform.error_log:
        logger.warning("XSLT transformation completed with warnings:")
        for entry in xslt_transform.error_log:
            logger.warning(f"  {entry}")

    return result


class XsltConverter(Converter):
    """
    Converter applying a main stylesheet with imported stylesheets.

    The transform is compiled once, on first use, even when several threads
    convert at the same time.

    Example:
        converter = XsltConverter(main, [StylesheetSpec(base, 99),
                                         StylesheetSpec("custom.xsl", 10)])
        result = converter.convert(tree)
    """

    def __init__(self, main_stylesheet: Path, stylesheets: Sequence[StylesheetSpec] = ()):
        self.main_stylesheet = Path(main_stylesheet)
        self.stylesheets: List[StylesheetSpec] = order_stylesheets(
            [StylesheetSpec.from_value(s) for s in stylesheets]
        )
        self._transform: Optional[etree.XSLT] = None
        self._lock = threading.Lock()

    @property
    def applied_order(self) -> List[str]:
        """Stylesheet paths in import order, lowest precedence first."""
        return [spec.path for spec in self.stylesheets]

    def _get_transform(self) -> etree.XSLT:
        with self._lock:
            if self._transform is None:
                self._transform = load_xslt_transform(
                    self.main_stylesheet, [Path(spec.path) for spec in self.stylesheets]
                )
            return self._transform

    def convert(self, tree: etree._ElementTree) -> etree._ElementTree:
        try:
            transform = self._get_transform()
        except FileNotFoundError as e:
            raise StructuralConversionError(str(e)) from e
        logger.debug(f"Applying XSLT with stylesheets: {self.applied_order}")
        return apply_xslt_transform(tree, transform)
