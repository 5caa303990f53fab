"""
Base Transformation Classes
===========================

Every structural step implements the same capability: take a document
tree, return a document tree. A pipeline is an ordered list of such steps
folded over the input.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence
import logging

from lxml import etree

logger = logging.getLogger(__name__)


class Converter(ABC):
    """
    Abstract document-to-document transformation.

    Implementations may modify the given tree in place and return it, or
    return a new tree.
    """

    @abstractmethod
    def convert(self, tree: etree._ElementTree) -> etree._ElementTree:
        """
        Transform a document.

        Args:
            tree: Input document

        Returns:
            Transformed document
        """

    @property
    def name(self) -> str:
        return type(self).__name__


class Aggregate(Converter):
    """
    Applies a fixed, ordered list of converters one after the other.

    Example:
        converter = Aggregate([PreNormalize([...]), XsltConverter(...)])
        result = converter.convert(tree)
    """

    def __init__(self, converters: Sequence[Converter]):
        self._converters: List[Converter] = list(converters)

    def convert(self, tree: etree._ElementTree) -> etree._ElementTree:
        for converter in self._converters:
            logger.debug(f"Applying converter: {converter.name}")
            tree = converter.convert(tree)
        return tree

    @property
    def converters(self) -> List[Converter]:
        return list(self._converters)
