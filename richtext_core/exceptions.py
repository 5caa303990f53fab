"""
Exception hierarchy for the RichText conversion pipeline.

Only StructuralConversionError escapes RichTextConverter.convert(); every
other anomaly is reported as a Diagnostic.
"""

from typing import List, Optional


class RichTextError(Exception):
    """Base class for all errors raised by richtext_core."""


class ConfigurationError(RichTextError):
    """Invalid converter configuration (config file or repository mapping)."""


class ValidatorConfigurationError(RichTextError):
    """A schema resource could not be loaded or is of an unsupported type."""


class ConversionError(RichTextError):
    """Base class for conversion failures."""


class StructuralConversionError(ConversionError):
    """
    Raised when the pre-normalization or XSLT stage cannot produce a document.

    Attributes:
        errors: Messages collected from the libxslt error log
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        return base + "\n" + "\n".join(f"  {e}" for e in self.errors)
