"""
Diagnostics
===========

Diagnostic records produced by the conversion stages, and the collector
that forwards them to a logger sink while keeping them for the result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import logging


class Severity(Enum):
    WARNING = "warning"
    ERROR = "error"


def field_label(content_field_id: Optional[int]) -> str:
    """Render a content field id for messages; unknown ids become "[unknown]"."""
    if content_field_id is None:
        return "[unknown]"
    return str(content_field_id)


def _null_logger() -> logging.Logger:
    # Built outside the logging registry so it never picks up global handlers.
    null = logging.Logger("richtext_core.null")
    null.addHandler(logging.NullHandler())
    null.propagate = False
    return null


NULL_LOGGER = _null_logger()


@dataclass
class Diagnostic:
    """
    A single warning or error raised while converting one document.

    Attributes:
        severity: Severity.WARNING or Severity.ERROR
        message: Human readable description
        content_field_id: Field the document belongs to (None if unknown)
        context: Structured payload such as the serialized result or input
    """
    severity: Severity
    message: str
    content_field_id: Optional[int] = None
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def field_label(self) -> str:
        return field_label(self.content_field_id)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


class DiagnosticCollector:
    """
    Collects diagnostics and forwards each one to a logger sink.

    Warnings are sent as ``sink.warning(message)``; errors as
    ``sink.error(message, extra={"context": context})``.
    """

    def __init__(self, sink: Optional[logging.Logger] = None):
        self.sink = sink if sink is not None else NULL_LOGGER
        self.diagnostics: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> Diagnostic:
        self.diagnostics.append(diagnostic)
        if diagnostic.is_error:
            self.sink.error(diagnostic.message, extra={'context': diagnostic.context})
        else:
            self.sink.warning(diagnostic.message)
        return diagnostic

    def extend(self, diagnostics: List[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def warning(self, message: str, content_field_id: Optional[int] = None) -> Diagnostic:
        return self.add(Diagnostic(Severity.WARNING, message, content_field_id))

    def error(self, message: str, content_field_id: Optional[int] = None,
              context: Optional[Dict[str, Any]] = None) -> Diagnostic:
        return self.add(Diagnostic(Severity.ERROR, message, content_field_id, context or {}))


@dataclass
class ConversionResult:
    """
    Outcome of one conversion call.

    Attributes:
        output: Serialized RichText document, or None when re-parsing failed
        diagnostics: Every warning and error raised during the conversion
        validation_errors: Schema and schematron violations of the output
        embeds_changed: Number of embed nodes whose image marker was toggled
    """
    output: Optional[str] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    embeds_changed: int = 0

    @property
    def succeeded(self) -> bool:
        return self.output is not None

    @property
    def is_valid(self) -> bool:
        return self.succeeded and not self.validation_errors

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    def summary(self) -> str:
        """Generate a text summary of the conversion."""
        if not self.succeeded:
            status = "Conversion FAILED - converted output could not be parsed"
        elif self.validation_errors:
            status = f"Conversion completed with {len(self.validation_errors)} validation error(s)"
        else:
            status = "Conversion PASSED - output is valid"

        lines = [
            status,
            f"Warnings: {len(self.warnings)}",
            f"Errors: {len(self.errors)}",
            f"Embeds retagged: {self.embeds_changed}",
        ]
        for error in self.validation_errors:
            lines.append(f"  {error}")
        return "\n".join(lines)
