"""
Validation Framework
====================

Advisory validation of converted RichText documents.

Components:
- BaseValidator: Abstract base class for all validators
- GrammarValidator: RelaxNG / XML Schema validation
- SchematronValidator: Schematron (source or compiled to XSLT)
- SchemaValidator: Ordered combination of schema resources
"""

from richtext_core.validation.base import BaseValidator

from richtext_core.validation.schema_validator import (
    GrammarValidator,
    SchematronValidator,
    SchemaValidator,
    load_validator,
)

__all__ = [
    "BaseValidator",
    "GrammarValidator",
    "SchematronValidator",
    "SchemaValidator",
    "load_validator",
]
