"""
RichText Core Library
=====================

Converts legacy XmlText rich-text documents into validated RichText
(DocBook flavored) documents:

- Input sanitizing (comment stripping, empty embed detection)
- Pre-normalization and priority-ordered XSLT conversion
- xml:id reconciliation (duplicate reporting, value rewriting)
- Embed image classification against a content repository
- Re-parse normalization
- Advisory RelaxNG / XSD / Schematron validation

Architecture
------------

    richtext_core/
    ├── xml/           - Namespaces and lxml helpers
    ├── fixing/        - Sanitizing and id reconciliation passes
    ├── transform/     - Pre-normalization, XSLT, re-parse
    ├── mapping/       - Repository collaborator and embed classification
    ├── validation/    - Schema validation framework
    ├── config/        - Configuration management
    ├── resources/     - Built-in stylesheets and schemas
    ├── converter.py   - Pipeline orchestrator
    └── cli.py         - Command line entry point

Usage
-----

    from lxml import etree
    from richtext_core import RichTextConverter, StaticRepository

    converter = RichTextConverter(StaticRepository({10: 5}, {42: 10}))
    converter.set_image_content_types([5])

    result = converter.convert_document(etree.parse("field.xml"),
                                        check_id_values=True,
                                        content_field_id=1234)
    if result.succeeded:
        print(result.output)
    for diagnostic in result.diagnostics:
        print(diagnostic.severity.value, diagnostic.message)

"""

__version__ = "1.0.0"

from richtext_core.converter import (
    RichTextConverter,
    ArtifactState,
)

from richtext_core.diagnostics import (
    Diagnostic,
    DiagnosticCollector,
    ConversionResult,
    Severity,
    NULL_LOGGER,
)

from richtext_core.exceptions import (
    RichTextError,
    ConfigurationError,
    ValidatorConfigurationError,
    ConversionError,
    StructuralConversionError,
)

from richtext_core.mapping.repository import (
    ContentInfo,
    Location,
    Found,
    NotFound,
    Repository,
    StaticRepository,
)

from richtext_core.transform.xslt import StylesheetSpec

from richtext_core.config.settings import (
    ConverterConfig,
    load_config,
    save_config,
)

__all__ = [
    # Version
    "__version__",
    # Converter
    "RichTextConverter",
    "ArtifactState",
    # Diagnostics
    "Diagnostic",
    "DiagnosticCollector",
    "ConversionResult",
    "Severity",
    "NULL_LOGGER",
    # Errors
    "RichTextError",
    "ConfigurationError",
    "ValidatorConfigurationError",
    "ConversionError",
    "StructuralConversionError",
    # Repository
    "ContentInfo",
    "Location",
    "Found",
    "NotFound",
    "Repository",
    "StaticRepository",
    # Transform
    "StylesheetSpec",
    # Config
    "ConverterConfig",
    "load_config",
    "save_config",
]
