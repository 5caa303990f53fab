"""
RichText Converter
==================

Pipeline orchestrator turning a legacy XmlText document into a validated
RichText document.

Stages:

    Sanitizing -> Converting -> [duplicate id report] -> [id sanitization]
      -> Reparsing -> TaggingEmbeds -> Validating -> Done

Failure policy:

- Converting: any failure is logged with the original input and raised as
  StructuralConversionError. No output is produced.
- Reparsing: a parse failure is logged as an error diagnostic and the
  conversion returns no output, without raising.
- Validating: violations are logged as an error diagnostic; the serialized
  document is still returned.
"""

from copy import deepcopy
from enum import Enum
from pathlib import Path
from typing import Callable, Generic, Iterable, List, Optional, Sequence, TypeVar, Union
import logging
import threading

from lxml import etree

from richtext_core.config.settings import (
    BASE_STYLESHEET,
    BASE_STYLESHEET_PRIORITY,
    CORE_SCHEMA,
    CORE_SCHEMATRON,
    MAIN_STYLESHEET,
    ConverterConfig,
)
from richtext_core.diagnostics import (
    NULL_LOGGER,
    ConversionResult,
    DiagnosticCollector,
    field_label,
)
from richtext_core.exceptions import StructuralConversionError
from richtext_core.fixing.ids import report_duplicate_ids, sanitize_id_values
from richtext_core.fixing.sanitizer import check_empty_embed_references, strip_comments
from richtext_core.mapping.embeds import EmbedClassifier
from richtext_core.mapping.repository import Repository, StaticRepository
from richtext_core.transform.base import Aggregate, Converter
from richtext_core.transform.prenormalize import PreNormalize
from richtext_core.transform.reparser import reparse
from richtext_core.transform.xslt import StylesheetSpec, XsltConverter
from richtext_core.validation.base import BaseValidator
from richtext_core.validation.schema_validator import SchemaValidator
from richtext_core.xml.utils import as_tree, document_to_string

logger = logging.getLogger(__name__)

T = TypeVar("T")

Document = Union[etree._Element, etree._ElementTree]


class ArtifactState(Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"


class LazyArtifact(Generic[T]):
    """
    A cached object built on first use and dropped on reconfiguration.

    Building happens under the owner's lock, so concurrent first use builds
    the artifact once.
    """

    def __init__(self, name: str, builder: Callable[[], T], lock: threading.RLock):
        self.name = name
        self._builder = builder
        self._lock = lock
        self._value: Optional[T] = None
        self.state = ArtifactState.UNCONFIGURED

    def get(self) -> T:
        with self._lock:
            if self.state is ArtifactState.UNCONFIGURED:
                logger.debug(f"Building {self.name}")
                self._value = self._builder()
                self.state = ArtifactState.CONFIGURED
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value
            self.state = ArtifactState.CONFIGURED

    def reset(self) -> None:
        with self._lock:
            self._value = None
            self.state = ArtifactState.UNCONFIGURED


class RichTextConverter:
    """
    Converts legacy XmlText documents to RichText.

    Configuration (stylesheets, validators, image content types) is set once
    and reused across conversions. Before converting documents with embeds,
    make sure the repository can read every embedded object.

    Example:
        converter = RichTextConverter(repository, logger=logging.getLogger("migration"))
        converter.set_image_content_types([5, 7])
        converter.set_custom_stylesheets([{'path': 'custom.xsl', 'priority': 10}])

        xml = converter.convert(etree.parse("field.xml"), check_id_values=True,
                                content_field_id=1234)
    """

    def __init__(self, repository: Optional[Repository] = None,
                 logger: Optional[logging.Logger] = None,
                 image_content_types: Iterable[int] = ()):
        self.repository = repository
        self.logger = logger if logger is not None else NULL_LOGGER
        self.image_content_types = frozenset(image_content_types)

        self._lock = threading.RLock()
        self._stylesheets: LazyArtifact[List[StylesheetSpec]] = LazyArtifact(
            "stylesheets", lambda: self._merge_stylesheets([]), self._lock
        )
        self._validator_paths: LazyArtifact[List[Path]] = LazyArtifact(
            "validator paths", lambda: self._merge_validators([]), self._lock
        )
        self._converter: LazyArtifact[Converter] = LazyArtifact(
            "converter", self._build_converter, self._lock
        )
        self._validator: LazyArtifact[BaseValidator] = LazyArtifact(
            "validator", self._build_validator, self._lock
        )

    @classmethod
    def from_config(cls, config: ConverterConfig,
                    repository: Optional[Repository] = None,
                    logger: Optional[logging.Logger] = None) -> 'RichTextConverter':
        """
        Create a converter from a ConverterConfig.

        A repository is loaded from ``config.embeds.repository_file`` when
        none is given.
        """
        if repository is None and config.embeds.repository_file:
            repository = StaticRepository.from_file(Path(config.embeds.repository_file))

        converter = cls(repository, logger, config.embeds.image_content_types)
        if config.transform.custom_stylesheets:
            converter.set_custom_stylesheets(config.transform.custom_stylesheets)
        if config.validation.custom_validators:
            converter.set_custom_validators(config.validation.custom_validators)
        return converter

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @staticmethod
    def _merge_stylesheets(custom: Sequence[Union[StylesheetSpec, dict]]) -> List[StylesheetSpec]:
        base = StylesheetSpec(str(BASE_STYLESHEET), BASE_STYLESHEET_PRIORITY)
        return [base] + [StylesheetSpec.from_value(s) for s in custom]

    @staticmethod
    def _merge_validators(custom: Sequence[Union[str, Path]]) -> List[Path]:
        return [CORE_SCHEMA] + [Path(p) for p in custom] + [CORE_SCHEMATRON]

    def set_custom_stylesheets(self, stylesheets: Sequence[Union[StylesheetSpec, dict]] = ()) -> None:
        """
        Set stylesheets applied on top of the built-in base stylesheet.

        Args:
            stylesheets: StylesheetSpec objects or ``{'path': ..., 'priority': ...}``
                mappings. The base stylesheet (priority 99) is always prepended.
        """
        with self._lock:
            self._stylesheets.set(self._merge_stylesheets(stylesheets))
            self._converter.reset()

    def set_custom_validators(self, validators: Sequence[Union[str, Path]] = ()) -> None:
        """
        Set schema resources run between the core schema and the core schematron.

        The validator is rebuilt right away, so a broken resource fails here
        and the previous configuration stays in place.

        Raises:
            ValidatorConfigurationError: If a schema resource cannot be loaded
        """
        paths = self._merge_validators(validators)
        validator = SchemaValidator(paths)
        with self._lock:
            self._validator_paths.set(paths)
            self._validator.set(validator)

    def set_image_content_types(self, image_content_types: Iterable[int]) -> None:
        """Replace the list of content type ids that are considered images."""
        self.image_content_types = frozenset(image_content_types)

    @property
    def stylesheets(self) -> List[StylesheetSpec]:
        """Base and custom stylesheets, in the order they were given."""
        return list(self._stylesheets.get())

    @property
    def validator_paths(self) -> List[Path]:
        return list(self._validator_paths.get())

    def _build_converter(self) -> Converter:
        return Aggregate([
            PreNormalize.default(),
            XsltConverter(MAIN_STYLESHEET, self._stylesheets.get()),
        ])

    def _build_validator(self) -> BaseValidator:
        return SchemaValidator(self._validator_paths.get())

    def get_converter(self) -> Converter:
        return self._converter.get()

    def get_validator(self) -> BaseValidator:
        return self._validator.get()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def tag_embedded_images(self, tree: etree._ElementTree,
                            content_field_id: Optional[int] = None,
                            diagnostics: Optional[DiagnosticCollector] = None) -> int:
        """
        Add or remove the image marker on every embed of a RichText document.

        Returns:
            Number of embeds that were changed
        """
        if self.repository is None:
            logger.debug("No repository configured, skipping embed tagging")
            return 0
        collector = diagnostics if diagnostics is not None else DiagnosticCollector(self.logger)
        classifier = EmbedClassifier(self.repository, self.image_content_types, collector)
        return classifier.tag_embedded_images(tree, content_field_id)

    def validate(self, tree: etree._ElementTree) -> List[str]:
        """Validate a RichText document; returns violation messages."""
        return self.get_validator().validate(tree)

    def _convert_structure(self, tree: etree._ElementTree,
                           content_field_id: Optional[int]) -> etree._ElementTree:
        working = deepcopy(tree)
        try:
            return self.get_converter().convert(working)
        except Exception as e:
            self.logger.error(
                f"Unable to convert ezmltext for contentobject_attribute.id={field_label(content_field_id)}",
                extra={'context': {
                    'errors': str(e),
                    'xmlString': etree.tostring(tree, encoding='unicode'),
                }},
            )
            if isinstance(e, StructuralConversionError):
                raise
            raise StructuralConversionError(f"Structural conversion failed: {e}") from e

    def convert_document(self, document: Document,
                         check_duplicate_ids: bool = False,
                         check_id_values: bool = False,
                         content_field_id: Optional[int] = None) -> ConversionResult:
        """
        Convert a legacy XmlText document and report everything that happened.

        Comments are stripped from the given document in place; all other
        stages work on a copy.

        Args:
            document: Parsed legacy document (tree or root element)
            check_duplicate_ids: Report ids renamed by the base stylesheet
            check_id_values: Rewrite invalid xml:id values
            content_field_id: Field id used in diagnostic messages

        Returns:
            ConversionResult; ``output`` is None when the converted document
            could not be re-parsed

        Raises:
            StructuralConversionError: If pre-normalization or XSLT fails
        """
        tree = as_tree(document)
        collector = DiagnosticCollector(self.logger)
        result = ConversionResult(diagnostics=collector.diagnostics)

        strip_comments(tree)
        collector.extend(check_empty_embed_references(tree, content_field_id))

        converted = self._convert_structure(tree, content_field_id)

        if check_duplicate_ids:
            collector.extend(report_duplicate_ids(converted, content_field_id))
        if check_id_values:
            collector.extend(sanitize_id_values(converted, content_field_id))

        outcome = reparse(converted, tree, content_field_id)
        if not outcome.ok:
            collector.add(outcome.diagnostic)
            return result
        normalized = outcome.tree

        result.embeds_changed = self.tag_embedded_images(normalized, content_field_id, collector)

        errors = self.validate(normalized)
        result.output = document_to_string(normalized)
        result.validation_errors = errors

        if errors:
            collector.error(
                "Validation errors when converting ezxmltext for "
                f"contentobject_attribute.id={field_label(content_field_id)}",
                content_field_id,
                {
                    'result': result.output,
                    'errors': errors,
                    'xmlString': etree.tostring(tree, encoding='unicode'),
                },
            )

        logger.debug(f"Converted field {field_label(content_field_id)}: "
                     f"{len(collector.diagnostics)} diagnostic(s)")
        return result

    def convert(self, document: Document,
                check_duplicate_ids: bool = False,
                check_id_values: bool = False,
                content_field_id: Optional[int] = None) -> Optional[str]:
        """
        Convert a legacy XmlText document to a RichText XML string.

        Custom schema resources are loaded by set_custom_validators(); the
        default validator only uses the bundled resources.

        Returns:
            The serialized document (also when it has validation errors), or
            None when the converted document could not be re-parsed

        Raises:
            StructuralConversionError: If pre-normalization or XSLT fails
        """
        return self.convert_document(
            document, check_duplicate_ids, check_id_values, content_field_id
        ).output
