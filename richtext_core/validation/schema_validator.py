"""
Schema Validator
================

Validates RichText documents against an ordered list of schema resources.
The resource type follows from the file extension:

- ``.rng``         RelaxNG grammar
- ``.xsd``         XML Schema
- ``.sch``         ISO Schematron source
- ``.xsl/.xslt``   Schematron compiled to XSLT (produces SVRL)
"""

from pathlib import Path
from typing import List, Sequence, Union
import logging

from lxml import etree
from lxml import isoschematron

from richtext_core.exceptions import ValidatorConfigurationError
from richtext_core.validation.base import BaseValidator

logger = logging.getLogger(__name__)

SVRL_NS = "http://purl.oclc.org/dsdl/svrl"
SVRL_FINDINGS_XPATH = "//svrl:failed-assert | //svrl:successful-report"


def _format_log_entry(entry) -> str:
    return f"{entry.line}:{entry.column} {entry.message}"


class GrammarValidator(BaseValidator):
    """Validator backed by an lxml grammar (RelaxNG or XML Schema)."""

    def __init__(self, path: Path, grammar, schema_type: str):
        self._path = path
        self._grammar = grammar
        self._schema_type = schema_type

    @property
    def schema_type(self) -> str:
        return self._schema_type

    @property
    def schema_path(self) -> Path:
        return self._path

    def validate(self, tree: etree._ElementTree) -> List[str]:
        if self._grammar.validate(tree):
            return []
        return [_format_log_entry(entry) for entry in self._grammar.error_log]


class SchematronValidator(BaseValidator):
    """
    Validator running a Schematron, either from source or precompiled to XSLT.

    Every ``svrl:failed-assert`` and ``svrl:successful-report`` in the SVRL
    report is a violation; its ``svrl:text`` is the message.
    """

    def __init__(self, path: Path, compiled: bool):
        self._path = path
        self._compiled = compiled
        if compiled:
            self._transform = etree.XSLT(etree.parse(str(path)))
        else:
            self._schematron = isoschematron.Schematron(
                etree.parse(str(path)), store_report=True
            )

    @property
    def schema_type(self) -> str:
        return "Schematron"

    @property
    def schema_path(self) -> Path:
        return self._path

    def _report(self, tree: etree._ElementTree) -> etree._ElementTree:
        if self._compiled:
            return self._transform(tree)
        self._schematron.validate(tree)
        return self._schematron.validation_report

    def validate(self, tree: etree._ElementTree) -> List[str]:
        report = self._report(tree)
        violations = []
        for finding in report.xpath(SVRL_FINDINGS_XPATH, namespaces={'svrl': SVRL_NS}):
            text = finding.findtext(f"{{{SVRL_NS}}}text") or ""
            location = finding.get("location", "")
            message = " ".join(text.split())
            violations.append(f"{location}: {message}" if location else message)
        return violations


def load_validator(path: Union[str, Path]) -> BaseValidator:
    """
    Build a validator for a single schema resource.

    Raises:
        ValidatorConfigurationError: If the file is missing, malformed or of
            an unsupported type
    """
    path = Path(path)
    if not path.exists():
        raise ValidatorConfigurationError(f"Schema file not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix == '.rng':
            return GrammarValidator(path, etree.RelaxNG(etree.parse(str(path))), "RelaxNG")
        if suffix == '.xsd':
            return GrammarValidator(path, etree.XMLSchema(etree.parse(str(path))), "XSD")
        if suffix == '.sch':
            return SchematronValidator(path, compiled=False)
        if suffix in ('.xsl', '.xslt'):
            return SchematronValidator(path, compiled=True)
    except (etree.XMLSyntaxError, etree.RelaxNGParseError,
            etree.XMLSchemaParseError, etree.XSLTParseError,
            etree.SchematronParseError) as e:
        raise ValidatorConfigurationError(f"Unable to load schema {path}: {e}") from e

    raise ValidatorConfigurationError(f"Unsupported schema type: {path}")


class SchemaValidator(BaseValidator):
    """
    Runs a list of schema resources in order and concatenates their violations.

    Example:
        validator = SchemaValidator(["richtext.rng", "custom.rng", "richtext.schematron.xsl"])
        errors = validator.validate(tree)
    """

    def __init__(self, paths: Sequence[Union[str, Path]]):
        self.paths: List[Path] = [Path(p) for p in paths]
        self._validators: List[BaseValidator] = [load_validator(p) for p in self.paths]
        logger.info(f"Loaded {len(self._validators)} schema resource(s)")

    @property
    def schema_type(self) -> str:
        return "+".join(v.schema_type for v in self._validators)

    @property
    def validators(self) -> List[BaseValidator]:
        return list(self._validators)

    def validate(self, tree: etree._ElementTree) -> List[str]:
        errors: List[str] = []
        for validator in self._validators:
            found = validator.validate(tree)
            if found:
                logger.debug(f"{validator.schema_path}: {len(found)} violation(s)")
            errors.extend(found)
        return errors
