"""
Validation Framework Tests

Run with: pytest tests/test_validation.py -v
"""

import pytest
from lxml import etree

from richtext_core.config.settings import CORE_SCHEMA, CORE_SCHEMATRON
from richtext_core.exceptions import ValidatorConfigurationError
from richtext_core.validation import GrammarValidator, SchematronValidator, SchemaValidator, load_validator
from richtext_core.xml.utils import DOCBOOK_NS, XML_ID, XLINK_HREF

VALID_RICHTEXT = """<?xml version="1.0" encoding="UTF-8"?>
<section xmlns="http://docbook.org/ns/docbook"
         xmlns:xlink="http://www.w3.org/1999/xlink"
         xmlns:ezxhtml="http://ez.no/xmlns/ezpublish/docbook/xhtml"
         version="5.0-variant ezpublish-1.0">
  <title ezxhtml:level="1">Title</title>
  <para>Hello <emphasis role="strong">world</emphasis> and <link xlink:href="ezurl://3" xlink:show="none">docs</link></para>
  <ezembed xlink:href="ezcontent://10" view="embed" ezxhtml:class="ez-embed-type-image">
    <ezconfig><ezvalue key="size">medium</ezvalue></ezconfig>
  </ezembed>
</section>
"""

ROOT_MUST_BE_FOO = """<element name="foo" xmlns="http://relaxng.org/ns/structure/1.0"><empty/></element>"""

NO_EMPTY_PARA = """<schema xmlns="http://purl.oclc.org/dsdl/schematron">
  <ns prefix="d" uri="http://docbook.org/ns/docbook"/>
  <pattern id="no-empty-para">
    <rule context="d:para">
      <assert test="normalize-space(.) != ''">Paragraph must not be empty</assert>
    </rule>
  </pattern>
</schema>
"""

SECTION_XSD = """<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://docbook.org/ns/docbook" elementFormDefault="qualified">
  <xs:element name="section">
    <xs:complexType>
      <xs:sequence>
        <xs:any minOccurs="0" maxOccurs="unbounded" processContents="skip"/>
      </xs:sequence>
      <xs:anyAttribute processContents="skip"/>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""


def richtext():
    return etree.ElementTree(etree.fromstring(VALID_RICHTEXT.encode("utf-8")))


def para(tree):
    return tree.getroot().find(f"{{{DOCBOOK_NS}}}para")


@pytest.fixture
def schema_dir(tmp_path):
    (tmp_path / "foo.rng").write_text(ROOT_MUST_BE_FOO, encoding="utf-8")
    (tmp_path / "para.sch").write_text(NO_EMPTY_PARA, encoding="utf-8")
    (tmp_path / "section.xsd").write_text(SECTION_XSD, encoding="utf-8")
    return tmp_path


class TestCoreSchemas:
    """Tests for the built-in grammar and schematron."""

    def test_valid_document(self):
        """A well formed RichText document passes both core resources."""
        validator = SchemaValidator([CORE_SCHEMA, CORE_SCHEMATRON])
        assert validator.validate(richtext()) == []

    def test_grammar_rejects_unknown_element(self):
        tree = richtext()
        etree.SubElement(tree.getroot(), f"{{{DOCBOOK_NS}}}unknown")
        errors = load_validator(CORE_SCHEMA).validate(tree)
        assert errors
        assert all(":" in e for e in errors)

    def test_schematron_reports_duplicate_ids(self):
        """Repeated xml:id values are reported with their location."""
        tree = richtext()
        para(tree).set(XML_ID, "same")
        tree.getroot().find(f"{{{DOCBOOK_NS}}}title").set(XML_ID, "same")

        errors = load_validator(CORE_SCHEMATRON).validate(tree)
        assert len(errors) == 2
        assert all('Value of xml:id "same" is not unique.' in e for e in errors)
        assert errors[0].startswith("/section[1]/")

    def test_schematron_reports_bad_embed_reference(self):
        tree = richtext()
        tree.getroot().find(f"{{{DOCBOOK_NS}}}ezembed").set(XLINK_HREF, "ezcontent://abc")
        errors = load_validator(CORE_SCHEMATRON).validate(tree)
        assert len(errors) == 1
        assert 'Embed reference "ezcontent://abc"' in errors[0]


class TestLoadValidator:
    """Tests for validator dispatch on file extension."""

    def test_dispatch(self, schema_dir):
        assert isinstance(load_validator(schema_dir / "foo.rng"), GrammarValidator)
        assert load_validator(schema_dir / "section.xsd").schema_type == "XSD"
        assert isinstance(load_validator(schema_dir / "para.sch"), SchematronValidator)
        assert load_validator(CORE_SCHEMATRON).schema_type == "Schematron"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidatorConfigurationError, match="not found"):
            load_validator(tmp_path / "missing.rng")

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "schema.dtd"
        path.write_text("<!ELEMENT section ANY>", encoding="utf-8")
        with pytest.raises(ValidatorConfigurationError, match="Unsupported"):
            load_validator(path)

    def test_malformed_grammar(self, tmp_path):
        path = tmp_path / "broken.rng"
        path.write_text('<element xmlns="http://relaxng.org/ns/structure/1.0"/>', encoding="utf-8")
        with pytest.raises(ValidatorConfigurationError):
            load_validator(path)


class TestSchemaValidator:
    """Tests for ordered multi-schema validation."""

    def test_source_schematron(self, schema_dir):
        """ISO schematron sources report failed asserts by their text."""
        tree = richtext()
        empty = etree.SubElement(tree.getroot(), f"{{{DOCBOOK_NS}}}para")
        empty.text = " "

        errors = load_validator(schema_dir / "para.sch").validate(tree)
        assert len(errors) == 1
        assert errors[0].endswith("Paragraph must not be empty")

    def test_xsd(self, schema_dir):
        validator = load_validator(schema_dir / "section.xsd")
        assert validator.validate(richtext()) == []
        assert validator.validate_string("<other/>")

    def test_violations_in_path_order(self, schema_dir):
        """Errors of earlier resources come first."""
        tree = richtext()
        etree.SubElement(tree.getroot(), f"{{{DOCBOOK_NS}}}para")

        validator = SchemaValidator([schema_dir / "foo.rng", schema_dir / "para.sch"])
        errors = validator.validate(tree)

        assert len(errors) >= 2
        assert errors[-1].endswith("Paragraph must not be empty")
        assert "foo" in errors[0]
        assert validator.schema_type == "RelaxNG+Schematron"

    def test_validate_string_syntax_error(self):
        validator = SchemaValidator([CORE_SCHEMA])
        assert validator.validate_string("<section>")[0].startswith("XML Syntax Error")
