"""
Pipeline Orchestrator Tests

Run with: pytest tests/test_converter.py -v
"""

from concurrent.futures import ThreadPoolExecutor
import logging
import time

import pytest
from lxml import etree

from richtext_core import RichTextConverter, StructuralConversionError
from richtext_core.exceptions import ValidatorConfigurationError
from richtext_core.config.settings import BASE_STYLESHEET, CORE_SCHEMA, CORE_SCHEMATRON
from richtext_core.converter import ArtifactState
from richtext_core.mapping.embeds import IMAGE_CLASS
from richtext_core.transform import reparser, xslt
from richtext_core.transform.xslt import StylesheetSpec

XML_ID = "{http://www.w3.org/XML/1998/namespace}id"
EZXHTML_CLASS = "{http://ez.no/xmlns/ezpublish/docbook/xhtml}class"

TERMINATING_STYLESHEET = """<?xml version="1.0" encoding="UTF-8"?>
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:template match="paragraph">
    <xsl:message terminate="yes">cannot handle paragraphs</xsl:message>
  </xsl:template>
</xsl:stylesheet>
"""

ROOT_MUST_BE_FOO = """<element name="foo" xmlns="http://relaxng.org/ns/structure/1.0"><empty/></element>"""


def parse_output(result):
    return etree.fromstring(result.output.encode("utf-8"))


@pytest.fixture
def converter(repository, sink):
    converter = RichTextConverter(repository, logger=sink)
    converter.set_image_content_types([5, 7])
    return converter


class TestConvertDocument:
    """End-to-end conversion tests."""

    def test_sample_document(self, converter, sample_document, ns):
        """The sample converts to a valid RichText document."""
        result = converter.convert_document(sample_document, content_field_id=1)

        assert result.succeeded
        assert result.validation_errors == []
        assert result.is_valid

        root = parse_output(result)
        assert root.findtext("d:title", namespaces=ns) == "Release notes"
        assert root.find("d:itemizedlist", namespaces=ns) is not None
        assert root.find("d:para/d:link", namespaces=ns).get(
            "{http://www.w3.org/1999/xlink}href") == "ezurl://3"

    def test_embeds_are_tagged(self, converter, sample_document, ns):
        """Content 10 and location 42 resolve to image content."""
        result = converter.convert_document(sample_document)
        root = parse_output(result)

        assert result.embeds_changed == 2
        assert root.find("d:ezembed", namespaces=ns).get(EZXHTML_CLASS) == IMAGE_CLASS
        assert root.find(".//d:ezembedinline", namespaces=ns).get(EZXHTML_CLASS) == IMAGE_CLASS

    def test_no_image_types(self, converter, sample_document, ns):
        """Without image types no embed gets the marker."""
        converter.set_image_content_types([])
        result = converter.convert_document(sample_document)
        assert IMAGE_CLASS not in result.output
        assert result.embeds_changed == 0

    def test_no_repository_skips_tagging(self, sample_document):
        result = RichTextConverter().convert_document(sample_document)
        assert result.succeeded
        assert result.embeds_changed == 0

    def test_comments_stripped_from_input(self, converter, sample_document):
        """The caller's document loses its comments."""
        converter.convert_document(sample_document)
        assert sample_document.getroot().xpath(".//comment()") == []

    def test_input_otherwise_untouched(self, converter, sample_document):
        """Pre-normalization works on a copy."""
        converter.convert_document(sample_document)
        assert len(sample_document.getroot().findall("paragraph")) == 4

    def test_convert_returns_string(self, converter, sample_document):
        output = converter.convert(sample_document)
        assert output.startswith("<?xml")
        assert "http://docbook.org/ns/docbook" in output

    def test_accepts_root_element(self, converter, sample_document):
        assert converter.convert(sample_document.getroot()) is not None


class TestDiagnostics:
    """Tests for warnings and errors sent to the logger sink."""

    def test_empty_embed_warning(self, converter, make_legacy, recorder):
        converter.convert_document(make_legacy('<paragraph><embed view="embed"/></paragraph>'),
                                   content_field_id=4)
        warnings = recorder.messages(logging.WARNING)
        assert ("Warning: ezxmltext for contentobject_attribute.id=4 contains 1 "
                "embed or embed-inline tag(s) without node_id or object_id") in warnings

    def test_duplicate_ids_reported(self, converter, make_legacy, recorder):
        tree = make_legacy(
            '<paragraph xhtml:id="foo_bar">a</paragraph><paragraph xhtml:id="foo_bar">b</paragraph>'
        )
        result = converter.convert_document(tree, check_duplicate_ids=True, content_field_id=3)

        assert len(result.warnings) == 1
        assert result.warnings[0].message.startswith(
            "Duplicated id in original ezxmltext for contentobject_attribute.id=3, "
            "automatically generated new id : foo_bar --> duplicated_id_foo_bar_"
        )
        assert recorder.messages(logging.WARNING) == [result.warnings[0].message]

    def test_duplicate_ids_not_reported_by_default(self, converter, make_legacy):
        tree = make_legacy(
            '<paragraph xhtml:id="a">a</paragraph><paragraph xhtml:id="a">b</paragraph>'
        )
        assert converter.convert_document(tree).warnings == []

    def test_invalid_ids_rewritten(self, converter, make_legacy, ns):
        tree = make_legacy('<paragraph xhtml:id="1st">a</paragraph>')
        result = converter.convert_document(tree, check_id_values=True, content_field_id=2)

        para = parse_output(result).find("d:para", namespaces=ns)
        assert para.get(XML_ID) == "rewrite_1st"
        assert result.warnings[0].message == (
            "Replaced non-validating id value in richtext for contentobject_attribute.id=2, "
            "changed from : 1st --> rewrite_1st"
        )

    def test_missing_embed_target_warns(self, converter, make_legacy, recorder):
        converter.convert_document(make_legacy('<paragraph><embed object_id="999"/></paragraph>'),
                                   content_field_id=6)
        assert ("Unable to find content_id=999, referred to in embedded tag in "
                "contentobject_attribute.id=6.") in recorder.messages(logging.WARNING)


class TestFailurePolicy:
    """Tests for fatal and soft failures."""

    def test_structural_failure_raises(self, converter, recorder):
        """A non-section root cannot be converted."""
        tree = etree.ElementTree(etree.fromstring("<article><paragraph>x</paragraph></article>"))
        with pytest.raises(StructuralConversionError):
            converter.convert(tree, content_field_id=11)

        errors = [r for r in recorder.records if r.levelno == logging.ERROR]
        assert errors[0].getMessage() == "Unable to convert ezmltext for contentobject_attribute.id=11"
        assert "<article>" in errors[0].context['xmlString']

    def test_transform_exception_propagates(self, converter, make_legacy, tmp_path):
        """Errors raised while applying stylesheets reach the caller."""
        path = tmp_path / "terminate.xsl"
        path.write_text(TERMINATING_STYLESHEET, encoding="utf-8")
        converter.set_custom_stylesheets([{'path': str(path), 'priority': 10}])

        with pytest.raises(StructuralConversionError):
            converter.convert(make_legacy("<paragraph>x</paragraph>"))

    def test_reparse_failure_yields_no_output(self, converter, make_legacy, recorder, monkeypatch):
        """A re-parse failure is logged and returns an empty result."""
        monkeypatch.setattr(reparser, "serialize_document",
                            lambda tree: b"<section><para></section>")

        result = converter.convert_document(make_legacy("<paragraph>x</paragraph>"), content_field_id=5)

        assert result.output is None
        assert not result.succeeded
        assert result.errors[0].message == "Unable to convert ezmltext for contentobject_attribute.id=5"
        record = [r for r in recorder.records if r.levelno == logging.ERROR][0]
        assert set(record.context) == {'result', 'errors', 'xmlString'}

    def test_reparse_failure_convert_returns_none(self, converter, make_legacy, monkeypatch):
        monkeypatch.setattr(reparser, "serialize_document", lambda tree: b"<broken")
        assert converter.convert(make_legacy("<paragraph>x</paragraph>")) is None

    def test_invalid_id_without_rewriting_yields_no_output(self, converter, make_legacy):
        """An id that is not an NCName makes the re-parse fail unless it is rewritten."""
        tree = make_legacy('<paragraph xhtml:id="1abc">x</paragraph>')

        result = converter.convert_document(tree, content_field_id=8)

        assert result.output is None
        assert result.errors[0].message == "Unable to convert ezmltext for contentobject_attribute.id=8"
        assert 'xhtml:id="1abc"' in result.errors[0].context['xmlString']

    def test_invalid_id_with_rewriting_yields_output(self, converter, make_legacy):
        tree = make_legacy('<paragraph xhtml:id="1abc">x</paragraph>')
        assert 'xml:id="rewrite_1abc"' in converter.convert(tree, check_id_values=True)

    @pytest.mark.parametrize("content", [None, "<element"])
    def test_broken_custom_validator_never_reaches_convert(self, converter, make_legacy,
                                                           tmp_path, content):
        """A missing or malformed schema fails at configuration time."""
        schema = tmp_path / "custom.rng"
        if content is not None:
            schema.write_text(content, encoding="utf-8")

        with pytest.raises(ValidatorConfigurationError):
            converter.set_custom_validators([schema])

        assert converter.validator_paths == [CORE_SCHEMA, CORE_SCHEMATRON]
        assert converter.convert(make_legacy("<paragraph>x</paragraph>")) is not None

    def test_validation_never_blocks_output(self, converter, sample_document, recorder, tmp_path):
        """Validation errors are logged but the document is still returned."""
        schema = tmp_path / "foo.rng"
        schema.write_text(ROOT_MUST_BE_FOO, encoding="utf-8")
        converter.set_custom_validators([schema])

        result = converter.convert_document(sample_document, content_field_id=9)

        assert result.output is not None
        assert result.validation_errors
        assert not result.is_valid
        record = [r for r in recorder.records if r.levelno == logging.ERROR][0]
        assert record.getMessage() == (
            "Validation errors when converting ezxmltext for contentobject_attribute.id=9"
        )
        assert record.context['result'] == result.output
        assert record.context['errors'] == result.validation_errors


class TestConfiguration:
    """Tests for stylesheet and validator configuration."""

    def test_base_stylesheet_prepended(self, converter, tmp_path):
        converter.set_custom_stylesheets([StylesheetSpec(str(tmp_path / "a.xsl"), 10)])
        assert converter.stylesheets == [
            StylesheetSpec(str(BASE_STYLESHEET), 99),
            StylesheetSpec(str(tmp_path / "a.xsl"), 10),
        ]

    def test_default_stylesheets(self):
        assert RichTextConverter().stylesheets == [StylesheetSpec(str(BASE_STYLESHEET), 99)]

    def test_validators_bracketed_by_core_resources(self, converter, tmp_path):
        custom = tmp_path / "custom.rng"
        custom.write_text(ROOT_MUST_BE_FOO, encoding="utf-8")
        converter.set_custom_validators([custom])
        assert converter.validator_paths == [CORE_SCHEMA, custom, CORE_SCHEMATRON]

    def test_converter_rebuilt_after_stylesheet_change(self, converter):
        """Changing stylesheets drops the cached converter."""
        first = converter.get_converter()
        assert converter.get_converter() is first

        converter.set_custom_stylesheets([])
        assert converter.get_converter() is not first

    def test_validator_rebuilt_after_validator_change(self, converter):
        first = converter.get_validator()
        assert converter.get_validator() is first

        converter.set_custom_validators([])
        assert converter.get_validator() is not first

    def test_concurrent_first_use_builds_once(self, converter):
        """Concurrent callers share one converter instance."""
        with ThreadPoolExecutor(max_workers=8) as pool:
            built = list(pool.map(lambda _: converter.get_converter(), range(16)))
        assert all(c is built[0] for c in built)

    def test_concurrent_first_convert_compiles_once(self, make_legacy, monkeypatch):
        """Threads converting at the same time share one compiled stylesheet."""
        calls = []
        load = xslt.load_xslt_transform

        def slow_load(*args, **kwargs):
            calls.append(args)
            time.sleep(0.2)
            return load(*args, **kwargs)

        monkeypatch.setattr(xslt, "load_xslt_transform", slow_load)
        converter = RichTextConverter()

        with ThreadPoolExecutor(max_workers=4) as pool:
            outputs = list(pool.map(
                lambda _: converter.convert(make_legacy("<paragraph>x</paragraph>")), range(4)
            ))

        assert len(calls) == 1
        assert all(o == outputs[0] and o is not None for o in outputs)

    def test_validator_built_when_configured(self, converter, tmp_path):
        """Custom validators are loaded by the setter, not on the next conversion."""
        schema = tmp_path / "custom.rng"
        schema.write_text(ROOT_MUST_BE_FOO, encoding="utf-8")

        converter.set_custom_validators([schema])

        assert converter._validator.state is ArtifactState.CONFIGURED
        assert [v.schema_path for v in converter.get_validator().validators] == [
            CORE_SCHEMA, schema, CORE_SCHEMATRON,
        ]
