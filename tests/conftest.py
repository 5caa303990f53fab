"""
Shared fixtures for the RichText converter tests.
"""

import logging

import pytest
from lxml import etree

from richtext_core.mapping.repository import StaticRepository
from richtext_core.xml.utils import LEGACY_CUSTOM_NS, LEGACY_IMAGE_NS, LEGACY_XHTML_NS

LEGACY_NAMESPACES = (
    f'xmlns:image="{LEGACY_IMAGE_NS}" '
    f'xmlns:xhtml="{LEGACY_XHTML_NS}" '
    f'xmlns:custom="{LEGACY_CUSTOM_NS}"'
)

SAMPLE_LEGACY = f"""<?xml version="1.0" encoding="utf-8"?>
<section {LEGACY_NAMESPACES}>
  <header>Release notes</header>
  <!-- editor note -->
  <paragraph>Hello <strong>world</strong>, see <link url_id="3">the docs</link>.</paragraph>
  <paragraph>Before<ul><li>first</li><li><paragraph>second</paragraph></li></ul>after</paragraph>
  <paragraph><embed view="embed" size="medium" object_id="10"/></paragraph>
  <paragraph>Inline <embed-inline node_id="42"/> image</paragraph>
</section>
"""

NS = {
    'd': "http://docbook.org/ns/docbook",
    'xlink': "http://www.w3.org/1999/xlink",
    'ezxhtml': "http://ez.no/xmlns/ezpublish/docbook/xhtml",
}


class RecordingHandler(logging.Handler):
    """Keeps every emitted record."""

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)

    def messages(self, level=None):
        return [r.getMessage() for r in self.records if level is None or r.levelno == level]


@pytest.fixture
def make_legacy():
    """Build a legacy XmlText document from the body of its root section."""
    def _make(body: str) -> etree._ElementTree:
        xml = f"<section {LEGACY_NAMESPACES}>{body}</section>"
        return etree.ElementTree(etree.fromstring(xml))
    return _make


@pytest.fixture
def sample_text():
    """The sample legacy document as text."""
    return SAMPLE_LEGACY


@pytest.fixture
def sample_document():
    """The sample legacy document, freshly parsed."""
    return etree.ElementTree(etree.fromstring(SAMPLE_LEGACY.encode("utf-8")))


@pytest.fixture
def repository():
    """Content 10 is an image (type 5), 11 an article (type 2); location 42 -> 10."""
    return StaticRepository(
        content_types={10: 5, 11: 2},
        locations={42: 10, 43: 11},
    )


@pytest.fixture
def recorder():
    return RecordingHandler()


@pytest.fixture
def sink(recorder):
    """A standalone logger whose records end up in ``recorder``."""
    logger = logging.Logger("richtext_core.tests.sink")
    logger.addHandler(recorder)
    logger.propagate = False
    return logger


@pytest.fixture
def ns():
    return dict(NS)
