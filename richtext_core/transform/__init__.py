"""
Transformation Framework
========================

Structural conversion of legacy XmlText into RichText.

Components:
- Converter / Aggregate: document-to-document capability and its composition
- PreNormalize and its passes: tree rewrites applied before XSLT
- XsltConverter: priority-ordered stylesheet conversion
- reparse: serialize and parse again to normalize the XSLT output
"""

from richtext_core.transform.base import (
    Converter,
    Aggregate,
)

from richtext_core.transform.prenormalize import (
    PreNormalize,
    ExpandingToRichText,
    ExpandingList,
    EmbedLinking,
)

from richtext_core.transform.xslt import (
    StylesheetSpec,
    XsltConverter,
    order_stylesheets,
    load_xslt_transform,
    apply_xslt_transform,
)

from richtext_core.transform.reparser import (
    ReparseOutcome,
    reparse,
)

__all__ = [
    "Converter",
    "Aggregate",
    "PreNormalize",
    "ExpandingToRichText",
    "ExpandingList",
    "EmbedLinking",
    "StylesheetSpec",
    "XsltConverter",
    "order_stylesheets",
    "load_xslt_transform",
    "apply_xslt_transform",
    "ReparseOutcome",
    "reparse",
]
