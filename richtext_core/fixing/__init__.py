"""
Fixing Framework
================

Tree clean-up passes run around the structural conversion.

Components:
- strip_comments / check_empty_embed_references: legacy input sanitizing
- report_duplicate_ids / sanitize_id_values: xml:id reconciliation
"""

from richtext_core.fixing.sanitizer import (
    strip_comments,
    check_empty_embed_references,
)

from richtext_core.fixing.ids import (
    report_duplicate_ids,
    sanitize_id_values,
    original_of_duplicated_id,
    is_invalid_id,
    rewrite_id,
)

__all__ = [
    # Input sanitizing
    "strip_comments",
    "check_empty_embed_references",
    # Id reconciliation
    "report_duplicate_ids",
    "sanitize_id_values",
    "original_of_duplicated_id",
    "is_invalid_id",
    "rewrite_id",
]
