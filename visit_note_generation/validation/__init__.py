"""
Validation Layer - Note Structure and Content Checks

Submodules:
    section_parser.py    → parse_sections, sentence helpers
    format_validator.py  → FormatValidator / validate_format
    content_validator.py → validate_content (PT only)

Validators never raise for rule violations; they return ValidationResult.

This layer depends on: core, topics
This layer is used by: pipeline

Author: Shubham Singh
Date: January 2026
"""

from visit_note_generation.validation.section_parser import (
    parse_sections,
    split_sentences,
    count_sentences,
    last_sentence,
)
from visit_note_generation.validation.format_validator import FormatValidator, validate_format
from visit_note_generation.validation.content_validator import validate_content

__all__ = [
    "parse_sections",
    "split_sentences",
    "count_sentences",
    "last_sentence",
    "FormatValidator",
    "validate_format",
    "validate_content",
]
