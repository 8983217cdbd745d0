"""
Topics Layer - Topic Detection and Content Constraint Compilation

Submodules:
    topic_detector.py      → detect_topics (keyword matching)
    constraint_compiler.py → compile_constraints (ordered rule table)

This layer depends on: core
This layer is used by: validation, pipeline

Author: Shubham Singh
Date: January 2026
"""

from visit_note_generation.topics.topic_detector import detect_topics, includes_any
from visit_note_generation.topics.constraint_compiler import (
    CONTENT_RULES,
    ContentRule,
    compile_constraints,
)

__all__ = [
    "detect_topics",
    "includes_any",
    "compile_constraints",
    "CONTENT_RULES",
    "ContentRule",
]
