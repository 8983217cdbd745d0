"""
Generation Layer - Oracle Prompt Construction

Submodules:
    prompt_builder.py → PromptBuilder, ExtraConstraints, clean_user_text

This layer depends on: core
This layer is used by: pipeline

Author: Shubham Singh
Date: January 2026
"""

from visit_note_generation.generation.prompt_builder import (
    PromptBuilder,
    ExtraConstraints,
    clean_user_text,
)

__all__ = [
    "PromptBuilder",
    "ExtraConstraints",
    "clean_user_text",
]
