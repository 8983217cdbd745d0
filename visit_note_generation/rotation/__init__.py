"""
Rotation Layer - Stable Per-Patient Phrase Rotation

Submodules:
    rotation_store.py    → RotationStore protocol + in-memory implementation
    rotation_selector.py → RotationSelector (pick, pick_for_visit)

This layer depends on: core
This layer is used by: pipeline

Author: Shubham Singh
Date: January 2026
"""

from visit_note_generation.rotation.rotation_store import (
    RotationStore,
    InMemoryRotationStore,
)
from visit_note_generation.rotation.rotation_selector import RotationSelector

__all__ = [
    "RotationStore",
    "InMemoryRotationStore",
    "RotationSelector",
]
