"""
Visit Note Generation Module

Turns a clinician's free-form dictated instruction into a strictly formatted
three-section PT/OT visit note (Subjective / Summary / POC). Prose comes from
an external LLM; structure and clinical specificity are verified
mechanically and repaired in a bounded loop.

Architecture Overview:
    visit_note_generation/
    ├── core/        → Domain models, enums, constants, configuration (Layer 0 - Pure)
    ├── rotation/    → Per-patient phrase rotation (Layer 1)
    ├── topics/      → Topic detection + content constraints (Layer 2)
    ├── generation/  → Prompt construction (Layer 3)
    ├── validation/  → Section parsing, format + content checks (Layer 4)
    ├── clients/     → LLM client abstractions (Layer 5 - Infrastructure)
    ├── pipeline.py  → Repair orchestrator (Layer 6 - Public API)
    └── api.py       → FastAPI HTTP surface (Layer 7)

Quick Start:
    from visit_note_generation import VisitNotePipeline, VisitRequest

    pipeline = VisitNotePipeline.from_environment()
    note = pipeline.generate_visit_note(VisitRequest.create(user_text="..."))

Author: Shubham Singh
Date: January 2026
"""

__version__ = "1.0.0"
__author__ = "Shubham Singh"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================

# Main Entry Point
from visit_note_generation.pipeline import VisitNotePipeline

# Core Models
from visit_note_generation.core.models import (
    VisitRequest,
    RotationPicks,
    TopicFlags,
    ValidationResult,
    VisitNote,
)

# Enums
from visit_note_generation.core.enums import Discipline, LLMProvider

# Configuration
from visit_note_generation.core.config import PipelineConfiguration

__all__ = [
    # Main Entry Point (use this!)
    "VisitNotePipeline",
    # Core Models
    "VisitRequest",
    "RotationPicks",
    "TopicFlags",
    "ValidationResult",
    "VisitNote",
    # Enums
    "Discipline",
    "LLMProvider",
    # Configuration
    "PipelineConfiguration",
]
