"""
Core Layer - Domain Models, Enums, Constants and Configuration

This layer contains PURE, side-effect-free components that form the foundation
of the visit note generation system. No dependencies beyond the standard
library, except python-dotenv for configuration loading.

Submodules:
    models.py     → Data structures (VisitRequest, RotationPicks, VisitNote)
    enums.py      → Enumerations (Discipline, LLMProvider, PipelineStage)
    constants.py  → Phrase pools, allow/ban lists, topic keywords
    config.py     → Configuration dataclass
    exceptions.py → Domain-specific exceptions

Dependency Rule:
    This layer depends on NOTHING else in the package.
    All other layers may depend on this layer.

Author: Shubham Singh
Date: January 2026
"""

from visit_note_generation.core.models import (
    VisitRequest,
    RotationPicks,
    TopicFlags,
    ConstraintSet,
    ParsedSections,
    ValidationResult,
    VisitNote,
    normalize_spaces,
    normalize_newlines,
)
from visit_note_generation.core.enums import (
    Discipline,
    LLMProvider,
    PipelineStage,
)
from visit_note_generation.core.config import PipelineConfiguration
from visit_note_generation.core.exceptions import (
    VisitNoteGenerationError,
    ConfigurationError,
    InputError,
    GenerationError,
    LLMError,
    LLMRateLimitError,
    LLMContentFilteredError,
    NoteValidationError,
    FormatValidationFailedError,
    ContentRepairFormatError,
)

__all__ = [
    # Models
    "VisitRequest",
    "RotationPicks",
    "TopicFlags",
    "ConstraintSet",
    "ParsedSections",
    "ValidationResult",
    "VisitNote",
    "normalize_spaces",
    "normalize_newlines",
    # Enums
    "Discipline",
    "LLMProvider",
    "PipelineStage",
    # Configuration
    "PipelineConfiguration",
    # Exceptions
    "VisitNoteGenerationError",
    "ConfigurationError",
    "InputError",
    "GenerationError",
    "LLMError",
    "LLMRateLimitError",
    "LLMContentFilteredError",
    "NoteValidationError",
    "FormatValidationFailedError",
    "ContentRepairFormatError",
]
