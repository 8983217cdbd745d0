"""
Enumerations for Visit Note Generation

This module defines the enumeration types used throughout the visit note
generation pipeline.

Enumeration Categories:
    Discipline       → Rehab discipline the note is written for (PT / OT)
    LLMProvider      → Which generation oracle backs the pipeline
    PipelineStage    → Named stages of the generate/repair state machine

Author: Shubham Singh
Date: January 2026
"""

from enum import Enum


# =============================================================================
# STAGE 1: DISCIPLINE ENUMERATION
# =============================================================================
# PT and OT notes share the same three-section structure but differ in the
# closing phrase, the POC header and the required POC content.


class Discipline(str, Enum):
    """
    Rehab discipline for a visit note.

    What it does:
        Carries the discipline-specific literals that the prompt builder and
        the format validator both need, so the two can never disagree.

    When to use:
        - When building prompts (closing phrase, POC line)
        - When validating the POC line and the Summary closer
        - When deciding whether content (muscle) enforcement runs (PT only)
    """

    PT = "PT"
    """Physical therapy. Content enforcement applies."""

    OT = "OT"
    """Occupational therapy. Format enforcement only."""

    @classmethod
    def from_value(cls, value) -> "Discipline":
        """
        Resolve a loosely-typed discipline value.

        Anything other than "OT" (case-insensitive, surrounding whitespace
        ignored) resolves to PT, matching the HTTP contract default.
        """
        if isinstance(value, Discipline):
            return value
        normalized = str(value or "PT").strip().upper()
        return cls.OT if normalized == "OT" else cls.PT

    @property
    def closing_phrase(self) -> str:
        """Fixed substring the last Summary sentence must contain."""
        return f"Continued skilled {self.value} remains indicated"

    @property
    def poc_header(self) -> str:
        """Literal the POC line must start with."""
        return f"{self.value} POC:"

    @property
    def poc_required_content(self) -> str:
        """Required POC content tail, ending in 'to meet goals.'."""
        if self is Discipline.OT:
            return (
                "TherAct, ADL training, functional training, UE function/coordination, "
                "safety/energy conservation, injury prevention to meet goals."
            )
        return (
            "TherEx, TherAct, MT, functional training, fall/safety, "
            "injury prevention to meet goals."
        )


# =============================================================================
# STAGE 2: LLM PROVIDER ENUMERATION
# =============================================================================


class LLMProvider(str, Enum):
    """Supported generation oracle providers."""

    OPENAI = "openai"
    GEMINI = "gemini"


# =============================================================================
# STAGE 3: PIPELINE STAGES
# =============================================================================
# Names used in logs and on VisitNote metadata. They mirror the states of the
# repair state machine in pipeline.py.


class PipelineStage(str, Enum):
    """States of the generate / validate / repair state machine."""

    DRAFTED = "DRAFTED"
    FORMAT_CHECKED = "FORMAT_CHECKED"
    FORMAT_REPAIRED = "FORMAT_REPAIRED"
    CONTENT_CHECKED = "CONTENT_CHECKED"
    CONTENT_REPAIRED = "CONTENT_REPAIRED"
    PUBLISHED = "PUBLISHED"
    PUBLISHED_WITH_DEBUG = "PUBLISHED_WITH_DEBUG"
    HARD_FAIL = "HARD_FAIL"
