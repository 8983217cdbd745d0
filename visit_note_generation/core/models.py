"""
Domain Models for Visit Note Generation

This module defines the core data structures used throughout the visit note
generation pipeline. Request-scoped values are frozen dataclasses so a
validation pass can never mutate what the next pass reads.

Model Hierarchy:
    VisitRequest     → Normalized inbound request
    RotationPicks    → Rotation-selected phrases for one note
    TopicFlags       → Topics detected in the clinician instruction
    ConstraintSet    → Compiled content directives + lexical tokens
    ParsedSections   → Subjective / Summary / POC
    ValidationResult → Tagged success | failure-with-reason
    VisitNote        → Published outcome with metadata

Usage:
    from visit_note_generation.core.models import VisitRequest

    request = VisitRequest.create(
        user_text="Pt has neck pain and cervical stiffness",
        discipline="PT",
    )

Author: Shubham Singh
Date: January 2026
"""

import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from visit_note_generation.core.constants import DEFAULT_PATIENT_LABEL
from visit_note_generation.core.enums import Discipline, PipelineStage
from visit_note_generation.core.exceptions import InputError


# =============================================================================
# STAGE 1: TEXT NORMALIZATION
# =============================================================================
# Lives here because VisitRequest normalizes on construction and core must
# not import from higher layers.


def normalize_spaces(text: Optional[str]) -> str:
    """
    Normalize whitespace in free text.

    CRLF → LF, runs of spaces/tabs collapse to one space, three or more
    newlines collapse to a single blank line, then trim.
    """
    t = str(text or "").replace("\r\n", "\n")
    t = re.sub(r"[ \t]+", " ", t)
    t = re.sub(r"\n{3,}", "\n\n", t)
    return t.strip()


def normalize_newlines(text: Optional[str]) -> str:
    """CRLF → LF and collapse 3+ newlines; spaces are left untouched."""
    t = str(text or "").replace("\r\n", "\n")
    t = re.sub(r"\n{3,}", "\n\n", t)
    return t.strip()


# =============================================================================
# STAGE 2: VISIT REQUEST
# =============================================================================


@dataclass(frozen=True)
class VisitRequest:
    """
    Normalized inbound request for one visit note.

    Attributes:
        patient_label: Subject identifier; also the rotation subject key
        user_text: Clinician instruction, whitespace-normalized
        discipline: PT or OT
    """

    patient_label: str
    user_text: str
    discipline: Discipline = Discipline.PT

    @classmethod
    def create(
        cls,
        user_text: Optional[str],
        patient_label: Optional[str] = None,
        discipline: Any = None,
        default_label: str = DEFAULT_PATIENT_LABEL,
    ) -> "VisitRequest":
        """
        Build a request from raw values.

        Raises:
            InputError: If user_text is empty after whitespace normalization
        """
        text = normalize_spaces(user_text)
        if not text:
            raise InputError("userText")

        label = str(patient_label or "").strip() or default_label
        return cls(
            patient_label=label,
            user_text=text,
            discipline=Discipline.from_value(discipline),
        )

    @property
    def is_pt(self) -> bool:
        return self.discipline is Discipline.PT


# =============================================================================
# STAGE 3: ROTATION PICKS
# =============================================================================


@dataclass(frozen=True)
class RotationPicks:
    """
    The rotation-selected phrases a note must use verbatim.

    Passed to the prompt builder and, as the "expected" values, to the
    format validator.
    """

    intro_prefix: str
    closing_sentence: str
    poc_opener: str
    discipline: Discipline = Discipline.PT

    @property
    def expected_poc(self) -> str:
        """The exact POC line, character for character."""
        return (
            f"{self.discipline.poc_header} {self.poc_opener} "
            f"{self.discipline.poc_required_content}"
        )


# =============================================================================
# STAGE 4: TOPIC FLAGS
# =============================================================================


@dataclass(frozen=True)
class TopicFlags:
    """
    Topics evidenced by keyword matches in the clinician instruction.

    Recomputed per request; never cached.
    """

    neck: bool = False
    low_back: bool = False
    shoulder: bool = False
    knee: bool = False
    mentions_manual_therapy: bool = False
    mentions_therapeutic_activity: bool = False
    mentions_core: bool = False
    patella_hypomobile: bool = False
    poor_posture: bool = False
    gait_impairment: bool = False

    def active(self) -> List[str]:
        """Names of the flags that are set, in declaration order."""
        return [f.name for f in fields(self) if getattr(self, f.name)]

    @property
    def has_topics(self) -> bool:
        return bool(self.active())

    def to_dict(self) -> Dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# =============================================================================
# STAGE 5: CONSTRAINT SET
# =============================================================================


@dataclass(frozen=True)
class ConstraintSet:
    """
    Ordered content directives, injected verbatim into the content repair
    prompt in compiler order.
    """

    directives: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.directives

    def __len__(self) -> int:
        return len(self.directives)


# =============================================================================
# STAGE 6: PARSED SECTIONS
# =============================================================================


@dataclass(frozen=True)
class ParsedSections:
    """Three non-empty, trimmed sections of a note."""

    subjective: str
    summary: str
    poc: str

    def render(self) -> str:
        """Reassemble the canonical three-section layout."""
        return f"Subjective\n{self.subjective}\n\nSummary\n{self.summary}\n\nPOC\n{self.poc}"


# =============================================================================
# STAGE 7: VALIDATION RESULT
# =============================================================================


@dataclass(frozen=True)
class ValidationResult:
    """
    Tagged result of a validator: success, or failure with one reason.

    Reasons are operator-facing diagnostic strings and are returned to the
    caller verbatim.
    """

    ok: bool
    reason: Optional[str] = None

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, reason: str) -> "ValidationResult":
        return cls(ok=False, reason=reason)

    def __bool__(self) -> bool:
        return self.ok


# =============================================================================
# STAGE 8: VISIT NOTE (PUBLISHED OUTCOME)
# =============================================================================


@dataclass
class VisitNote:
    """
    A published visit note with generation metadata.

    Attributes:
        summary: Full note text (all three sections)
        patient_label: Subject the note was generated for
        discipline: PT or OT
        picks: Rotation phrases the note was validated against
        topics: Topic flags detected in the instruction
        oracle_calls: Number of oracle round-trips used (1-3)
        format_repaired: Whether the format repair pass ran
        content_repaired: Whether the content repair pass ran
        debug: Residual content failure reasons, if any
        final_stage: State the machine ended in
        generated_at: Publication timestamp
    """

    summary: str
    patient_label: str
    discipline: Discipline
    picks: RotationPicks
    topics: TopicFlags = field(default_factory=TopicFlags)
    oracle_calls: int = 1
    format_repaired: bool = False
    content_repaired: bool = False
    debug: Optional[Dict[str, str]] = None
    final_stage: PipelineStage = PipelineStage.PUBLISHED
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def has_debug(self) -> bool:
        return self.debug is not None

    def to_response(self) -> Dict[str, Any]:
        """HTTP response body: {summary} or {summary, debug}."""
        body: Dict[str, Any] = {"summary": self.summary}
        if self.debug is not None:
            body["debug"] = dict(self.debug)
        return body

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization / logging."""
        return {
            "summary": self.summary,
            "patient_label": self.patient_label,
            "discipline": self.discipline.value,
            "intro_prefix": self.picks.intro_prefix,
            "closing_sentence": self.picks.closing_sentence,
            "poc_opener": self.picks.poc_opener,
            "topics": self.topics.active(),
            "oracle_calls": self.oracle_calls,
            "format_repaired": self.format_repaired,
            "content_repaired": self.content_repaired,
            "debug": self.debug,
            "final_stage": self.final_stage.value,
            "generated_at": self.generated_at.isoformat(),
        }
