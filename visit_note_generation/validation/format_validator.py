"""
Format Validator - Structural Contract of a Visit Note

This module checks a note against every structural rule, in a fixed order,
stopping at the first violation. The reason strings are operator-facing and
are returned to API callers verbatim.

Check Order:
    1. Three sections parse
    2. Subjective: exactly one sentence
    3. Subjective: allowed starter
    4. Subjective: no "tolerates tx well"
    5. Summary: 5-7 sentences
    6. Summary: no arrows
    7. Summary: no bullets / numbering
    8. Summary: no "the patient" / third-person pronouns (configurable)
    9. Summary: no banned generic opener
    10. Summary: exact intro prefix
    11. Summary: exact closing sentence
    12. Summary: closing sentence contains the discipline closing phrase
    13. POC: single line
    14. POC: exact expected line

Pipeline Position:
    Oracle → [FormatValidator] → ContentValidator → Publish
              ^^^^^^^^^^^^^^^
              You are here

Author: Shubham Singh
Date: January 2026
"""

import re
from typing import Union

from visit_note_generation.core.constants import (
    ARROW_PATTERN,
    BANNED_SUMMARY_OPENERS,
    BULLET_PATTERN,
    NUMBERING_PATTERN,
    SUBJECTIVE_STARTERS,
    SUMMARY_MAX_SENTENCES,
    SUMMARY_MIN_SENTENCES,
    THIRD_PERSON_PATTERN,
    TOLERATES_TX_WELL_PATTERN,
)
from visit_note_generation.core.models import ParsedSections, RotationPicks, ValidationResult
from visit_note_generation.validation.section_parser import (
    count_sentences,
    last_sentence,
    parse_sections,
)


# =============================================================================
# STAGE 1: COMPILED PATTERNS
# =============================================================================

_TOLERATES_TX_WELL = re.compile(TOLERATES_TX_WELL_PATTERN, re.IGNORECASE)
_ARROWS = re.compile(ARROW_PATTERN)
_BULLETS = re.compile(BULLET_PATTERN, re.MULTILINE)
_NUMBERING = re.compile(NUMBERING_PATTERN, re.MULTILINE)
_THIRD_PERSON = re.compile(THIRD_PERSON_PATTERN, re.IGNORECASE)


# =============================================================================
# STAGE 2: FORMAT VALIDATOR
# =============================================================================


class FormatValidator:
    """
    Validates note structure against the rotation picks of its request.

    What it does:
        Runs the ordered, short-circuiting structural checks and returns a
        ValidationResult. Never raises for rule violations.

    When to use:
        - After every oracle call that produces a note
        - Before publishing anything

    Example:
        >>> validator = FormatValidator()
        >>> result = validator.validate(raw_text, picks)
        >>> if not result:
        ...     print(result.reason)
    """

    def __init__(self, enforce_pronoun_ban: bool = True):
        """
        Args:
            enforce_pronoun_ban: Reject "the patient" and they/their/them/
                theirs/themselves in the Summary
        """
        self._enforce_pronoun_ban = enforce_pronoun_ban

    def validate(
        self, note: Union[str, ParsedSections, None], picks: RotationPicks
    ) -> ValidationResult:
        """
        Validate a note.

        Args:
            note: Raw note text, or already-parsed sections
            picks: Expected intro prefix, closing sentence and POC opener

        Returns:
            ValidationResult with the first failing reason, if any
        """
        sections = note if isinstance(note, ParsedSections) else parse_sections(note)
        if sections is None:
            return ValidationResult.failed(
                "Could not parse 3 sections (Subjective/Summary/POC) with required spacing."
            )

        result = self._check_subjective(sections.subjective)
        if not result:
            return result

        result = self._check_summary(sections.summary, picks)
        if not result:
            return result

        return self._check_poc(sections.poc, picks)

    # =========================================================================
    # STAGE 3: SECTION CHECKS
    # =========================================================================

    def _check_subjective(self, subjective: str) -> ValidationResult:
        if count_sentences(subjective) != 1:
            return ValidationResult.failed("Subjective must be exactly 1 sentence.")

        if not any(subjective.startswith(starter) for starter in SUBJECTIVE_STARTERS):
            return ValidationResult.failed("Subjective must start with an allowed starter.")

        if _TOLERATES_TX_WELL.search(subjective):
            return ValidationResult.failed('Subjective must not say "tolerates tx well".')

        return ValidationResult.passed()

    def _check_summary(self, summary: str, picks: RotationPicks) -> ValidationResult:
        sentences = count_sentences(summary)
        if sentences < SUMMARY_MIN_SENTENCES or sentences > SUMMARY_MAX_SENTENCES:
            return ValidationResult.failed("Summary must be 5 to 7 sentences.")

        if _ARROWS.search(summary):
            return ValidationResult.failed("Summary must not contain arrows (↑/↓).")

        if _BULLETS.search(summary) or _NUMBERING.search(summary):
            return ValidationResult.failed("Summary must not contain bullets or numbering.")

        if self._enforce_pronoun_ban and _THIRD_PERSON.search(summary):
            return ValidationResult.failed(
                'Summary must not contain "The patient" or third-person pronouns. Use "Pt" only.'
            )

        lowered = summary.strip().lower()
        if any(lowered.startswith(opener) for opener in BANNED_SUMMARY_OPENERS):
            return ValidationResult.failed("Summary starts with a banned generic opener.")

        if not summary.startswith(picks.intro_prefix):
            return ValidationResult.failed(
                "First Summary sentence must start with required intro prefix."
            )

        closing = last_sentence(summary)
        if closing != picks.closing_sentence:
            return ValidationResult.failed(
                "Summary must end with exact required closing sentence."
            )

        if picks.discipline.closing_phrase not in closing:
            return ValidationResult.failed("Summary must end with required closing phrase.")

        return ValidationResult.passed()

    def _check_poc(self, poc: str, picks: RotationPicks) -> ValidationResult:
        if "\n" in poc:
            return ValidationResult.failed("POC must be one line.")

        expected = picks.expected_poc
        if poc != expected:
            return ValidationResult.failed(
                f"POC must match exact template.\nExpected: {expected}\nGot: {poc}"
            )

        return ValidationResult.passed()

    @property
    def enforce_pronoun_ban(self) -> bool:
        return self._enforce_pronoun_ban


# =============================================================================
# STAGE 4: FUNCTIONAL API
# =============================================================================

_default_validator = FormatValidator()


def validate_format(note: Union[str, ParsedSections, None], picks: RotationPicks) -> ValidationResult:
    """Validate with the default (most constrained) configuration."""
    return _default_validator.validate(note, picks)
