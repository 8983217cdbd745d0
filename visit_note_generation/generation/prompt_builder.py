"""
Prompt Builder - Visit Note Generation and Repair Prompts

This module constructs the prompts sent to the generation oracle. Every
structural rule the Format Validator enforces is stated in the prompt, using
the same constants, so the oracle is told exactly what will be checked.

Prompt Types:
    build_generation_prompt → First draft of a note
    build_repair_prompt     → Fix a failing note (format, or content with
                              EXTRA Summary constraints)
    build_clean_prompt      → Conservative rewrite of raw dictation

Pipeline Position:
    Rotation → Topics → [PromptBuilder] → Oracle → Validation
                         ^^^^^^^^^^^^^
                         You are here

Author: Shubham Singh
Date: January 2026
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from visit_note_generation.core.constants import BULLET_GLYPHS, SUBJECTIVE_STARTERS
from visit_note_generation.core.models import (
    ConstraintSet,
    RotationPicks,
    VisitRequest,
    normalize_spaces,
)


# =============================================================================
# STAGE 1: EXTRA CONSTRAINTS
# =============================================================================


@dataclass(frozen=True)
class ExtraConstraints:
    """
    Additional Summary constraints for a content-focused repair.

    Attributes:
        reason: The Content Validator failure reason
        directives: Every compiled directive, in compiler order
    """

    reason: str
    directives: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_constraint_set(cls, reason: str, constraints: ConstraintSet) -> "ExtraConstraints":
        return cls(reason=reason, directives=tuple(constraints.directives))

    def render(self) -> str:
        """Block embedded under "- EXTRA Summary constraints:"."""
        bullets = "\n  ".join(f"- {directive}" for directive in self.directives)
        return (
            f"{self.reason}\n"
            f"  You MUST follow these topic-based content rules if applicable:\n"
            f"  {bullets}"
        )


# =============================================================================
# STAGE 2: PROMPT BUILDER
# =============================================================================


class PromptBuilder:
    """
    Builds oracle prompts for visit notes.

    Pure: the same request and picks always produce the same prompt text.

    Example:
        >>> builder = PromptBuilder()
        >>> prompt = builder.build_generation_prompt(request, picks)
        >>> "User instruction:" in prompt
        True
    """

    # =========================================================================
    # STAGE 2.1: GENERATION PROMPT
    # =========================================================================

    def build_generation_prompt(self, request: VisitRequest, picks: RotationPicks) -> str:
        """
        Build the first-draft prompt.

        Args:
            request: Normalized visit request
            picks: Rotation picks the note must use verbatim

        Returns:
            Prompt text
        """
        discipline = picks.discipline.value
        starters = ", ".join(SUBJECTIVE_STARTERS)

        prompt = f"""
Write a {discipline} visit note with EXACTLY 3 sections in this order:

Subjective
(one sentence)

Summary
(5 to 7 sentences)

POC
(one line)

FORMAT (must follow exactly):
- Output must contain ONLY these 3 section headers: Subjective, Summary, POC.
- Each header is on its own line (no colon).
- Exactly ONE blank line between sections.
- No bullets or numbering anywhere.
- Do not output any extra text before Subjective or after POC.

SUBJECTIVE RULES:
- Exactly ONE sentence.
- Must be patient-reported only.
- Must start with one of: {starters}.
- Must NOT say "tolerates tx well" or include objective measures.

SUMMARY RULES:
- Exactly 5 to 7 sentences.
- Do NOT write "The patient" or any third-person pronouns: they/their/them/theirs/themselves (case-insensitive).
- Refer to the person only as "Pt" (never they/their).
- No arrows (↑ ↓).
- Use abbrev where appropriate.
- Do NOT start the Summary with generic banned openers (e.g. "Pt tolerated treatment well").
- FIRST Summary sentence MUST start EXACTLY with this prefix:
  {picks.intro_prefix}
- LAST Summary sentence MUST be EXACTLY this sentence:
  {picks.closing_sentence}

POC RULES:
- POC must be ONE line only.
- Must start with: "{picks.discipline.poc_header}"
- Must use this exact opener immediately after header: "{picks.poc_opener}"
- Must include ALL required elements and end with "to meet goals."
- Required POC content:
  {picks.discipline.poc_required_content}

No-hallucination:
- Only use details explicitly present in user instruction; no new numbers/devices/vitals/diagnoses.

User instruction:
{request.user_text}

Patient label:
{request.patient_label}
"""
        return prompt.strip()

    # =========================================================================
    # STAGE 2.2: REPAIR PROMPT
    # =========================================================================

    def build_repair_prompt(
        self,
        request: VisitRequest,
        bad_output: str,
        picks: RotationPicks,
        extra_constraints: Optional[ExtraConstraints] = None,
    ) -> str:
        """
        Build a repair prompt for a failing note.

        Args:
            request: Normalized visit request (instruction embedded unchanged)
            bad_output: The oracle output that failed validation
            picks: Rotation picks of the original draft
            extra_constraints: Content repair block; omitted for format repair

        Returns:
            Prompt text
        """
        starters = ", ".join(SUBJECTIVE_STARTERS)
        extra = ""
        if extra_constraints is not None:
            extra = f"- EXTRA Summary constraints:\n  {extra_constraints.render()}\n"

        prompt = f"""
You must FIX the note to comply with ALL constraints. Do not add facts.

Return ONLY the corrected note with EXACTLY 3 sections:
Subjective
Summary
POC

Constraints to enforce:
- Subjective: ONE sentence, patient-reported only, must start with one of:
  {starters}
- Summary: 5-7 sentences, no arrows, no bullets/numbering.
- Summary: must NOT contain "The patient" or they/their/them/theirs/themselves. Use "Pt" only.
- Summary first sentence must start with:
  {picks.intro_prefix}
- Summary last sentence MUST be exactly:
  {picks.closing_sentence}
{extra}

- POC: ONE line, must be exactly:
  {picks.expected_poc}

User instruction:
{request.user_text}

Bad output:
{bad_output}

Now output the corrected note only.
"""
        return prompt.strip()

    # =========================================================================
    # STAGE 2.3: CLEAN PROMPT
    # =========================================================================

    def build_clean_prompt(self, text: str) -> str:
        """Prompt asking for a conservative rewrite of locally cleaned text."""
        prompt = f"""
Clean this note text conservatively:
- Remove obvious duplication
- Normalize spacing
- Do not add facts
Return only the cleaned text.

TEXT:
{text}
"""
        return prompt.strip()


# =============================================================================
# STAGE 3: LOCAL TEXT CLEANING
# =============================================================================

_BULLET_GLYPH_PATTERN = re.compile(f"[{re.escape(BULLET_GLYPHS)}]")


def clean_user_text(raw_text: Optional[str]) -> str:
    """
    Conservative local clean of dictated text.

    Bullet glyphs become "-", lines are trimmed, blank lines and
    case-insensitive duplicate lines are dropped (first occurrence wins),
    then whitespace is normalized.
    """
    text = _BULLET_GLYPH_PATTERN.sub("-", str(raw_text or ""))

    seen = set()
    kept = []
    for line in re.split(r"\r?\n", text):
        line = line.strip()
        if not line:
            continue
        key = line.lower()
        if key in seen:
            continue
        seen.add(key)
        kept.append(line)

    return normalize_spaces("\n".join(kept))
