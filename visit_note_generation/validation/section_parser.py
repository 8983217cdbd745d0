"""
Section Parser - Split a Note into Subjective / Summary / POC

The layout is strict: each header alone on its line, exactly one blank line
between sections, nothing before "Subjective" or after the POC body.

Also home to the sentence helpers shared by the validators. Sentence
splitting is heuristic: a break is any whitespace following ".", "!" or
"?", so abbreviations such as "approx." count as sentence ends.

Author: Shubham Singh
Date: January 2026
"""

import re
from typing import List, Optional

from visit_note_generation.core.models import ParsedSections

SECTIONS_PATTERN = re.compile(
    r"^Subjective\s*\n([\s\S]*?)\n\nSummary\s*\n([\s\S]*?)\n\nPOC\s*\n([\s\S]*?)$"
)
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def parse_sections(text: Optional[str]) -> Optional[ParsedSections]:
    """
    Parse note text into its three sections.

    Returns:
        ParsedSections with trimmed, non-empty sections, or None when the
        layout does not match or any section is empty. Never raises.
    """
    match = SECTIONS_PATTERN.match(str(text or "").strip())
    if not match:
        return None

    subjective, summary, poc = (group.strip() for group in match.groups())
    if not subjective or not summary or not poc:
        return None

    return ParsedSections(subjective=subjective, summary=summary, poc=poc)


def split_sentences(text: Optional[str]) -> List[str]:
    """Split on whitespace that follows terminal punctuation."""
    stripped = str(text or "").strip()
    if not stripped:
        return []
    return [part for part in SENTENCE_BOUNDARY.split(stripped) if part]


def count_sentences(text: Optional[str]) -> int:
    return len(split_sentences(text))


def last_sentence(text: Optional[str]) -> str:
    """Final sentence, trimmed; empty string for empty text."""
    parts = split_sentences(text)
    return parts[-1].strip() if parts else ""
