"""
Topic Detector - Keyword-Based Topic Flags

Derives TopicFlags from the clinician instruction by case-insensitive
substring matching against the phrase lists in core.constants.TOPIC_KEYWORDS.

Matching is deliberately shallow: no stemming, no negation handling
("no neck pain" still sets neck), and every topic is evaluated
independently of the others.

Author: Shubham Singh
Date: January 2026
"""

from typing import Iterable

from visit_note_generation.core.constants import TOPIC_KEYWORDS
from visit_note_generation.core.models import TopicFlags, normalize_spaces


def includes_any(haystack: str, needles: Iterable[str]) -> bool:
    """True if any needle occurs in haystack, case-insensitively."""
    text = str(haystack or "").lower()
    return any(str(needle).lower() in text for needle in needles)


def detect_topics(user_text: str) -> TopicFlags:
    """
    Detect topics in a clinician instruction.

    Args:
        user_text: Free-form instruction (normalized here, so raw text is fine)

    Returns:
        TopicFlags with one boolean per topic; all False for empty text
    """
    text = normalize_spaces(user_text)
    if not text:
        return TopicFlags()

    return TopicFlags(
        **{topic: includes_any(text, keywords) for topic, keywords in TOPIC_KEYWORDS.items()}
    )
