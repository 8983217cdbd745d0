"""
Rotation Selector - Stable Per-Patient Phrase Variation

This module picks the intro prefix, closing sentence and POC opener a note
must use. Successive notes for the same patient walk each pool in order, so
consecutive notes read differently while any single request is
deterministic once its picks are made.

Algorithm:
    first call for (subject_key, len(pool))  → uniformly random index
    every later call                         → (previous index + 1) mod len(pool)

Subject keys:
    "{label}::intro"                 → SUMMARY_INTRO_PREFIXES
    "{label}::closePT" / "::closeOT" → PT / OT summary closers
    "{label}::pocPT"   / "::pocOT"   → PT / OT POC openers

Usage:
    selector = RotationSelector()
    picks = selector.pick_for_visit("Patient #1", Discipline.PT)

Author: Shubham Singh
Date: January 2026
"""

import random
from typing import Optional, Sequence, TypeVar

from loguru import logger

from visit_note_generation.core.constants import (
    OT_POC_OPENERS,
    OT_SUMMARY_CLOSERS,
    PT_POC_OPENERS,
    PT_SUMMARY_CLOSERS,
    SUMMARY_INTRO_PREFIXES,
)
from visit_note_generation.core.enums import Discipline
from visit_note_generation.core.models import RotationPicks
from visit_note_generation.rotation.rotation_store import InMemoryRotationStore, RotationStore

T = TypeVar("T")


# =============================================================================
# STAGE 1: ROTATION SELECTOR
# =============================================================================


class RotationSelector:
    """
    Picks phrase variants per subject from fixed pools.

    What it does:
        Advances a rotation index per (subject_key, pool_length) held in an
        injected RotationStore and returns the pool element at that index.

    When to use:
        - Once per request, before the prompt is built
        - In tests with a seeded random.Random for reproducible first picks

    Example:
        >>> selector = RotationSelector(rng=random.Random(7))
        >>> selector.pick("Patient #1::intro", ["a", "b", "c"])
    """

    def __init__(self, store: Optional[RotationStore] = None, rng: Optional[random.Random] = None):
        """
        Args:
            store: Rotation index storage (defaults to a fresh in-memory store)
            rng: Random source for first picks (defaults to the module RNG)
        """
        self._store = store if store is not None else InMemoryRotationStore()
        self._rng = rng or random.Random()

    # =========================================================================
    # STAGE 2: GENERIC PICK
    # =========================================================================

    def pick(self, subject_key: str, pool: Sequence[T]) -> T:
        """
        Return the next element of pool for subject_key.

        Raises:
            ValueError: If pool is empty
        """
        size = len(pool)
        if size == 0:
            raise ValueError(f"Cannot rotate over an empty pool (subject_key={subject_key!r})")

        def _next_index(previous: Optional[int]) -> int:
            if previous is None:
                return self._rng.randrange(size)
            return (previous + 1) % size

        index = self._store.advance((subject_key, size), _next_index)
        return pool[index]

    # =========================================================================
    # STAGE 3: VISIT PICKS
    # =========================================================================

    def pick_for_visit(self, patient_label: str, discipline: Discipline) -> RotationPicks:
        """
        Make the three picks a visit note needs.

        Args:
            patient_label: Subject identifier
            discipline: PT or OT; selects the closer and POC opener pools

        Returns:
            RotationPicks carrying intro prefix, closing sentence and POC opener
        """
        discipline = Discipline.from_value(discipline)
        is_ot = discipline is Discipline.OT

        intro_prefix = self.pick(f"{patient_label}::intro", SUMMARY_INTRO_PREFIXES)
        closing_sentence = self.pick(
            f"{patient_label}::close{discipline.value}",
            OT_SUMMARY_CLOSERS if is_ot else PT_SUMMARY_CLOSERS,
        )
        poc_opener = self.pick(
            f"{patient_label}::poc{discipline.value}",
            OT_POC_OPENERS if is_ot else PT_POC_OPENERS,
        )

        logger.debug(
            f"Rotation picks | Patient: {patient_label} | Discipline: {discipline.value} | "
            f"Intro: {intro_prefix!r} | POC opener: {poc_opener!r}"
        )

        return RotationPicks(
            intro_prefix=intro_prefix,
            closing_sentence=closing_sentence,
            poc_opener=poc_opener,
            discipline=discipline,
        )

    @property
    def store(self) -> RotationStore:
        """Access to the underlying rotation store."""
        return self._store
