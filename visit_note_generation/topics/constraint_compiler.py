"""
Constraint Compiler - Topic Flags to Content Directives

Turns detected TopicFlags into an ordered ConstraintSet of imperative
directives for the content repair prompt. Each rule also carries the
lowercase tokens (or, for patella mobs, the GPM pattern) whose presence in
the Summary shows the directive was followed; the Content Validator checks
the same rules.

Rule Order (fixed; the repair prompt lists directives in this order):
    1. Neck / cervical
    2. Low back
    3. Low back + TherAct
    4. Core / abdominal
    5. Shoulder
    6. Knee (tissue naming when MT/STM is referenced)
    7. Patella hypomobile (GPM III-IV)
    8. Posture
    9. Gait
    10. MT generic-phrase ban

Content rules apply to PT only; OT always compiles to an empty set.

Author: Shubham Singh
Date: January 2026
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from visit_note_generation.core.constants import GPM_PATTERN
from visit_note_generation.core.enums import Discipline
from visit_note_generation.core.models import ConstraintSet, TopicFlags
from visit_note_generation.topics.topic_detector import includes_any


# =============================================================================
# STAGE 1: RULE DEFINITION
# =============================================================================


@dataclass(frozen=True)
class ContentRule:
    """
    One topic rule: when it applies, what to tell the oracle, and what
    proves compliance (any token, or the pattern when one is set).
    """

    name: str
    applies: Callable[[TopicFlags], bool]
    directive: str
    tokens: Tuple[str, ...]
    pattern: Optional[str] = None

    def is_met(self, summary: str) -> bool:
        if self.pattern is not None:
            return re.search(self.pattern, str(summary or ""), re.IGNORECASE) is not None
        return includes_any(summary, self.tokens)


# =============================================================================
# STAGE 2: RULE TABLE
# =============================================================================

CONTENT_RULES: Tuple[ContentRule, ...] = (
    ContentRule(
        name="neck",
        applies=lambda t: t.neck,
        directive=(
            "If neck/cervical topic: include STM to release suboccipitals, posterior cervical "
            "musculature, UT, and levator scap; include manual stretching emphasizing SCM "
            "release/stretch, pec minor stretch, lat stretch, and UT/levator scap stretch; "
            "MUST name those muscles (no 'neck muscles')."
        ),
        tokens=("suboccip", "posterior cervical", "upper trap", "levator", "scm", "pec minor", "lat"),
    ),
    ContentRule(
        name="low_back",
        applies=lambda t: t.low_back,
        directive=(
            "If LBP/lumbar topic: include STM to release lumbar paraspinals, QL, multifidi, "
            "glute med, TFL, and piriformis; include manual stretching to HS, glute med, TFL, "
            "and piriformis; MUST name those muscles (no 'back muscles')."
        ),
        tokens=("paraspinal", "ql", "multif", "glute med", "tfl", "piriformis", "hamstring"),
    ),
    ContentRule(
        name="low_back_therapeutic_activity",
        applies=lambda t: t.low_back and t.mentions_therapeutic_activity,
        directive=(
            "If LBP and TherAct mentioned: include TherAct functional training (e.g., "
            "sit-to-stand mechanics, transfer training, hip hinge/lifting mechanics, functional "
            "mobility tasks) consistent with user instruction, without adding devices or "
            "assist levels."
        ),
        tokens=(
            "sit-to-stand",
            "sit to stand",
            "transfer",
            "hip hinge",
            "lifting mechanics",
            "functional training",
        ),
    ),
    ContentRule(
        name="core",
        applies=lambda t: t.mentions_core,
        directive=(
            "If core/abdominal mentioned: include core and abd stabilizers addressed via core "
            "activation techniques and TherEx targeting trunk stabilization."
        ),
        tokens=("core activation", "abd stabil", "trunk stabil", "core stabil"),
    ),
    ContentRule(
        name="shoulder",
        applies=lambda t: t.shoulder,
        directive=(
            "If shoulder topic: MUST name supraspinatus, deltoid, infraspinatus, teres minor, "
            "teres major, and lats; if MT/STM is referenced, phrase as STM/MT to release those "
            "specific tissues (no 'shoulder region')."
        ),
        tokens=("supraspinatus", "deltoid", "infraspinatus", "teres minor", "teres major", "lat"),
    ),
    ContentRule(
        name="knee",
        applies=lambda t: t.knee,
        directive=(
            "If knee topic and MT/STM referenced: MUST name IT band, distal quads, popliteus, "
            "distal medial/lateral HS, and proximal medial gastroc (no 'knee muscles')."
        ),
        tokens=("it band", "distal quad", "popliteus", "hamstring", "gastroc"),
    ),
    ContentRule(
        name="patella_hypomobile",
        applies=lambda t: t.patella_hypomobile,
        directive=(
            "If patella hypomobile mentioned: include patellar joint mobilization using GPM "
            "III-IV in all directions to improve mobility and decrease pain."
        ),
        tokens=("gpm iii-iv", "gpm iiiiv"),
        pattern=GPM_PATTERN,
    ),
    ContentRule(
        name="posture",
        applies=lambda t: t.poor_posture,
        directive=(
            "If poor posture/forward head mentioned: include postural training for awareness, "
            "upper back/T-spine strengthening, and pec minor stretching."
        ),
        tokens=("postural", "t-spine", "upper back", "pec minor"),
    ),
    ContentRule(
        name="gait",
        applies=lambda t: t.gait_impairment,
        directive=(
            "If gait impairment/Trendelenburg mentioned: include gait training and education "
            "to reduce deviations and improve mechanics with increased step/stride length and "
            "improved reciprocal movement (as appropriate)."
        ),
        tokens=("gait training", "stride", "step length", "reciprocal"),
    ),
    ContentRule(
        name="manual_therapy",
        applies=lambda t: t.mentions_manual_therapy,
        directive=(
            "If MT/STM is mentioned anywhere: avoid generic phrases like 'address muscle "
            "tension'; name the specific tissues relevant to the region."
        ),
        tokens=(),
    ),
)

CONTENT_RULES_BY_NAME = {rule.name: rule for rule in CONTENT_RULES}


# =============================================================================
# STAGE 3: COMPILER
# =============================================================================


def compile_constraints(flags: TopicFlags, discipline: Discipline) -> ConstraintSet:
    """
    Compile topic flags into an ordered constraint set.

    Args:
        flags: Topics detected in the instruction
        discipline: PT or OT

    Returns:
        ConstraintSet; empty for OT or when no rule applies
    """
    if Discipline.from_value(discipline) is not Discipline.PT:
        return ConstraintSet()

    matched = [rule for rule in CONTENT_RULES if rule.applies(flags)]
    return ConstraintSet(directives=tuple(rule.directive for rule in matched))
