"""
Content Validator - PT Muscle and Technique Specificity

For PT notes, checks that the Summary names the specific tissues or
techniques the detected topics call for. Content failures are never
terminal: the orchestrator repairs once and otherwise publishes with debug
metadata.

Check Order (first unmet rule wins):
    shoulder → neck → low back → knee + MT → patella hypomobile →
    core → low back + TherAct → posture → gait

A rule is met when ANY of its tokens appears in the Summary
(case-insensitive substring). Patella hypomobility instead matches the GPM
pattern ("GPM III-IV", hyphen optional); "GPM 3-4" does not count.

Author: Shubham Singh
Date: January 2026
"""

from dataclasses import dataclass
from typing import Callable, Tuple

from visit_note_generation.core.models import TopicFlags, ValidationResult
from visit_note_generation.topics.constraint_compiler import CONTENT_RULES_BY_NAME


@dataclass(frozen=True)
class ContentCheck:
    applies: Callable[[TopicFlags], bool]
    satisfied: Callable[[str], bool]
    reason: str


def _met(rule_name: str) -> Callable[[str], bool]:
    return CONTENT_RULES_BY_NAME[rule_name].is_met


CONTENT_CHECKS: Tuple[ContentCheck, ...] = (
    ContentCheck(
        applies=lambda t: t.shoulder,
        satisfied=_met("shoulder"),
        reason=(
            "PT visit summary: shoulder topic requires explicit muscles "
            "(supraspinatus, deltoid, infraspinatus, teres minor/major, lats)."
        ),
    ),
    ContentCheck(
        applies=lambda t: t.neck,
        satisfied=_met("neck"),
        reason=(
            "PT visit summary: neck topic requires explicit muscles "
            "(suboccipitals, posterior cervical, UT, levator scap, SCM, pec minor, lats)."
        ),
    ),
    ContentCheck(
        applies=lambda t: t.low_back,
        satisfied=_met("low_back"),
        reason=(
            "PT visit summary: LBP topic requires explicit muscles "
            "(lumbar paraspinals, QL, multifidi, glute med, TFL, piriformis, HS)."
        ),
    ),
    ContentCheck(
        applies=lambda t: t.knee and t.mentions_manual_therapy,
        satisfied=_met("knee"),
        reason=(
            "PT visit summary: knee + MT topic requires explicit tissues "
            "(ITB, distal quads, popliteus, distal HS, proximal medial gastroc)."
        ),
    ),
    ContentCheck(
        applies=lambda t: t.patella_hypomobile,
        satisfied=_met("patella_hypomobile"),
        reason=(
            "PT visit summary: patella hypomobile requires GPM III-IV patellar mobs "
            "in all directions."
        ),
    ),
    ContentCheck(
        applies=lambda t: t.mentions_core,
        satisfied=_met("core"),
        reason=(
            "PT visit summary: core/abdominal mention requires core activation / "
            "abd stabilizer training."
        ),
    ),
    ContentCheck(
        applies=lambda t: t.low_back and t.mentions_therapeutic_activity,
        satisfied=_met("low_back_therapeutic_activity"),
        reason=(
            "PT visit summary: LBP + TherAct requires TherAct functional training detail "
            "(STS/transfers/hip hinge/lifting mechanics/etc.)."
        ),
    ),
    ContentCheck(
        applies=lambda t: t.poor_posture,
        satisfied=_met("posture"),
        reason=(
            "PT visit summary: posture topic requires postural training + T-spine/upper "
            "back strengthening + pec minor stretching."
        ),
    ),
    ContentCheck(
        applies=lambda t: t.gait_impairment,
        satisfied=_met("gait"),
        reason=(
            "PT visit summary: gait impairment requires gait training/education emphasizing "
            "step/stride length and reciprocal pattern."
        ),
    ),
)


def validate_content(summary: str, flags: TopicFlags) -> ValidationResult:
    """
    Check a PT Summary for the tissue/technique mentions its topics require.

    Args:
        summary: Summary section text
        flags: Topics detected in the instruction

    Returns:
        ValidationResult with the first unmet rule's reason, if any
    """
    text = str(summary or "")
    for check in CONTENT_CHECKS:
        if check.applies(flags) and not check.satisfied(text):
            return ValidationResult.failed(check.reason)
    return ValidationResult.passed()
