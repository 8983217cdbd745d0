import pytest

from visit_note_generation.core.enums import Discipline
from visit_note_generation.core.models import TopicFlags
from visit_note_generation.topics import compile_constraints, detect_topics
from visit_note_generation.topics.constraint_compiler import CONTENT_RULES, CONTENT_RULES_BY_NAME
from visit_note_generation.validation import validate_content


@pytest.mark.parametrize(
    "text, flag",
    [
        ("Pt c/o neck pain after driving", "neck"),
        ("Cervical stiffness noted", "neck"),
        ("Chronic LBP with sciatica", "low_back"),
        ("Lumbar flexion limited", "low_back"),
        ("Rotator cuff tendinopathy", "shoulder"),
        ("Knee OA, stiffness in AM", "knee"),
        ("Manual therapy to lower leg", "mentions_manual_therapy"),
        ("STM to calf", "mentions_manual_therapy"),
        ("TherAct for STS", "mentions_therapeutic_activity"),
        ("Core weakness", "mentions_core"),
        ("Patella hypomobile in all planes", "patella_hypomobile"),
        ("Forward head posture", "poor_posture"),
        ("Trendelenburg on L", "gait_impairment"),
    ],
)
def test_detects_topic(text: str, flag: str) -> None:
    assert flag in detect_topics(text).active()


def test_empty_text_sets_no_flags() -> None:
    assert detect_topics("") == TopicFlags()
    assert detect_topics("   \n\t ") == TopicFlags()
    assert not detect_topics("").has_topics


def test_matching_is_case_insensitive() -> None:
    assert detect_topics("NECK PAIN").neck
    assert detect_topics("Lbp").low_back


def test_negation_is_not_handled() -> None:
    assert detect_topics("No neck pain today").neck


def test_adding_text_never_clears_flags() -> None:
    base = detect_topics("Pt c/o neck pain")
    extended = detect_topics("Pt c/o neck pain. Also knee pain and poor posture.")

    for name in base.active():
        assert getattr(extended, name)
    assert extended.knee and extended.poor_posture


def test_unrelated_text_sets_no_flags() -> None:
    assert not detect_topics("Pt reports feeling well overall").has_topics


# ---------------------------------------------------------------------------
# Constraint compiler
# ---------------------------------------------------------------------------


def test_ot_compiles_to_empty_set() -> None:
    flags = TopicFlags(neck=True, low_back=True, mentions_core=True)
    assert compile_constraints(flags, Discipline.OT).is_empty


def test_no_topics_compiles_to_empty_set() -> None:
    assert compile_constraints(TopicFlags(), Discipline.PT).is_empty


def test_directives_follow_fixed_priority_order() -> None:
    flags = TopicFlags(
        neck=True,
        low_back=True,
        shoulder=True,
        knee=True,
        mentions_manual_therapy=True,
        mentions_therapeutic_activity=True,
        mentions_core=True,
        patella_hypomobile=True,
        poor_posture=True,
        gait_impairment=True,
    )
    constraints = compile_constraints(flags, Discipline.PT)

    prefixes = [d.split(":")[0] for d in constraints.directives]
    assert prefixes == [
        "If neck/cervical topic",
        "If LBP/lumbar topic",
        "If LBP and TherAct mentioned",
        "If core/abdominal mentioned",
        "If shoulder topic",
        "If knee topic and MT/STM referenced",
        "If patella hypomobile mentioned",
        "If poor posture/forward head mentioned",
        "If gait impairment/Trendelenburg mentioned",
        "If MT/STM is mentioned anywhere",
    ]


def test_patella_rule_does_not_require_knee_topic() -> None:
    constraints = compile_constraints(TopicFlags(patella_hypomobile=True), Discipline.PT)
    assert len(constraints) == 1
    assert "GPM III-IV" in constraints.directives[0]


def test_therapeutic_activity_alone_adds_no_directive() -> None:
    flags = TopicFlags(mentions_therapeutic_activity=True)
    assert compile_constraints(flags, Discipline.PT).is_empty


def test_compiler_is_deterministic() -> None:
    flags = detect_topics("LBP with TherAct lifting, core weakness, STM")
    assert compile_constraints(flags, Discipline.PT) == compile_constraints(flags, Discipline.PT)


def test_rule_tokens_are_lowercase() -> None:
    neck = CONTENT_RULES_BY_NAME["neck"]
    assert "suboccip" in neck.tokens and "scm" in neck.tokens
    for rule in CONTENT_RULES:
        assert all(token == token.lower() for token in rule.tokens)


@pytest.mark.parametrize(
    "summary, met",
    [
        ("Patellar mobs GPM III-IV in all directions.", True),
        ("patellar mobs gpm iiiiv", True),
        ("Patellar mobs GPMIII-IV", True),
        ("Patellar mobs GPM III IV", False),
        ("Patellar mobs GPM 3-4", False),
    ],
)
def test_patella_rule_and_validator_agree_on_gpm_forms(summary, met) -> None:
    assert CONTENT_RULES_BY_NAME["patella_hypomobile"].is_met(summary) is met
    result = validate_content(summary, TopicFlags(patella_hypomobile=True))
    assert result.ok is met
