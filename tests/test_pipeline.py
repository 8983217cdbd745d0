import pytest

from visit_note_generation.core.constants import (
    CLEAN_SYSTEM_INSTRUCTION,
    CONTENT_REPAIR_SYSTEM_INSTRUCTION,
    DRAFT_SYSTEM_INSTRUCTION,
    FORMAT_REPAIR_SYSTEM_INSTRUCTION,
)
from visit_note_generation.core.config import PipelineConfiguration
from visit_note_generation.core.enums import PipelineStage
from visit_note_generation.core.exceptions import (
    ContentRepairFormatError,
    FormatValidationFailedError,
    InputError,
    LLMError,
)
from visit_note_generation.core.models import VisitRequest
from visit_note_generation.pipeline import VisitNotePipeline
from tests.conftest import build_note

NECK_REASON = (
    "PT visit summary: neck topic requires explicit muscles "
    "(suboccipitals, posterior cervical, UT, levator scap, SCM, pec minor, lats)."
)
NECK_BODY = (
    "STM performed to release suboccipitals and UT.",
    "Manual stretching to SCM and levator scap was completed.",
    "Pt required rest breaks between sets.",
)


def _neck_request(discipline: str = "PT") -> VisitRequest:
    return VisitRequest.create(user_text="Pt c/o neck pain with cervical stiffness.", discipline=discipline)


# ---------------------------------------------------------------------------
# Scenario 1: valid first draft
# ---------------------------------------------------------------------------


def test_valid_first_draft_is_published_after_one_call(pipeline, oracle, pt_picks) -> None:
    draft = build_note(pt_picks)
    oracle.queue(draft)

    note = pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    assert note.summary == draft
    assert note.debug is None
    assert note.oracle_calls == 1
    assert note.final_stage is PipelineStage.PUBLISHED
    assert note.to_response() == {"summary": draft}
    assert oracle.calls[0]["temperature"] == 0.2
    assert oracle.calls[0]["system_instruction"] == DRAFT_SYSTEM_INSTRUCTION
    assert pipeline.notes_published == 1


def test_draft_output_is_newline_normalized(pipeline, oracle, pt_picks) -> None:
    oracle.queue("\r\n" + build_note(pt_picks).replace("\n", "\r\n") + "\n\n\n")

    note = pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    assert note.summary == build_note(pt_picks)


# ---------------------------------------------------------------------------
# Scenario 2: one format repair fixes the note
# ---------------------------------------------------------------------------


def test_format_failure_is_repaired_once(pipeline, oracle, pt_picks) -> None:
    bad = build_note(pt_picks, subjective="Patient reports pain.")
    good = build_note(pt_picks)
    oracle.queue(bad, good)

    note = pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    assert note.summary == good
    assert note.format_repaired and not note.content_repaired
    assert oracle.call_count == 2
    repair_call = oracle.calls[1]
    assert repair_call["temperature"] == 0.2
    assert repair_call["system_instruction"] == FORMAT_REPAIR_SYSTEM_INSTRUCTION
    assert f"Bad output:\n{bad}" in repair_call["prompt"]
    assert "EXTRA Summary constraints" not in repair_call["prompt"]
    assert pipeline.format_repairs == 1


# ---------------------------------------------------------------------------
# Scenario 3: format still failing after repair
# ---------------------------------------------------------------------------


def test_format_failure_after_repair_is_terminal(pipeline, oracle, pt_picks) -> None:
    bad_draft = build_note(pt_picks, subjective="Patient reports pain.")
    bad_repair = "Summary without sections"
    oracle.queue(bad_draft, bad_repair)

    with pytest.raises(FormatValidationFailedError) as excinfo:
        pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    error = excinfo.value
    assert error.reason1 == "Subjective must start with an allowed starter."
    assert error.reason2 == "Could not parse 3 sections (Subjective/Summary/POC) with required spacing."
    assert error.raw == bad_repair
    assert error.to_detail() == {
        "error": "Model output failed validation after repair.",
        "reason1": error.reason1,
        "reason2": error.reason2,
        "raw": bad_repair,
    }
    assert oracle.call_count == 2
    assert pipeline.hard_failures == 1


CLOSING_REASON = "Summary must end with exact required closing sentence."
WRONG_CLOSING = "Continued skilled PT remains indicated."


def test_closing_sentence_violation_gets_one_repair_then_fails(pipeline, oracle, pt_picks) -> None:
    bad_draft = build_note(pt_picks, closing=WRONG_CLOSING)
    bad_repair = build_note(pt_picks, closing=WRONG_CLOSING, intro_rest="worked on mobility.")
    oracle.queue(bad_draft, bad_repair)

    with pytest.raises(FormatValidationFailedError) as excinfo:
        pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    assert oracle.call_count == 2
    repair_prompt = oracle.calls[1]["prompt"]
    assert f"Summary last sentence MUST be exactly:\n  {pt_picks.closing_sentence}" in repair_prompt
    assert excinfo.value.reason1 == CLOSING_REASON
    assert excinfo.value.reason2 == CLOSING_REASON
    assert excinfo.value.raw == bad_repair


# ---------------------------------------------------------------------------
# Scenario 4: PT content repair succeeds
# ---------------------------------------------------------------------------


def test_content_failure_is_repaired_with_extra_constraints(pipeline, oracle, pt_picks) -> None:
    oracle.queue(build_note(pt_picks), build_note(pt_picks, body=NECK_BODY))

    note = pipeline.generate_visit_note(_neck_request())

    assert note.debug is None
    assert note.content_repaired
    assert note.oracle_calls == 2
    assert "suboccipitals" in note.summary
    repair_call = oracle.calls[1]
    assert repair_call["temperature"] == 0.15
    assert repair_call["system_instruction"] == CONTENT_REPAIR_SYSTEM_INSTRUCTION
    assert f"- EXTRA Summary constraints:\n  {NECK_REASON}" in repair_call["prompt"]
    assert "- If neck/cervical topic:" in repair_call["prompt"]


def test_format_repair_then_content_repair_uses_three_calls(pipeline, oracle, pt_picks) -> None:
    oracle.queue(
        build_note(pt_picks, subjective="Patient reports pain."),
        build_note(pt_picks),
        build_note(pt_picks, body=NECK_BODY),
    )

    note = pipeline.generate_visit_note(_neck_request())

    assert note.oracle_calls == 3
    assert note.format_repaired and note.content_repaired
    assert [call["temperature"] for call in oracle.calls] == [0.2, 0.2, 0.15]


# ---------------------------------------------------------------------------
# Scenario 5: content still failing after repair
# ---------------------------------------------------------------------------


def test_residual_content_failure_publishes_with_debug(pipeline, oracle, pt_picks) -> None:
    still_generic = build_note(pt_picks, body=("Pt completed neck stretches.",) + NECK_BODY[2:] * 2)
    oracle.queue(build_note(pt_picks), still_generic)

    note = pipeline.generate_visit_note(_neck_request())

    assert note.summary == still_generic
    assert note.debug == {"muscleRuleFail": NECK_REASON, "muscleRuleStillFail": NECK_REASON}
    assert note.final_stage is PipelineStage.PUBLISHED_WITH_DEBUG
    assert note.to_response() == {"summary": still_generic, "debug": note.debug}
    assert pipeline.notes_with_debug == 1


def test_content_repair_that_breaks_format_is_terminal(pipeline, oracle, pt_picks) -> None:
    broken = build_note(pt_picks, body=NECK_BODY, poc="PT POC: whatever")
    oracle.queue(build_note(pt_picks), broken)

    with pytest.raises(ContentRepairFormatError) as excinfo:
        pipeline.generate_visit_note(_neck_request())

    assert excinfo.value.reason.startswith("POC must match exact template.")
    assert excinfo.value.to_detail()["error"] == "Muscle enforcement repair broke formatting constraints."
    assert excinfo.value.raw == broken


def test_empty_content_repair_falls_back_to_previous_output(pipeline, oracle, pt_picks) -> None:
    draft = build_note(pt_picks)
    oracle.queue(draft, "")

    note = pipeline.generate_visit_note(_neck_request())

    assert note.summary == draft
    assert note.debug == {"muscleRuleFail": NECK_REASON, "muscleRuleStillFail": NECK_REASON}


# ---------------------------------------------------------------------------
# Discipline and configuration gates
# ---------------------------------------------------------------------------


def test_ot_notes_skip_content_enforcement(pipeline, oracle, ot_picks) -> None:
    oracle.queue(build_note(ot_picks))

    note = pipeline.generate_visit_note(_neck_request("OT"))

    assert note.debug is None
    assert oracle.call_count == 1


def test_content_rules_can_be_disabled(oracle, selector, pt_picks) -> None:
    config = PipelineConfiguration(openai_api_key="k", enforce_content_rules=False)
    pipeline = VisitNotePipeline(config, llm_client=oracle, rotation_selector=selector)
    oracle.queue(build_note(pt_picks))

    note = pipeline.generate_visit_note(_neck_request())

    assert oracle.call_count == 1
    assert note.topics.neck


def test_pronoun_ban_follows_configuration(oracle, selector, pt_picks) -> None:
    config = PipelineConfiguration(openai_api_key="k", enforce_pronoun_ban=False)
    pipeline = VisitNotePipeline(config, llm_client=oracle, rotation_selector=selector)
    oracle.queue(build_note(pt_picks, body=("Pt said they felt better.",) + NECK_BODY[1:]))

    note = pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    assert oracle.call_count == 1
    assert "they felt better" in note.summary


def test_second_request_for_same_patient_rotates_picks(pipeline, oracle, pt_picks) -> None:
    oracle.queue(build_note(pt_picks))
    pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    oracle.queue("not a note", "still not a note")
    with pytest.raises(FormatValidationFailedError):
        pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    second_prompt = oracle.calls[1]["prompt"]
    assert pt_picks.intro_prefix not in second_prompt.split("User instruction:")[0].split("prefix:")[1]


# ---------------------------------------------------------------------------
# Failures outside validation
# ---------------------------------------------------------------------------


def test_oracle_failure_propagates_without_retry(pipeline, oracle) -> None:
    oracle.queue(LLMError("upstream down", provider="fake"))

    with pytest.raises(LLMError):
        pipeline.generate_visit_note(VisitRequest.create(user_text="HEP review"))

    assert oracle.call_count == 1


def test_empty_user_text_is_rejected_before_any_call() -> None:
    with pytest.raises(InputError) as excinfo:
        VisitRequest.create(user_text="  \n ")
    assert excinfo.value.message == "userText is required."


def test_request_defaults() -> None:
    request = VisitRequest.create(user_text="x", patient_label="   ", discipline="ot ")
    assert request.patient_label == "Patient #1"
    assert request.discipline.value == "OT"
    assert VisitRequest.create(user_text="x", discipline="speech").discipline.value == "PT"


# ---------------------------------------------------------------------------
# Conservative clean
# ---------------------------------------------------------------------------


def test_clean_text_uses_oracle_result(pipeline, oracle) -> None:
    oracle.queue("  HEP   reviewed  ")

    assert pipeline.clean_text("• HEP reviewed\n• HEP reviewed") == "HEP reviewed"
    assert oracle.calls[0]["temperature"] == 0.15
    assert oracle.calls[0]["system_instruction"] == CLEAN_SYSTEM_INSTRUCTION
    assert oracle.calls[0]["prompt"].endswith("TEXT:\n- HEP reviewed")


def test_clean_text_falls_back_to_local_clean(pipeline, oracle) -> None:
    oracle.queue("")
    assert pipeline.clean_text("• HEP reviewed\n\n• hep reviewed") == "- HEP reviewed"
