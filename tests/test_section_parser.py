from visit_note_generation.validation import count_sentences, last_sentence, parse_sections
from tests.conftest import build_note


def test_parses_well_formed_note(pt_picks) -> None:
    sections = parse_sections(build_note(pt_picks))

    assert sections is not None
    assert sections.subjective == "Pt reports decreased stiffness since last session."
    assert sections.summary.endswith(pt_picks.closing_sentence)
    assert sections.poc == pt_picks.expected_poc


def test_render_round_trips(pt_picks) -> None:
    text = build_note(pt_picks)
    assert parse_sections(text).render() == text


def test_surrounding_whitespace_is_ignored(pt_picks) -> None:
    assert parse_sections("\n\n  " + build_note(pt_picks) + "\n\n") is not None


def test_missing_blank_line_between_sections_fails() -> None:
    assert parse_sections("Subjective\nPt reports pain.\nSummary\nText.\n\nPOC\nPT POC: x") is None


def test_text_before_subjective_fails(pt_picks) -> None:
    assert parse_sections("Here is the note:\n" + build_note(pt_picks)) is None


def test_header_with_colon_fails() -> None:
    assert parse_sections("Subjective:\nPt reports pain.\n\nSummary\nText.\n\nPOC\nPT POC: x") is None


def test_empty_section_fails() -> None:
    assert parse_sections("Subjective\n \n\nSummary\nText.\n\nPOC\nPT POC: x") is None


def test_empty_or_none_input_fails() -> None:
    assert parse_sections("") is None
    assert parse_sections(None) is None


def test_sentence_helpers() -> None:
    assert count_sentences("") == 0
    assert count_sentences("One. Two! Three?") == 3
    assert count_sentences("No terminal punctuation") == 1
    assert last_sentence("First one. Last one.") == "Last one."
    assert last_sentence("") == ""


def test_abbreviations_count_as_sentence_ends() -> None:
    assert count_sentences("Pt walked approx. 50 ft today.") == 2
