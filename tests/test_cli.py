import json
import sys

import pytest
from loguru import logger

import generate_visit_note
from visit_note_generation.core.exceptions import ConfigurationError, LLMError
from tests.conftest import build_note


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def use_pipeline(monkeypatch, pipeline):
    monkeypatch.setattr(
        generate_visit_note.VisitNotePipeline,
        "from_environment",
        classmethod(lambda cls, env_file=None: pipeline),
    )
    return pipeline


def test_prints_published_note(use_pipeline, oracle, ot_picks, capsys) -> None:
    note = build_note(ot_picks)
    oracle.queue(note)

    exit_code = generate_visit_note.main(["--text", "ADL training", "--discipline", "OT"])

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == note
    assert oracle.call_count == 1


def test_blank_text_fails_without_oracle_call(use_pipeline, oracle, capsys) -> None:
    exit_code = generate_visit_note.main(["--text", "   "])

    assert exit_code == 1
    assert "userText is required." in capsys.readouterr().err
    assert oracle.call_count == 0


def test_validation_failure_prints_both_reasons(use_pipeline, oracle, capsys) -> None:
    oracle.queue("not a note", "still not a note")

    exit_code = generate_visit_note.main(["--text", "ADL training", "--discipline", "OT"])

    assert exit_code == 1
    err = capsys.readouterr().err
    detail = json.loads(err[err.rindex("[FAIL] ") + len("[FAIL] "):])
    assert detail["reason1"] and detail["reason2"]
    assert detail["raw"] == "still not a note"


def test_oracle_failure_exits_nonzero(use_pipeline, oracle, capsys) -> None:
    oracle.queue(LLMError("timeout", provider="fake"))

    assert generate_visit_note.main(["--text", "ADL training"]) == 1
    assert "Generate failed" in capsys.readouterr().err


def test_clean_mode(use_pipeline, oracle, capsys) -> None:
    oracle.queue("HEP reviewed")

    assert generate_visit_note.main(["--clean", "--text", "• HEP reviewed"]) == 0
    assert capsys.readouterr().out.strip() == "HEP reviewed"


def test_configuration_error(monkeypatch, capsys) -> None:
    def broken(cls, env_file=None):
        raise ConfigurationError("OPENAI_API_KEY is required for provider openai")

    monkeypatch.setattr(
        generate_visit_note.VisitNotePipeline, "from_environment", classmethod(broken)
    )

    assert generate_visit_note.main(["--text", "x"]) == 1
    assert "Failed to initialize pipeline" in capsys.readouterr().err
