import random
from typing import List, Optional, Sequence, Union

import pytest

from visit_note_generation.core.config import PipelineConfiguration
from visit_note_generation.core.constants import (
    OT_POC_OPENERS,
    OT_SUMMARY_CLOSERS,
    PT_POC_OPENERS,
    PT_SUMMARY_CLOSERS,
    SUMMARY_INTRO_PREFIXES,
)
from visit_note_generation.core.enums import Discipline
from visit_note_generation.core.models import RotationPicks
from visit_note_generation.pipeline import VisitNotePipeline
from visit_note_generation.rotation import InMemoryRotationStore, RotationSelector


class ZeroRandom(random.Random):
    """First rotation pick is always index 0."""

    def randrange(self, *args, **kwargs):
        return 0


class FakeOracle:
    """Scripted generation oracle that records every call."""

    provider_name = "fake"
    model_name = "fake-model"

    def __init__(self, responses: Sequence[Union[str, Exception]] = ()):
        self._responses = list(responses)
        self.calls: List[dict] = []

    def queue(self, *responses: Union[str, Exception]) -> None:
        self._responses.extend(responses)

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "temperature": temperature, "system_instruction": system_instruction}
        )
        if not self._responses:
            raise AssertionError("FakeOracle called more times than scripted")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)


NEUTRAL_BODY = (
    "Pt completed TherEx with min VCs for form.",
    "Pt progressed reps without increase in symptoms.",
    "Pt required rest breaks between sets.",
)


def build_note(
    picks: RotationPicks,
    subjective: str = "Pt reports decreased stiffness since last session.",
    body: Sequence[str] = NEUTRAL_BODY,
    intro_rest: str = "participated in skilled tx focused on mobility.",
    closing: Optional[str] = None,
    poc: Optional[str] = None,
) -> str:
    """Render a three-section note that passes format checks for picks by default."""
    prefix = picks.intro_prefix if picks.intro_prefix.endswith(" ") else picks.intro_prefix + " "
    sentences = [prefix + intro_rest, *body, closing or picks.closing_sentence]
    summary = " ".join(sentences)
    return f"Subjective\n{subjective}\n\nSummary\n{summary}\n\nPOC\n{poc or picks.expected_poc}"


@pytest.fixture
def pt_picks() -> RotationPicks:
    return RotationPicks(
        intro_prefix=SUMMARY_INTRO_PREFIXES[0],
        closing_sentence=PT_SUMMARY_CLOSERS[0],
        poc_opener=PT_POC_OPENERS[0],
        discipline=Discipline.PT,
    )


@pytest.fixture
def ot_picks() -> RotationPicks:
    return RotationPicks(
        intro_prefix=SUMMARY_INTRO_PREFIXES[0],
        closing_sentence=OT_SUMMARY_CLOSERS[0],
        poc_opener=OT_POC_OPENERS[0],
        discipline=Discipline.OT,
    )


@pytest.fixture
def config() -> PipelineConfiguration:
    return PipelineConfiguration(openai_api_key="test-key")


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def selector() -> RotationSelector:
    return RotationSelector(store=InMemoryRotationStore(), rng=ZeroRandom())


@pytest.fixture
def pipeline(config, oracle, selector) -> VisitNotePipeline:
    return VisitNotePipeline(config, llm_client=oracle, rotation_selector=selector)
