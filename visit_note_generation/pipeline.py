"""
Visit Note Generation Pipeline - Repair Orchestrator

This is the PUBLIC API entry point for the visit note generation system.
It coordinates rotation, topic detection, prompt building, the generation
oracle and validation into a bounded generate / validate / repair loop.

Architecture Diagram:
    ┌─────────────────────────────────────────────────────────────────────┐
    │                         VisitNotePipeline                           │
    │                         (This Orchestrator)                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   ┌──────────┐   ┌──────────┐   ┌──────────┐   ┌─────────────────┐  │
    │   │ Rotation │ → │  Prompt  │ → │  Oracle  │ → │ Format/Content  │  │
    │   └──────────┘   └──────────┘   └──────────┘   │   Validation    │  │
    │                        ↑                       └────────┬────────┘  │
    │                        └──────── repair (≤ 2) ──────────┘           │
    └─────────────────────────────────────────────────────────────────────┘

State Machine:
    DRAFTED → FORMAT_CHECKED
      ├─ fail → FORMAT_REPAIRED → pass → CONTENT stage
      │                         └ fail → HARD_FAIL (FormatValidationFailedError)
      └─ pass → CONTENT stage
    CONTENT stage (PT only)
      ├─ pass → PUBLISHED
      └─ fail → CONTENT_REPAIRED → format fail → HARD_FAIL (ContentRepairFormatError)
                                 → content pass → PUBLISHED
                                 → content fail → PUBLISHED_WITH_DEBUG

At most three oracle calls per request. Oracle errors propagate unchanged.

Usage:
    from visit_note_generation import VisitNotePipeline, VisitRequest

    pipeline = VisitNotePipeline.from_environment()
    note = pipeline.generate_visit_note(
        VisitRequest.create(user_text="Pt c/o neck pain; STM to UT", discipline="PT")
    )
    print(note.summary)

Author: Shubham Singh
Date: January 2026
"""

from typing import Optional

from loguru import logger

from visit_note_generation.clients import GeminiClient, LLMClientProtocol, OpenAIClient
from visit_note_generation.core.config import PipelineConfiguration
from visit_note_generation.core.constants import (
    CLEAN_SYSTEM_INSTRUCTION,
    CONTENT_REPAIR_SYSTEM_INSTRUCTION,
    DRAFT_SYSTEM_INSTRUCTION,
    FORMAT_REPAIR_SYSTEM_INSTRUCTION,
)
from visit_note_generation.core.enums import LLMProvider, PipelineStage
from visit_note_generation.core.exceptions import (
    ConfigurationError,
    ContentRepairFormatError,
    FormatValidationFailedError,
)
from visit_note_generation.core.models import (
    RotationPicks,
    VisitNote,
    VisitRequest,
    normalize_newlines,
    normalize_spaces,
)
from visit_note_generation.generation import ExtraConstraints, PromptBuilder, clean_user_text
from visit_note_generation.rotation import RotationSelector
from visit_note_generation.topics import compile_constraints, detect_topics
from visit_note_generation.validation import FormatValidator, parse_sections, validate_content


# =============================================================================
# STAGE 1: PIPELINE CLASS
# =============================================================================


class VisitNotePipeline:
    """
    Main orchestrator for visit note generation.

    What it does:
        Turns a VisitRequest into a published VisitNote, or raises a
        terminal validation error after the bounded repair passes.

    How it works:
        STAGE 1: Pick rotation phrases for the patient
        STAGE 2: Draft the note and check its format
        STAGE 3: Repair the format once if needed
        STAGE 4: PT only: check content, repair once if needed
        STAGE 5: Publish (with debug on residual content failure)

    Thread safety:
        One pipeline serves concurrent requests. Per-request state lives on
        the stack; the rotation store guards its own state. The counters
        below are best-effort metrics.

    Example:
        >>> pipeline = VisitNotePipeline(config, llm_client=fake_oracle)
        >>> note = pipeline.generate_visit_note(request)
        >>> note.to_response()
        {'summary': 'Subjective\\n...'}
    """

    def __init__(
        self,
        config: PipelineConfiguration,
        llm_client: Optional[LLMClientProtocol] = None,
        rotation_selector: Optional[RotationSelector] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        format_validator: Optional[FormatValidator] = None,
    ):
        """
        Initialize pipeline with configuration and optional component overrides.

        Args:
            config: Pipeline configuration
            llm_client: Optional oracle override (for testing)
            rotation_selector: Optional selector override (seeded RNG, shared store)
            prompt_builder: Optional prompt builder override
            format_validator: Optional validator override
        """
        # =====================================================================
        # STAGE 1.1: STORE CONFIGURATION
        # =====================================================================
        self._config = config

        # =====================================================================
        # STAGE 1.2: INITIALIZE COMPONENTS
        # =====================================================================
        self._llm_client = llm_client if llm_client is not None else self._create_llm_client(config)
        self._rotation = rotation_selector or RotationSelector()
        self._prompts = prompt_builder or PromptBuilder()
        self._format_validator = format_validator or FormatValidator(
            enforce_pronoun_ban=config.enforce_pronoun_ban
        )

        # =====================================================================
        # STAGE 1.3: TRACKING STATE
        # =====================================================================
        self._notes_published = 0
        self._notes_with_debug = 0
        self._format_repairs = 0
        self._content_repairs = 0
        self._hard_failures = 0

        logger.info(
            f"VisitNotePipeline initialized | "
            f"Provider: {getattr(self._llm_client, 'provider_name', 'custom')} | "
            f"Model: {getattr(self._llm_client, 'model_name', 'n/a')}"
        )

    # =========================================================================
    # STAGE 2: MAIN GENERATION API
    # =========================================================================

    def generate_visit_note(self, request: VisitRequest) -> VisitNote:
        """
        Generate, validate and (if needed) repair one visit note.

        Args:
            request: Normalized visit request

        Returns:
            Published VisitNote; `debug` is set when content rules still
            fail after the content repair

        Raises:
            FormatValidationFailedError: Format still fails after one repair
            ContentRepairFormatError: The content repair broke the format
            LLMError: The oracle failed
        """
        # =====================================================================
        # STAGE 2.1: ROTATION PICKS
        # =====================================================================
        picks = self._rotation.pick_for_visit(request.patient_label, request.discipline)

        logger.info(
            f"Generating visit note | Patient: {request.patient_label} | "
            f"Discipline: {request.discipline.value}"
        )

        # =====================================================================
        # STAGE 2.2: DRAFT
        # =====================================================================
        prompt = self._prompts.build_generation_prompt(request, picks)
        logger.debug(f"Draft prompt built | {len(prompt)} chars")

        output = self._call_oracle(
            prompt, self._config.draft_temperature, DRAFT_SYSTEM_INSTRUCTION
        )
        oracle_calls = 1
        stage = PipelineStage.DRAFTED

        # =====================================================================
        # STAGE 2.3: FORMAT CHECK + SINGLE FORMAT REPAIR
        # =====================================================================
        first_check = self._format_validator.validate(output, picks)
        format_repaired = False

        if not first_check:
            logger.warning(f"Draft failed format check | {first_check.reason}")

            repair_prompt = self._prompts.build_repair_prompt(request, output, picks)
            output = self._call_oracle(
                repair_prompt,
                self._config.format_repair_temperature,
                FORMAT_REPAIR_SYSTEM_INSTRUCTION,
            )
            oracle_calls += 1
            format_repaired = True
            self._format_repairs += 1
            stage = PipelineStage.FORMAT_REPAIRED

            second_check = self._format_validator.validate(output, picks)
            if not second_check:
                self._hard_failures += 1
                logger.error(
                    f"Format repair failed | Patient: {request.patient_label} | "
                    f"{second_check.reason}"
                )
                raise FormatValidationFailedError(
                    reason1=first_check.reason,
                    reason2=second_check.reason,
                    raw=output,
                )
        else:
            stage = PipelineStage.FORMAT_CHECKED

        topics = detect_topics(request.user_text)

        # =====================================================================
        # STAGE 2.4: CONTENT CHECK (PT ONLY)
        # =====================================================================
        if not (request.is_pt and self._config.enforce_content_rules):
            return self._publish(
                output, request, picks, topics, oracle_calls, format_repaired, stage
            )

        sections = parse_sections(output)
        content_check = validate_content(sections.summary, topics)
        stage = PipelineStage.CONTENT_CHECKED

        if content_check:
            return self._publish(
                output, request, picks, topics, oracle_calls, format_repaired, stage
            )

        logger.warning(f"Content check failed | {content_check.reason}")

        # =====================================================================
        # STAGE 2.5: SINGLE CONTENT REPAIR
        # =====================================================================
        constraints = compile_constraints(topics, request.discipline)
        extra = ExtraConstraints.from_constraint_set(content_check.reason, constraints)
        repair_prompt = self._prompts.build_repair_prompt(
            request, output, picks, extra_constraints=extra
        )
        logger.debug(
            f"Content repair prompt built | {len(constraints)} directives | {len(repair_prompt)} chars"
        )

        repaired = self._call_oracle(
            repair_prompt,
            self._config.content_repair_temperature,
            CONTENT_REPAIR_SYSTEM_INSTRUCTION,
            fallback=output,
        )
        oracle_calls += 1
        self._content_repairs += 1

        repaired_check = self._format_validator.validate(repaired, picks)
        if not repaired_check:
            self._hard_failures += 1
            logger.error(f"Content repair broke format | {repaired_check.reason}")
            raise ContentRepairFormatError(reason=repaired_check.reason, raw=repaired)

        repaired_content = validate_content(parse_sections(repaired).summary, topics)
        if repaired_content:
            return self._publish(
                repaired,
                request,
                picks,
                topics,
                oracle_calls,
                format_repaired,
                PipelineStage.PUBLISHED,
                content_repaired=True,
            )

        logger.warning(f"Content still failing after repair | {repaired_content.reason}")
        return self._publish(
            repaired,
            request,
            picks,
            topics,
            oracle_calls,
            format_repaired,
            PipelineStage.PUBLISHED_WITH_DEBUG,
            content_repaired=True,
            debug={
                "muscleRuleFail": content_check.reason,
                "muscleRuleStillFail": repaired_content.reason,
            },
        )

    # =========================================================================
    # STAGE 3: CONSERVATIVE CLEAN
    # =========================================================================

    def clean_text(self, text: str) -> str:
        """
        Conservatively clean dictated text.

        Local clean first, then one oracle rewrite at the clean temperature.
        Falls back to the locally cleaned text when the oracle returns nothing.

        Raises:
            LLMError: The oracle failed
        """
        locally_cleaned = clean_user_text(text)
        prompt = self._prompts.build_clean_prompt(locally_cleaned)

        cleaned = self._llm_client.generate(
            prompt,
            temperature=self._config.clean_temperature,
            system_instruction=CLEAN_SYSTEM_INSTRUCTION,
        )
        cleaned = (cleaned or "").strip() or locally_cleaned

        logger.info(f"Cleaned text | {len(text or '')} → {len(cleaned)} chars")
        return normalize_spaces(cleaned)

    # =========================================================================
    # STAGE 4: FACTORY METHODS
    # =========================================================================

    @classmethod
    def from_environment(cls, env_file: Optional[str] = None) -> "VisitNotePipeline":
        """
        Create pipeline from environment configuration.

        Raises:
            ConfigurationError: If required settings missing

        Example:
            >>> pipeline = VisitNotePipeline.from_environment()
        """
        config = PipelineConfiguration.from_environment(env_file=env_file, validate_on_load=True)
        return cls(config)

    # =========================================================================
    # STAGE 5: PRIVATE HELPERS
    # =========================================================================

    def _call_oracle(
        self,
        prompt: str,
        temperature: float,
        system_instruction: str,
        fallback: str = "",
    ) -> str:
        """One oracle round-trip; output newline-normalized."""
        raw = self._llm_client.generate(
            prompt, temperature=temperature, system_instruction=system_instruction
        )
        return normalize_newlines(raw or fallback)

    def _publish(
        self,
        text: str,
        request: VisitRequest,
        picks: RotationPicks,
        topics,
        oracle_calls: int,
        format_repaired: bool,
        stage: PipelineStage,
        content_repaired: bool = False,
        debug: Optional[dict] = None,
    ) -> VisitNote:
        final_stage = (
            PipelineStage.PUBLISHED_WITH_DEBUG if debug is not None else PipelineStage.PUBLISHED
        )
        self._notes_published += 1
        if debug is not None:
            self._notes_with_debug += 1

        logger.info(
            f"Published visit note | Patient: {request.patient_label} | "
            f"From: {stage.value} | Oracle calls: {oracle_calls} | "
            f"Debug: {debug is not None}"
        )

        return VisitNote(
            summary=text,
            patient_label=request.patient_label,
            discipline=request.discipline,
            picks=picks,
            topics=topics,
            oracle_calls=oracle_calls,
            format_repaired=format_repaired,
            content_repaired=content_repaired,
            debug=debug,
            final_stage=final_stage,
        )

    def _create_llm_client(self, config: PipelineConfiguration) -> LLMClientProtocol:
        """Create the oracle client from configuration."""
        if config.llm_provider == LLMProvider.GEMINI:
            if not config.gemini_api_key:
                raise ConfigurationError(
                    "Gemini API key required", context={"setting": "GEMINI_API_KEY"}
                )
            return GeminiClient(
                api_key=config.gemini_api_key,
                model_name=config.gemini_model,
                rate_limit_delay=config.rate_limit_delay,
                max_retries=config.max_retries,
                request_timeout=config.request_timeout,
                max_output_tokens=config.max_output_tokens,
            )

        if config.llm_provider == LLMProvider.OPENAI:
            if not config.openai_api_key:
                raise ConfigurationError(
                    "OpenAI API key required", context={"setting": "OPENAI_API_KEY"}
                )
            return OpenAIClient(
                api_key=config.openai_api_key,
                model_name=config.openai_model,
                rate_limit_delay=config.rate_limit_delay,
                max_retries=config.max_retries,
                request_timeout=config.request_timeout,
                max_output_tokens=config.max_output_tokens,
            )

        raise ConfigurationError(
            f"Unsupported LLM provider: {config.llm_provider}",
            context={"supported": [p.value for p in LLMProvider]},
        )

    # =========================================================================
    # STAGE 6: PROPERTIES AND METRICS
    # =========================================================================

    @property
    def notes_published(self) -> int:
        """Total notes published (with or without debug)."""
        return self._notes_published

    @property
    def notes_with_debug(self) -> int:
        """Notes published with residual content failures."""
        return self._notes_with_debug

    @property
    def format_repairs(self) -> int:
        return self._format_repairs

    @property
    def content_repairs(self) -> int:
        return self._content_repairs

    @property
    def hard_failures(self) -> int:
        """Requests that ended in a terminal validation error."""
        return self._hard_failures

    @property
    def config(self) -> PipelineConfiguration:
        """Access to pipeline configuration."""
        return self._config

    @property
    def llm_client(self) -> LLMClientProtocol:
        return self._llm_client

    @property
    def rotation(self) -> RotationSelector:
        return self._rotation
