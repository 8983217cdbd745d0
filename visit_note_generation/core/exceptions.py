"""
Domain Exceptions for Visit Note Generation

This module defines all custom exceptions used throughout the visit note
generation pipeline. Validators never raise: expected rule violations are
returned as ValidationResult values. Exceptions are reserved for outcomes
that end a request.

Exception Hierarchy:
    VisitNoteGenerationError (base)
    ├── ConfigurationError            → Invalid configuration
    ├── InputError                    → Empty / missing request fields (400)
    ├── GenerationError               → Oracle interaction failures (500)
    │   └── LLMError
    │       ├── LLMRateLimitError
    │       └── LLMContentFilteredError
    └── NoteValidationError           → Terminal format failures (422)
        ├── FormatValidationFailedError
        └── ContentRepairFormatError

Usage:
    from visit_note_generation.core.exceptions import FormatValidationFailedError

    try:
        note = pipeline.generate_visit_note(request)
    except FormatValidationFailedError as e:
        logger.error(f"Format still failing: {e.reason2}")

Author: Shubham Singh
Date: January 2026
"""

from typing import Optional


# =============================================================================
# STAGE 1: BASE EXCEPTION
# =============================================================================


class VisitNoteGenerationError(Exception):
    """
    Root of every error this package raises.

    Attributes:
        message: Short description, safe to return to API callers
        context: Key/value details appended to str(error) for logs
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


# =============================================================================
# STAGE 2: CONFIGURATION AND INPUT ERRORS
# =============================================================================


class ConfigurationError(VisitNoteGenerationError):
    """
    Settings the pipeline cannot start with (missing key for the chosen
    provider, unknown provider, non-numeric or out-of-range values).
    """


class InputError(VisitNoteGenerationError):
    """
    A required request field is missing or empty.

    Raised before any oracle call is made.

    Attributes:
        field: Name of the offending request field
    """

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} is required.")

    def _format_message(self) -> str:
        return self.message


# =============================================================================
# STAGE 3: GENERATION ERRORS
# =============================================================================
# Errors raised while talking to the generation oracle. They surface as
# service-level (500) failures and are never retried by the orchestrator.


class GenerationError(VisitNoteGenerationError):
    """Oracle interaction failed."""


class LLMError(GenerationError):
    """
    An oracle round-trip failed: network, timeout, quota, or an empty
    completion.

    Attributes:
        provider: openai, gemini, or a test double name
        original_error: SDK exception, when there was one
    """

    def __init__(self, message: str, provider: str, original_error: Optional[Exception] = None):
        self.provider = provider
        self.original_error = original_error
        super().__init__(
            message,
            context={
                "provider": provider,
                "original_error": str(original_error) if original_error else None,
            },
        )


class LLMRateLimitError(LLMError):
    """
    Provider answered 429 or reported exhausted quota.

    Attributes:
        retry_after: Provider-suggested wait in seconds, when given
    """

    def __init__(
        self,
        provider: str,
        retry_after: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for {provider}", provider=provider, original_error=original_error
        )
        self.context["retry_after"] = retry_after


class LLMContentFilteredError(LLMError):
    """Provider refused the prompt or the completion on safety grounds."""

    def __init__(self, provider: str, reason: Optional[str] = None):
        super().__init__(
            f"Content filtered by {provider} safety settings: {reason or 'unknown reason'}",
            provider=provider,
        )
        self.reason = reason


# =============================================================================
# STAGE 4: TERMINAL VALIDATION ERRORS
# =============================================================================
# Only format failures end a request. Content (muscle specificity) failures
# are reported as debug metadata on a published note instead.


class NoteValidationError(VisitNoteGenerationError):
    """
    Base class for terminal validation outcomes.

    Attributes:
        raw: The last raw oracle output, kept so callers can debug prompt drift
    """

    def __init__(self, message: str, raw: str, context: Optional[dict] = None):
        self.raw = raw
        super().__init__(message, context=context)

    def to_detail(self) -> dict:
        """Structured body for the HTTP layer."""
        raise NotImplementedError


class FormatValidationFailedError(NoteValidationError):
    """
    Format validation still fails after the single format repair pass.

    Attributes:
        reason1: Failure reason of the first draft
        reason2: Failure reason of the repaired output
    """

    def __init__(self, reason1: str, reason2: str, raw: str):
        self.reason1 = reason1
        self.reason2 = reason2
        super().__init__(
            "Model output failed validation after repair.",
            raw=raw,
            context={"reason1": reason1, "reason2": reason2},
        )

    def _format_message(self) -> str:
        return f"{self.message} [reason1={self.reason1!r}, reason2={self.reason2!r}]"

    def to_detail(self) -> dict:
        return {
            "error": self.message,
            "reason1": self.reason1,
            "reason2": self.reason2,
            "raw": self.raw,
        }


class ContentRepairFormatError(NoteValidationError):
    """
    The content-focused repair broke the note format.

    Format regressions introduced by a content repair are never accepted.

    Attributes:
        reason: Format failure reason of the content-repaired output
    """

    def __init__(self, reason: str, raw: str):
        self.reason = reason
        super().__init__(
            "Muscle enforcement repair broke formatting constraints.",
            raw=raw,
            context={"reason": reason},
        )

    def _format_message(self) -> str:
        return f"{self.message} [reason={self.reason!r}]"

    def to_detail(self) -> dict:
        return {"error": self.message, "reason": self.reason, "raw": self.raw}
