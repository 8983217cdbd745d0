"""
Generation Oracle - Client Contract and Shared Base

The pipeline never trusts oracle text: every draft and repair is validated
after the call. What it does rely on is that a failed call raises an LLMError
instead of returning something that looks like a note. An empty answer is
not a failure: clients return "" and the pipeline picks the fallback.

Layout:
    LLMClientProtocol → what the pipeline calls (real clients, test doubles)
    BaseLLMClient     → throttling, error wrapping, call counters
    OpenAIClient / GeminiClient → provider round-trip only

Retries are a client concern and are off by default (max_retries=1): a
failed stage surfaces as a request failure.

Author: Shubham Singh
Date: January 2026
"""

import time
from abc import ABC, abstractmethod
from typing import Optional, Protocol, runtime_checkable

from loguru import logger

from visit_note_generation.core.exceptions import (
    LLMContentFilteredError,
    LLMError,
    LLMRateLimitError,
)


# =============================================================================
# STAGE 1: ORACLE CONTRACT
# =============================================================================


@runtime_checkable
class LLMClientProtocol(Protocol):
    """
    Anything that turns a prompt into note text.

    `generate` is the only call the pipeline makes. `model_name` and
    `provider_name` are read for logging when present.
    """

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        """
        One oracle round-trip.

        Args:
            prompt: Generation, repair or clean prompt
            temperature: Stage temperature; provider default when None
            system_instruction: Stage system instruction

        Raises:
            LLMError: The provider call failed
        """
        ...


# =============================================================================
# STAGE 2: SHARED CLIENT BASE
# =============================================================================


class BaseLLMClient(ABC):
    """
    Common plumbing for provider clients.

    What it does:
        Spaces calls by `rate_limit_delay`, turns stray SDK exceptions into
        LLMError, optionally retries LLMError and counts outcomes.

    Subclasses provide:
        _call_api(prompt, temperature, system_instruction) → text
        provider_name
    """

    def __init__(
        self,
        api_key: str,
        model_name: str,
        rate_limit_delay: float = 0.0,
        max_retries: int = 1,
        request_timeout: Optional[float] = None,
        max_output_tokens: int = 1024,
    ):
        """
        Args:
            api_key: Provider key
            model_name: Provider model identifier
            rate_limit_delay: Minimum seconds between consecutive calls
            max_retries: Attempts per generate() call; 1 means no retry
            request_timeout: Per-call timeout in seconds, passed to the SDK
            max_output_tokens: Response token cap
        """
        self._api_key = api_key
        self._model_name = model_name
        self._rate_limit_delay = rate_limit_delay
        self._max_retries = max(1, max_retries)
        self._request_timeout = request_timeout
        self._max_output_tokens = max_output_tokens

        self._previous_call_at: Optional[float] = None
        self._succeeded = 0
        self._failed = 0

    # =========================================================================
    # STAGE 2.1: GENERATE
    # =========================================================================

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        """
        Throttle, call the provider and count the outcome.

        With the default single attempt the provider's own LLMError is
        raised unchanged. With retries enabled, exhausting them raises an
        LLMError wrapping the last failure. Non-LLMError exceptions are
        wrapped and never retried.

        Raises:
            LLMError: The call failed
        """
        self._throttle()

        failure: Optional[LLMError] = None
        for attempt in range(1, self._max_retries + 1):
            try:
                text = self._call_api(prompt, temperature, system_instruction)
            except LLMError as exc:
                self._failed += 1
                failure = exc
                logger.warning(
                    f"{self.provider_name} oracle call failed | "
                    f"Attempt {attempt}/{self._max_retries} | {exc}"
                )
                if attempt < self._max_retries:
                    time.sleep(self._backoff_seconds(attempt, exc))
                continue
            except Exception as exc:
                self._failed += 1
                logger.error(f"{self.provider_name} oracle call raised {type(exc).__name__}: {exc}")
                raise LLMError(str(exc), provider=self.provider_name, original_error=exc) from exc

            self._succeeded += 1
            return text

        if self._max_retries == 1:
            raise failure

        raise LLMError(
            f"Oracle call failed after {self._max_retries} attempts",
            provider=self.provider_name,
            original_error=failure,
        )

    # =========================================================================
    # STAGE 2.2: PROVIDER HOOKS
    # =========================================================================

    @abstractmethod
    def _call_api(
        self, prompt: str, temperature: Optional[float], system_instruction: Optional[str]
    ) -> str:
        """Single provider request. Raise LLMError (or a subclass) on failure."""
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @property
    def model_name(self) -> str:
        return self._model_name

    # =========================================================================
    # STAGE 2.3: HELPERS
    # =========================================================================

    def _throttle(self) -> None:
        if self._rate_limit_delay > 0 and self._previous_call_at is not None:
            wait = self._rate_limit_delay - (time.time() - self._previous_call_at)
            if wait > 0:
                time.sleep(wait)
        self._previous_call_at = time.time()

    # Substrings of SDK error text meaning the provider refused the content
    _FILTER_MARKERS = ("content_filter", "policy", "blocked", "safety")

    def _translate_error(self, exc: Exception) -> LLMError:
        """Classify an SDK exception by its message."""
        if isinstance(exc, LLMError):
            return exc

        text = str(exc).lower()
        if any(marker in text for marker in ("429", "rate", "quota")):
            return LLMRateLimitError(provider=self.provider_name, original_error=exc)
        if any(marker in text for marker in self._FILTER_MARKERS):
            return LLMContentFilteredError(provider=self.provider_name, reason=str(exc))
        return LLMError(
            f"{self.provider_name} request failed: {exc}",
            provider=self.provider_name,
            original_error=exc,
        )

    @staticmethod
    def _backoff_seconds(attempt: int, error: LLMError) -> float:
        # Provider hint wins over exponential backoff
        if isinstance(error, LLMRateLimitError) and error.retry_after:
            return error.retry_after
        return 2**attempt

    # =========================================================================
    # STAGE 2.4: METRICS
    # =========================================================================

    @property
    def total_calls(self) -> int:
        """Successful provider calls."""
        return self._succeeded

    @property
    def failed_calls(self) -> int:
        return self._failed

    @property
    def success_rate(self) -> float:
        attempts = self._succeeded + self._failed
        return 100.0 if attempts == 0 else self._succeeded * 100.0 / attempts
