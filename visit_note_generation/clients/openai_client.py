"""
OpenAI Oracle

Default generation oracle. Each stage sends its system instruction as a
system message and the stage prompt as the user message.

Author: Shubham Singh
Date: January 2026
"""

from typing import Any, Dict, List, Optional

from loguru import logger
from openai import OpenAI

from visit_note_generation.clients.llm_client import BaseLLMClient
from visit_note_generation.core.exceptions import LLMContentFilteredError


# =============================================================================
# STAGE 1: CLIENT
# =============================================================================


class OpenAIClient(BaseLLMClient):
    """
    Chat completions oracle.

    Example:
        >>> oracle = OpenAIClient(api_key="...", model_name="gpt-4o-mini")
        >>> oracle.generate(prompt, temperature=0.2, system_instruction="Output only the note.")
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-4o-mini",
        rate_limit_delay: float = 0.0,
        max_retries: int = 1,
        request_timeout: Optional[float] = None,
        max_output_tokens: int = 1024,
    ):
        super().__init__(
            api_key=api_key,
            model_name=model_name,
            rate_limit_delay=rate_limit_delay,
            max_retries=max_retries,
            request_timeout=request_timeout,
            max_output_tokens=max_output_tokens,
        )

        sdk_options: Dict[str, Any] = {"api_key": api_key}
        if request_timeout:
            sdk_options["timeout"] = request_timeout
        self._client = OpenAI(**sdk_options)

        logger.info(f"OpenAI oracle ready | Model: {model_name}")

    # =========================================================================
    # STAGE 2: REQUEST
    # =========================================================================

    @staticmethod
    def _messages(prompt: str, system_instruction: Optional[str]) -> List[Dict[str, str]]:
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _call_api(
        self, prompt: str, temperature: Optional[float], system_instruction: Optional[str]
    ) -> str:
        """
        Raises:
            LLMContentFilteredError: finish_reason was content_filter
            LLMRateLimitError: 429 / quota
            LLMError: Anything else

        An empty completion returns "" so the pipeline can apply its own
        fallback (previous output, locally cleaned text).
        """
        request: Dict[str, Any] = {
            "model": self._model_name,
            "messages": self._messages(prompt, system_instruction),
            "max_tokens": self._max_output_tokens,
        }
        if temperature is not None:
            request["temperature"] = temperature

        try:
            response = self._client.chat.completions.create(**request)
        except Exception as exc:
            raise self._translate_error(exc) from exc

        choice = response.choices[0] if response.choices else None
        if choice is not None and getattr(choice, "finish_reason", None) == "content_filter":
            raise LLMContentFilteredError(provider=self.provider_name, reason="content_filter")

        content = choice.message.content if choice is not None and choice.message else None
        return content or ""

    @property
    def provider_name(self) -> str:
        return "openai"
