"""
Gemini Oracle

Alternative generation oracle on google-generativeai. The SDK binds the
system instruction to the model object, so one GenerativeModel is built per
distinct instruction and reused.

Author: Shubham Singh
Date: January 2026
"""

from typing import Dict, Optional

import google.generativeai as genai
from loguru import logger

from visit_note_generation.clients.llm_client import BaseLLMClient
from visit_note_generation.core.exceptions import LLMContentFilteredError

# Clinical text (pain, injury, anatomy) trips the default thresholds
SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]


# =============================================================================
# STAGE 1: CLIENT
# =============================================================================


class GeminiClient(BaseLLMClient):
    """
    Gemini oracle with per-call temperature via GenerationConfig.

    Example:
        >>> oracle = GeminiClient(api_key="...", model_name="gemini-1.5-flash")
        >>> oracle.generate(prompt, temperature=0.15)
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-1.5-flash",
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

        genai.configure(api_key=api_key)
        self._models: Dict[Optional[str], "genai.GenerativeModel"] = {}

        logger.info(f"Gemini oracle ready | Model: {model_name}")

    def _model_for(self, system_instruction: Optional[str]) -> "genai.GenerativeModel":
        if system_instruction not in self._models:
            self._models[system_instruction] = genai.GenerativeModel(
                model_name=self._model_name,
                safety_settings=SAFETY_SETTINGS,
                system_instruction=system_instruction,
            )
        return self._models[system_instruction]

    # =========================================================================
    # STAGE 2: REQUEST
    # =========================================================================

    def _call_api(
        self, prompt: str, temperature: Optional[float], system_instruction: Optional[str]
    ) -> str:
        """
        Raises:
            LLMContentFilteredError: Prompt blocked by safety feedback
            LLMRateLimitError: 429 / quota
            LLMError: Anything else

        An empty candidate returns "".
        """
        generation_config = genai.GenerationConfig(
            temperature=temperature,
            max_output_tokens=self._max_output_tokens,
        )
        request_options = {"timeout": self._request_timeout} if self._request_timeout else None

        try:
            response = self._model_for(system_instruction).generate_content(
                prompt,
                generation_config=generation_config,
                request_options=request_options,
            )
        except Exception as exc:
            raise self._translate_error(exc) from exc

        feedback = getattr(response, "prompt_feedback", None)
        if feedback and feedback.block_reason:
            raise LLMContentFilteredError(
                provider=self.provider_name, reason=str(feedback.block_reason)
            )

        parts = []
        if response.candidates and response.candidates[0].content:
            parts = response.candidates[0].content.parts or []
        return "".join(part.text for part in parts)

    @property
    def provider_name(self) -> str:
        return "gemini"
