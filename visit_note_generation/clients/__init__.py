"""
Clients Layer - Generation Oracle Abstractions

This layer provides clean abstractions over LLM providers (OpenAI, Gemini),
enabling the pipeline to work with any provider, or a scripted test double,
interchangeably.

Submodules:
    llm_client.py    → Protocol and base implementation
    openai_client.py → OpenAI implementation (default)
    gemini_client.py → Google Gemini implementation

Author: Shubham Singh
Date: January 2026
"""

from visit_note_generation.clients.llm_client import (
    LLMClientProtocol,
    BaseLLMClient,
)
from visit_note_generation.clients.openai_client import OpenAIClient
from visit_note_generation.clients.gemini_client import GeminiClient

__all__ = [
    "LLMClientProtocol",
    "BaseLLMClient",
    "OpenAIClient",
    "GeminiClient",
]
