"""
Pipeline Settings

Every knob the visit note service reads: oracle provider and model, the
per-stage temperatures, enforcement toggles, and HTTP service settings.
Values come from the process environment, optionally seeded from a .env
file, and are checked once at startup.

Groups:
    PipelineConfiguration
    ├── Oracle (provider, keys, models, timeout, token cap, retries)
    ├── Stage temperatures (draft, format repair, content repair, clean)
    ├── Enforcement (pronoun ban, PT content rules)
    └── Service (default patient label, port, log level)

Usage:
    from visit_note_generation.core.config import PipelineConfiguration

    config = PipelineConfiguration.from_environment()
    config = PipelineConfiguration(gemini_api_key="...", llm_provider=LLMProvider.GEMINI)

Author: Shubham Singh
Date: January 2026
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from visit_note_generation.core.constants import DEFAULT_PATIENT_LABEL
from visit_note_generation.core.enums import LLMProvider
from visit_note_generation.core.exceptions import ConfigurationError


# =============================================================================
# STAGE 1: DEFAULT VALUES
# =============================================================================


class ConfigDefaults:
    """Fallbacks used when a variable is unset."""

    # -------------------------------------------------------------------------
    # 1.1 Oracle
    # -------------------------------------------------------------------------
    DEFAULT_PROVIDER = LLMProvider.OPENAI
    DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
    DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
    DEFAULT_RATE_LIMIT_DELAY = 0.0  # seconds between API calls
    DEFAULT_REQUEST_TIMEOUT = 60.0  # seconds per oracle call
    DEFAULT_MAX_OUTPUT_TOKENS = 1024
    DEFAULT_MAX_RETRIES = 1  # attempts per oracle call; 1 means no retry

    # -------------------------------------------------------------------------
    # 1.2 Stage Temperatures
    # -------------------------------------------------------------------------
    DEFAULT_DRAFT_TEMPERATURE = 0.2
    DEFAULT_FORMAT_REPAIR_TEMPERATURE = 0.2
    DEFAULT_CONTENT_REPAIR_TEMPERATURE = 0.15
    DEFAULT_CLEAN_TEMPERATURE = 0.15

    # -------------------------------------------------------------------------
    # 1.3 Service
    # -------------------------------------------------------------------------
    DEFAULT_PORT = 3301
    DEFAULT_LOG_LEVEL = "INFO"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number", context={"setting": name, "value": raw}
        )


def _load_env_file(env_file: Optional[str]) -> None:
    if env_file:
        load_dotenv(env_file)
        return
    for location in (Path.cwd() / ".env", Path(__file__).parent.parent.parent / ".env"):
        if location.exists():
            load_dotenv(location)
            return


# =============================================================================
# STAGE 2: CONFIGURATION DATACLASS
# =============================================================================


@dataclass
class PipelineConfiguration:
    """
    Settings for one VisitNotePipeline (and the API process hosting it).

    What it does:
        Carries what is needed to build the oracle client and to run the
        draft / format repair / content repair stages.

    When to use:
        - Service startup via from_environment()
        - Tests, constructed directly with an injected oracle

    Example:
        >>> config = PipelineConfiguration(openai_api_key="sk-...")
        >>> config.active_model
        'gpt-4o-mini'
    """

    # -------------------------------------------------------------------------
    # 2.1 Oracle
    # -------------------------------------------------------------------------
    llm_provider: LLMProvider = ConfigDefaults.DEFAULT_PROVIDER
    """openai or gemini."""

    openai_api_key: Optional[str] = None
    openai_model: str = ConfigDefaults.DEFAULT_OPENAI_MODEL

    gemini_api_key: Optional[str] = None
    """GEMINI_API_KEY, falling back to GOOGLE_API_KEY."""

    gemini_model: str = ConfigDefaults.DEFAULT_GEMINI_MODEL

    rate_limit_delay: float = ConfigDefaults.DEFAULT_RATE_LIMIT_DELAY
    """Minimum seconds between oracle calls from one client."""

    request_timeout: float = ConfigDefaults.DEFAULT_REQUEST_TIMEOUT
    """Per-call timeout handed to the provider SDK."""

    max_output_tokens: int = ConfigDefaults.DEFAULT_MAX_OUTPUT_TOKENS

    max_retries: int = ConfigDefaults.DEFAULT_MAX_RETRIES
    """Client-level attempts per oracle call. The pipeline itself never retries."""

    # -------------------------------------------------------------------------
    # 2.2 Stage Temperatures
    # -------------------------------------------------------------------------
    draft_temperature: float = ConfigDefaults.DEFAULT_DRAFT_TEMPERATURE
    format_repair_temperature: float = ConfigDefaults.DEFAULT_FORMAT_REPAIR_TEMPERATURE
    content_repair_temperature: float = ConfigDefaults.DEFAULT_CONTENT_REPAIR_TEMPERATURE
    clean_temperature: float = ConfigDefaults.DEFAULT_CLEAN_TEMPERATURE

    # -------------------------------------------------------------------------
    # 2.3 Enforcement
    # -------------------------------------------------------------------------
    enforce_pronoun_ban: bool = True
    """Reject Summaries using "the patient" or they/their/them/theirs/themselves."""

    enforce_content_rules: bool = True
    """Run the PT content (muscle specificity) check and repair."""

    # -------------------------------------------------------------------------
    # 2.4 Service
    # -------------------------------------------------------------------------
    default_patient_label: str = DEFAULT_PATIENT_LABEL
    port: int = ConfigDefaults.DEFAULT_PORT
    log_level: str = ConfigDefaults.DEFAULT_LOG_LEVEL

    # -------------------------------------------------------------------------
    # 2.5 Validation
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """
        Fail fast on a configuration the pipeline cannot run with.

        Checks, in order: the selected provider has a key, every stage
        temperature is within [0, 2], timeout / token cap / retries are
        positive.

        Raises:
            ConfigurationError: First failing check
        """
        key_by_provider = {
            LLMProvider.OPENAI: ("OPENAI_API_KEY", self.openai_api_key),
            LLMProvider.GEMINI: ("GEMINI_API_KEY", self.gemini_api_key),
        }
        setting, key = key_by_provider[self.llm_provider]
        if not key:
            raise ConfigurationError(
                f"{setting} is required for provider {self.llm_provider.value}",
                context={"setting": setting, "provider": self.llm_provider.value},
            )

        for name in (
            "draft_temperature",
            "format_repair_temperature",
            "content_repair_temperature",
            "clean_temperature",
        ):
            value = getattr(self, name)
            if not (0.0 <= value <= 2.0):
                raise ConfigurationError(
                    f"{name} must be between 0 and 2, got {value}",
                    context={"setting": name.upper(), "value": value},
                )

        if self.request_timeout <= 0 or self.max_output_tokens <= 0 or self.max_retries < 1:
            raise ConfigurationError(
                "request_timeout, max_output_tokens and max_retries must be positive",
                context={
                    "request_timeout": self.request_timeout,
                    "max_output_tokens": self.max_output_tokens,
                    "max_retries": self.max_retries,
                },
            )

    # -------------------------------------------------------------------------
    # 2.6 Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_environment(
        cls, env_file: Optional[str] = None, validate_on_load: bool = True
    ) -> "PipelineConfiguration":
        """
        Build configuration from the environment.

        A .env file is loaded first (the given path, else ./.env, else one
        next to the package); variables already set in the process win.
        With LLM_PROVIDER=openai, no OpenAI key and a Gemini key present,
        the provider switches to gemini.

        Args:
            env_file: Explicit .env path
            validate_on_load: Run validate() before returning

        Raises:
            ConfigurationError: Unknown provider, non-numeric value, or a
                failed validate()
        """
        _load_env_file(env_file)

        openai_key = os.getenv("OPENAI_API_KEY")
        gemini_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")

        provider_raw = os.getenv("LLM_PROVIDER", ConfigDefaults.DEFAULT_PROVIDER.value).lower()
        try:
            llm_provider = LLMProvider(provider_raw)
        except ValueError:
            raise ConfigurationError(
                f"Unsupported LLM provider: {provider_raw}",
                context={"supported": [p.value for p in LLMProvider]},
            )
        if llm_provider == LLMProvider.OPENAI and not openai_key and gemini_key:
            llm_provider = LLMProvider.GEMINI

        defaults = ConfigDefaults
        config = cls(
            llm_provider=llm_provider,
            openai_api_key=openai_key,
            openai_model=os.getenv("OPENAI_MODEL", defaults.DEFAULT_OPENAI_MODEL),
            gemini_api_key=gemini_key,
            gemini_model=os.getenv("GEMINI_MODEL", defaults.DEFAULT_GEMINI_MODEL),
            rate_limit_delay=_env_number("RATE_LIMIT_DELAY", defaults.DEFAULT_RATE_LIMIT_DELAY, float),
            request_timeout=_env_number("REQUEST_TIMEOUT", defaults.DEFAULT_REQUEST_TIMEOUT, float),
            max_output_tokens=_env_number(
                "MAX_OUTPUT_TOKENS", defaults.DEFAULT_MAX_OUTPUT_TOKENS, int
            ),
            max_retries=_env_number("MAX_RETRIES", defaults.DEFAULT_MAX_RETRIES, int),
            draft_temperature=_env_number(
                "DRAFT_TEMPERATURE", defaults.DEFAULT_DRAFT_TEMPERATURE, float
            ),
            format_repair_temperature=_env_number(
                "FORMAT_REPAIR_TEMPERATURE", defaults.DEFAULT_FORMAT_REPAIR_TEMPERATURE, float
            ),
            content_repair_temperature=_env_number(
                "CONTENT_REPAIR_TEMPERATURE", defaults.DEFAULT_CONTENT_REPAIR_TEMPERATURE, float
            ),
            clean_temperature=_env_number(
                "CLEAN_TEMPERATURE", defaults.DEFAULT_CLEAN_TEMPERATURE, float
            ),
            enforce_pronoun_ban=_env_flag("ENFORCE_PRONOUN_BAN", True),
            enforce_content_rules=_env_flag("ENFORCE_CONTENT_RULES", True),
            default_patient_label=os.getenv("DEFAULT_PATIENT_LABEL", DEFAULT_PATIENT_LABEL),
            port=_env_number("PORT", defaults.DEFAULT_PORT, int),
            log_level=os.getenv("LOG_LEVEL", defaults.DEFAULT_LOG_LEVEL).upper(),
        )

        if validate_on_load:
            config.validate()
        return config

    def to_dict(self) -> dict:
        """Loggable view; API keys masked."""
        return {
            "llm_provider": self.llm_provider.value,
            "active_model": self.active_model,
            "openai_api_key": "***" if self.openai_api_key else None,
            "gemini_api_key": "***" if self.gemini_api_key else None,
            "request_timeout": self.request_timeout,
            "draft_temperature": self.draft_temperature,
            "format_repair_temperature": self.format_repair_temperature,
            "content_repair_temperature": self.content_repair_temperature,
            "clean_temperature": self.clean_temperature,
            "enforce_pronoun_ban": self.enforce_pronoun_ban,
            "enforce_content_rules": self.enforce_content_rules,
            "default_patient_label": self.default_patient_label,
            "port": self.port,
        }

    @property
    def active_model(self) -> str:
        """Model name of the selected provider."""
        if self.llm_provider == LLMProvider.GEMINI:
            return self.gemini_model
        return self.openai_model
