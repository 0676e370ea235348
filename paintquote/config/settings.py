"""PaintQuote configuration settings.

Loads configuration from environment variables with sensible defaults.
The presence of OPENROUTER_API_KEY is the single switch between model-backed
and fallback (regex) extraction.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from paintquote.config.errors import ConfigurationError, ErrorCode

# Load .env file for local development
load_dotenv()


def _get_api_key() -> Optional[str]:
    """Read the model-backend credential, treating blank values as unset."""
    value = os.getenv("OPENROUTER_API_KEY", "").strip()
    return value or None


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Components receive a Settings instance at construction time; tests build
    their own instances instead of patching the environment.
    """

    # LLM backend (OpenRouter, OpenAI-compatible chat completions)
    openrouter_api_key: Optional[str] = field(default_factory=_get_api_key, repr=False)
    llm_base_url: str = field(default_factory=lambda: os.getenv("LLM_BASE_URL", "https://openrouter.ai/api/v1"))
    primary_extraction_model: str = field(
        default_factory=lambda: os.getenv("PRIMARY_EXTRACTION_MODEL", "anthropic/claude-3.5-sonnet")
    )
    validation_model: str = field(default_factory=lambda: os.getenv("VALIDATION_MODEL", "openai/gpt-4o"))
    conversation_model: str = field(
        default_factory=lambda: os.getenv("CONVERSATION_MODEL", "anthropic/claude-sonnet-4")
    )
    extraction_temperature: float = field(default_factory=lambda: float(os.getenv("EXTRACTION_TEMPERATURE", "0.1")))
    conversation_temperature: float = field(
        default_factory=lambda: float(os.getenv("CONVERSATION_TEMPERATURE", "0.8"))
    )
    conversation_max_tokens: int = field(default_factory=lambda: int(os.getenv("CONVERSATION_MAX_TOKENS", "1000")))
    extraction_max_tokens: int = field(default_factory=lambda: int(os.getenv("EXTRACTION_MAX_TOKENS", "400")))
    field_extraction_max_tokens: int = field(
        default_factory=lambda: int(os.getenv("FIELD_EXTRACTION_MAX_TOKENS", "500"))
    )
    parser_max_tokens: int = field(default_factory=lambda: int(os.getenv("PARSER_MAX_TOKENS", "2000")))
    llm_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("LLM_TIMEOUT_SECONDS", "60")))

    # Attribution headers sent to OpenRouter
    app_url: str = field(default_factory=lambda: os.getenv("APP_URL", "http://localhost:3001"))
    app_title: str = field(default_factory=lambda: os.getenv("APP_TITLE", "Painting Quote Assistant"))

    # Data source (company/settings/paints/quotes API)
    data_source_base_url: str = field(
        default_factory=lambda: os.getenv("DATA_SOURCE_BASE_URL", os.getenv("APP_URL", "http://localhost:3001"))
    )
    data_source_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("DATA_SOURCE_TIMEOUT_SECONDS", "10"))
    )
    data_source_max_attempts: int = field(default_factory=lambda: int(os.getenv("DATA_SOURCE_MAX_ATTEMPTS", "3")))

    # Conversation / parsing limits
    recent_quotes_limit: int = field(default_factory=lambda: int(os.getenv("RECENT_QUOTES_LIMIT", "10")))
    conversation_history_window: int = field(
        default_factory=lambda: int(os.getenv("CONVERSATION_HISTORY_WINDOW", "8"))
    )
    max_input_chars: int = field(default_factory=lambda: int(os.getenv("MAX_INPUT_CHARS", "8000")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_banners: bool = field(default_factory=lambda: os.getenv("LOG_BANNERS", "false").lower() == "true")

    @property
    def has_model_backend(self) -> bool:
        """Check whether a model-backend credential is configured."""
        return bool(self.openrouter_api_key)

    def validate(self) -> None:
        """Validate that the model backend is configured.

        Raises:
            ConfigurationError: If OPENROUTER_API_KEY is missing.
        """
        if not self.has_model_backend:
            raise ConfigurationError(
                code=ErrorCode.MISSING_API_KEY,
                message="OpenRouter API key not configured",
                details={"env_var": "OPENROUTER_API_KEY"}
            )


# Singleton settings instance
settings = Settings()
