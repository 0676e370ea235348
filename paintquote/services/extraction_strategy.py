"""Extraction strategy interface.

Every component that turns free text into structured fields goes through an
ExtractionStrategy. Two implementations exist: a model-backed one and a
regex fallback. Which one is used is decided once, at construction time,
by whether a model-backend credential is configured.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

import structlog

from paintquote.config.settings import Settings
from paintquote.models.contractor_context import ContractorContext

logger = structlog.get_logger()


class ExtractionStrategy(ABC):
    """Backend-agnostic text-to-fields extraction."""

    name: str = "base"

    @property
    @abstractmethod
    def is_model_backed(self) -> bool:
        """Whether results come from a language model."""

    @abstractmethod
    async def extract_quote_data(self, raw_text: str) -> Dict[str, Any]:
        """Primary extraction into the ParsedQuoteData field set.

        Raises:
            ExtractionError: If nothing usable could be extracted.
        """

    @abstractmethod
    async def validate_quote_data(self, raw_text: str, extracted: Dict[str, Any]) -> Dict[str, Any]:
        """Re-check an extraction against the source text.

        Never raises; returns `extracted` unchanged when validation is not
        possible.
        """

    @abstractmethod
    async def extract_fields(
        self,
        user_input: str,
        instruction: str,
        context: Optional[ContractorContext] = None
    ) -> Dict[str, Any]:
        """Narrow single-question extraction. Returns {} when nothing is found."""

    @abstractmethod
    async def extract_conversation_data(
        self,
        user_input: str,
        existing: Dict[str, Any],
        context: Optional[ContractorContext] = None
    ) -> Dict[str, Any]:
        """Per-turn field updates for the conversation accumulator. Never raises."""


def build_extraction_strategy(settings: Settings, llm_service=None) -> ExtractionStrategy:
    """Select the extraction strategy for the given settings.

    Args:
        settings: Settings instance; credential presence decides the backend.
        llm_service: Optional LLMService to share (model-backed only).

    Returns:
        LLMExtractionStrategy when a credential is configured, else
        RegexExtractionStrategy.
    """
    # Imported here; both implementations import this module
    from paintquote.services.llm_extraction import LLMExtractionStrategy
    from paintquote.services.regex_extraction import RegexExtractionStrategy

    if settings.has_model_backend:
        return LLMExtractionStrategy(settings=settings, llm_service=llm_service)

    logger.warning(
        "model_backend_not_configured",
        env_var="OPENROUTER_API_KEY",
        strategy=RegexExtractionStrategy.name
    )
    return RegexExtractionStrategy(settings=settings)
