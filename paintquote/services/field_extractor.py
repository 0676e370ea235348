"""Single-shot field extractor.

Answers one narrow question about one user message ("what customer name and
address did they give?"). Used by chat flows that ask the contractor a
specific question and need only that answer back.
"""

from typing import Dict, Any, Optional

import structlog

from paintquote.config.settings import Settings, settings as default_settings
from paintquote.models.contractor_context import ContractorContext
from paintquote.services.extraction_strategy import ExtractionStrategy, build_extraction_strategy

logger = structlog.get_logger()


CUSTOMER_INFO_INSTRUCTION = (
    "Extract the customer name and property address. "
    'Respond as {"customer_name": string, "property_address": string}; '
    "omit any key that was not stated."
)

PROJECT_TYPE_INSTRUCTION = (
    "Classify the painting project as interior, exterior or both. "
    'Respond as {"project_type": "interior" | "exterior" | "both"}; '
    "omit the key if the type was not stated."
)


class FieldExtractor:
    """Instruction-driven extraction over the configured strategy."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        strategy: Optional[ExtractionStrategy] = None,
        llm_service=None
    ):
        """Initialize FieldExtractor.

        Args:
            settings: Settings instance (default: module settings).
            strategy: Extraction strategy (default: selected from settings).
            llm_service: Optional LLMService shared with other components.
        """
        self.settings = settings or default_settings
        self.strategy = strategy or build_extraction_strategy(self.settings, llm_service=llm_service)

    async def extract(
        self,
        user_input: str,
        instruction: str,
        context: Optional[ContractorContext] = None
    ) -> Dict[str, Any]:
        """Extract the fields named by `instruction` from `user_input`.

        Never raises. Returns {} when the input is blank, nothing relevant
        was found, or the backend failed.

        Args:
            user_input: The contractor's message.
            instruction: What to extract (see the *_INSTRUCTION constants).
            context: Optional contractor context passed to the backend.

        Returns:
            Dictionary of extracted fields.
        """
        if not user_input or not user_input.strip():
            return {}

        text = user_input[:self.settings.max_input_chars]
        try:
            result = await self.strategy.extract_fields(text, instruction, context=context)
        except Exception as e:
            logger.warning(
                "field_extraction_error",
                strategy=self.strategy.name,
                error=str(e)
            )
            return {}

        if not isinstance(result, dict):
            logger.warning("field_extraction_non_object", strategy=self.strategy.name)
            return {}

        extracted = {k: v for k, v in result.items() if v not in (None, "")}
        logger.debug("fields_extracted", strategy=self.strategy.name, fields=sorted(extracted))
        return extracted
