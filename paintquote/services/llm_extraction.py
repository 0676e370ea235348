"""Model-backed extraction strategy.

Uses LLMService (OpenRouter via LangChain) for primary extraction, validation,
single-field extraction and per-turn conversation extraction. Every call is
low temperature; only primary extraction treats a failure as fatal.
"""

import json
from typing import Dict, Any, Optional

import structlog

from paintquote.config.settings import Settings, settings as default_settings
from paintquote.config.errors import ExtractionError, ErrorCode, QuoteAssistError
from paintquote.models.contractor_context import ContractorContext
from paintquote.services.extraction_strategy import ExtractionStrategy
from paintquote.services.llm_service import LLMService

logger = structlog.get_logger()


# =============================================================================
# Prompts
# =============================================================================


PRIMARY_EXTRACTION_PROMPT = """You are an expert at extracting structured information from painting project descriptions with enhanced capabilities for product changes and rate adjustments.

CRITICAL RULES:
1. Only extract explicitly stated information - never make assumptions
2. If a value isn't clearly stated, leave it null
3. Be extremely precise with numbers and measurements
4. Distinguish between different types of measurements (linear feet vs square feet)
5. Detect separate wall and ceiling labor rates when specified
6. Identify product changes (brand switches, product upgrades, cost adjustments)
7. Parse rate adjustments for specific surface types

SPECIAL DETECTION PATTERNS:
- Wall rates: "walls at $1.50", "wall painting $1.50/sqft", "$1.50 for walls"
- Ceiling rates: "ceilings at $1.25", "ceiling rate $1.25", "$1.25 for ceilings"
- Product changes: "switch to Sherwin Williams", "use Benjamin Moore instead", "change wall paint to ProClassic"
- Rate adjustments: "increase door rate to $175", "trim should be $2.00", "priming at $0.50"

JSON format with separate wall/ceiling rates:
{
  "customer_name": string | null,
  "property_address": string | null,
  "ceiling_included": boolean,
  "doors_included": boolean,
  "trim_included": boolean,
  "windows_included": boolean,
  "primer_included": boolean,
  "linear_feet": number | null,
  "wall_height_ft": number | null,
  "walls_sqft": number | null,
  "ceilings_sqft": number | null,
  "trim_sqft": number | null,
  "doors_count": number | null,
  "windows_count": number | null,
  "paint_brand": string | null,
  "paint_product": string | null,
  "paint_sheen": string | null,
  "spread_rate_sqft_per_gallon": number | null,
  "paint_cost_per_gallon": number | null,
  "primer_cost_per_sqft": number | null,
  "wall_labor_rate": number | null,
  "ceiling_labor_rate": number | null,
  "labor_cost_per_sqft": number | null,
  "markup_percent": number | null,
  "product_changes": {
    "walls": {"brand": string | null, "product": string | null, "cost": number | null},
    "ceilings": {"brand": string | null, "product": string | null, "cost": number | null},
    "trim": {"brand": string | null, "product": string | null, "cost": number | null}
  } | null,
  "rate_adjustments": {
    "wall_rate": number | null,
    "ceiling_rate": number | null,
    "trim_rate": number | null,
    "door_rate": number | null,
    "window_rate": number | null,
    "priming_rate": number | null
  } | null,
  "project_type": "interior" | "exterior" | "both",
  "project_scope_notes": string
}

Return ONLY the raw JSON object. Do not include markdown formatting, code fences, or any explanation. Response must start with { and end with }"""


VALIDATION_PROMPT = """You are validating extracted painting quote data for accuracy and consistency.

Your tasks:
1. Check if extracted values match what was actually stated
2. Identify any assumptions or interpretations
3. Flag inconsistencies or errors
4. Return corrected JSON with the same structure

Return ONLY the raw corrected JSON object. Do not include markdown formatting, code fences, or any explanation. Response must start with { and end with }"""


FIELD_EXTRACTION_PROMPT = """You are a data extraction assistant for a painting contractor's quoting tool.

TASK: {instruction}

RULES:
- Only extract what the user explicitly said
- Respond with ONLY a JSON object matching the task
- If nothing relevant is found, respond with {{}}"""


CONVERSATION_EXTRACTION_PROMPT = """Extract painting project data from the user's message. Return only valid JSON.

PARSING PATTERNS:
- "John and the address is 123 Main St" -> {"customer_name": "John", "property_address": "123 Main St"}
- "Sarah, address 456 Oak Ave" -> {"customer_name": "Sarah", "property_address": "456 Oak Ave"}
- "Mike and address is downtown" -> {"customer_name": "Mike", "property_address": "downtown"}
- "update ProClassic price to $52" -> {"price_update": {"product": "ProClassic", "new_price": 52}}
- "save Behr Premium Plus at $38/gal as a favorite" -> {"save_new_favorite": {"brand": "Behr", "product": "Premium Plus", "cost": 38, "category": "wall_paint"}}

Extract any mentioned:
{
  "customer_name": "string",
  "property_address": "string",
  "phone": "string",
  "email": "string",
  "project_type": "interior|exterior|both",
  "linear_feet": number,
  "wall_height_ft": number,
  "walls_sqft": number,
  "ceilings_sqft": number,
  "doors_count": number,
  "windows_count": number,
  "ceiling_included": boolean,
  "trim_included": boolean,
  "doors_included": boolean,
  "windows_included": boolean,
  "primer_included": boolean,
  "paint_brand": "string",
  "paint_product": "string",
  "paint_sheen": "string",
  "paint_cost_per_gallon": number,
  "spread_rate_sqft_per_gallon": number,
  "wall_labor_rate": number,
  "ceiling_labor_rate": number,
  "trim_labor_rate": number,
  "markup_percent": number,
  "rooms": ["array", "of", "rooms"],
  "special_requests": "string",
  "selected_paint": {"brand": "string", "product": "string", "cost": number, "category": "string"},
  "price_update": {"old_price": number, "new_price": number, "product": "string"},
  "save_new_favorite": {"brand": "string", "product": "string", "cost": number, "category": "string"}
}

Only include keys for information the user actually stated in this message.
Return {} if nothing relevant found."""


class LLMExtractionStrategy(ExtractionStrategy):
    """Extraction through the language-model boundary."""

    name = "llm"

    def __init__(self, settings: Optional[Settings] = None, llm_service: Optional[LLMService] = None):
        """Initialize LLMExtractionStrategy.

        Args:
            settings: Settings instance (default: module settings).
            llm_service: LLMService to use (default: built from settings).
        """
        self.settings = settings or default_settings
        self.llm = llm_service or LLMService(settings=self.settings)

    @property
    def is_model_backed(self) -> bool:
        return True

    async def extract_quote_data(self, raw_text: str) -> Dict[str, Any]:
        """Stage 1: strict-rules extraction with the primary model.

        Raises:
            ExtractionError: On transport failure or non-JSON output.
        """
        try:
            result = await self.llm.generate_json(
                system_prompt=PRIMARY_EXTRACTION_PROMPT,
                user_message=f'INPUT: "{raw_text}"',
                model=self.settings.primary_extraction_model,
                temperature=self.settings.extraction_temperature,
                max_tokens=self.settings.parser_max_tokens
            )
        except QuoteAssistError as e:
            code = ErrorCode.INVALID_EXTRACTION if e.code == ErrorCode.LLM_INVALID_JSON else ErrorCode.EXTRACTION_FAILED
            raise ExtractionError(
                code=code,
                message=f"Primary extraction failed: {e.message}",
                stage="primary_extraction",
                details={"cause": e.code}
            )
        return result["content"]

    async def validate_quote_data(self, raw_text: str, extracted: Dict[str, Any]) -> Dict[str, Any]:
        """Stage 2: independent re-check with the validation model.

        Falls back to the unvalidated extraction on any failure.
        """
        user_message = (
            f'ORIGINAL INPUT: "{raw_text}"\n\n'
            f"EXTRACTED DATA: {json.dumps(extracted, indent=2, default=str)}"
        )
        try:
            result = await self.llm.generate_json(
                system_prompt=VALIDATION_PROMPT,
                user_message=user_message,
                model=self.settings.validation_model,
                temperature=self.settings.extraction_temperature,
                max_tokens=self.settings.parser_max_tokens
            )
        except QuoteAssistError as e:
            logger.warning("quote_validation_skipped", error=e.message, code=e.code)
            return extracted
        return result["content"]

    async def extract_fields(
        self,
        user_input: str,
        instruction: str,
        context: Optional[ContractorContext] = None
    ) -> Dict[str, Any]:
        user_message = f'User said: "{user_input}"'
        if context is not None:
            user_message = f"Contractor: {context.company_name}\n{user_message}"
        try:
            result = await self.llm.generate_json(
                system_prompt=FIELD_EXTRACTION_PROMPT.format(instruction=instruction),
                user_message=user_message,
                model=self.settings.primary_extraction_model,
                temperature=self.settings.extraction_temperature,
                max_tokens=self.settings.field_extraction_max_tokens
            )
        except QuoteAssistError as e:
            logger.warning("field_extraction_failed", error=e.message, code=e.code)
            return {}
        return result["content"]

    async def extract_conversation_data(
        self,
        user_input: str,
        existing: Dict[str, Any],
        context: Optional[ContractorContext] = None
    ) -> Dict[str, Any]:
        user_message = (
            f'User said: "{user_input}"\n'
            f"Current data: {json.dumps(existing or {}, default=str)}"
        )
        try:
            result = await self.llm.generate_json(
                system_prompt=CONVERSATION_EXTRACTION_PROMPT,
                user_message=user_message,
                model=self.settings.conversation_model,
                temperature=self.settings.extraction_temperature,
                max_tokens=self.settings.extraction_max_tokens
            )
        except QuoteAssistError as e:
            logger.warning("conversation_extraction_failed", error=e.message, code=e.code)
            return {}
        return result["content"]
