"""Conversational Quote Assistant.

Drives a multi-turn quoting conversation: each turn generates a prose reply
and, concurrently, extracts structured fields from the same message. Fields
are merged into the conversation accumulator, paint catalog actions found in
the message are dispatched to the data source, and the stage is recomputed
from what has been collected so far.
"""

import asyncio
import json
from typing import Dict, Any, List, Optional

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from paintquote.config.settings import Settings, settings as default_settings
from paintquote.config.errors import ErrorCode, QuoteAssistError
from paintquote.models.contractor_context import ContractorContext
from paintquote.models.conversation import (
    AssistantReply,
    ConversationStage,
    ConversationState,
    PaintAction,
    PaintActionStatus,
    PaintActionType,
    is_empty_value,
    merge_extracted_data,
)
from paintquote.models.quote_data import coerce_number
from paintquote.models.pricing import PricingResult
from paintquote.services.context_loader import ContractorContextLoader
from paintquote.services.data_source import ContractorDataSource
from paintquote.services.extraction_strategy import ExtractionStrategy, build_extraction_strategy
from paintquote.services.llm_service import LLMService
from paintquote.services.quote_calculator import calculate_quote
from paintquote.utils.pipeline_logger import log_paint_action, log_turn

logger = structlog.get_logger()


MODEL_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.3

# Extraction keys that trigger catalog writes instead of being accumulated
ACTION_KEYS = ("price_update", "save_new_favorite")

FAVORITES_PER_CATEGORY = 3
RECENT_PROJECTS_IN_PROMPT = 3


# =============================================================================
# Prompt
# =============================================================================


def _format_paint_favorites(context: ContractorContext) -> str:
    sections = []
    for category, products in context.products_by_category().items():
        lines = [
            f"  • {p.display_name} - ${p.cost_per_gallon:g}/gal"
            for p in products[:FAVORITES_PER_CATEGORY]
        ]
        sections.append(f"{category.replace('_', ' ').upper()}:\n" + "\n".join(lines))
    return "\n\n".join(sections) or "Standard interior/exterior paints available"


def _format_recent_projects(context: ContractorContext) -> str:
    lines = [
        f"{q.customer_name or 'Unknown'} ({q.days_ago} days ago): ${q.amount:,.0f} {q.project_type}".rstrip()
        for q in context.recent_quotes[:RECENT_PROJECTS_IN_PROMPT]
    ]
    return "\n".join(lines) or "No recent projects"


def build_system_prompt(context: ContractorContext, state: ConversationState) -> str:
    """System prompt for the conversational reply.

    Embeds contractor identity, default rates, paint favorites, recent
    projects, the current stage and everything collected so far.
    """
    rates = context.settings
    collected = json.dumps(state.extracted_data, indent=2, default=str)

    return f"""You are a painting quote assistant for {context.contact_name} at {context.company_name}. Collect structured quote data through natural conversation, one category at a time.

CORE GOAL: Collect all vital information first. NO calculations or price estimates until all data is gathered.

CHECKLIST:
1. Project basics: customer name, property address, interior/exterior
2. Dimensions: wall linear feet and height, or square footage per surface
3. Paint products per surface, from favorites or new products
4. Labor rates per surface or unit
5. Markup confirmation

CONVERSATION RULES:
• Stay focused on painting quotes only - politely redirect other topics
• Be natural and conversational, not robotic
• Ask one question at a time
• Pick up any detail the contractor mentions, even out of order
• Smart unit detection: 1200 = sq ft area, 50 = linear feet, 9 = ceiling height
• Use the contractor's favorites for quick paint selection
• Parse customer info carefully: "John and the address is 123 Main St" = Name: John, Address: 123 Main St
• Ask for clarification if name/address parsing seems unclear

CONTRACTOR CONTEXT:
{context.contact_name} at {context.company_name} ({context.business_type})
Default rates: ${rates.default_walls_rate:g}/hr walls, ${rates.default_ceilings_rate:g}/hr ceiling, ${rates.default_trim_rate:g}/hr trim
Markup: {rates.default_markup_percentage:g}%

PAINT FAVORITES AVAILABLE:
{_format_paint_favorites(context)}

RECENT PROJECTS:
{_format_recent_projects(context)}

CURRENT STAGE: {state.stage}
COLLECTED DATA: {collected}

PAINT SELECTION FLOW:
1. Show favorites: "I see you have [product] at $[price]/gal for [surface]. Use this or different paint?"
2. If new paint: get brand, product, cost per gallon
3. Offer to save it as a new favorite

Guide naturally toward complete data collection and calculate only at the end."""


def generate_fallback_response(user_input: str, state: ConversationState) -> str:
    """Keyword-triggered canned reply used when the model call fails."""
    context = state.contractor_context
    lowered = (user_input or "").lower()

    if any(word in lowered for word in ("price", "cost", "quote")):
        return (
            f"I'd be happy to help you get an accurate quote! To give you {context.contact_name}'s "
            "best pricing, I'll need to know about your project. What rooms or areas need painting?"
        )

    if "paint" in lowered or "color" in lowered:
        suppliers = []
        for product in context.paint_products:
            if product.supplier and product.supplier not in suppliers:
                suppliers.append(product.supplier)
            if len(suppliers) == 2:
                break
        brands = " and ".join(suppliers) or "top paint manufacturers"
        return (
            f"Great! {context.contact_name} works with quality brands like {brands}. "
            "What type of project are we painting - interior or exterior?"
        )

    if any(word in lowered for word in ("room", "house", "wall")):
        return (
            "Perfect! Let's get the details for your painting project. "
            "Could you tell me the approximate square footage or room dimensions?"
        )

    return (
        f"I'm here to help you get a professional painting quote from {context.contact_name}. "
        "What can you tell me about your painting project?"
    )


def _has_any(data: Dict[str, Any], *keys: str) -> bool:
    return any(not is_empty_value(data.get(key)) for key in keys)


def determine_stage(data: Dict[str, Any]) -> str:
    """Next checklist stage for the accumulated data."""
    if not _has_any(data, "customer_name") or not _has_any(data, "property_address"):
        return ConversationStage.COLLECTING_BASICS.value
    if not _has_any(data, "walls_sqft", "linear_feet", "calculated_wall_area_sqft", "ceilings_sqft"):
        return ConversationStage.COLLECTING_MEASUREMENTS.value
    if not _has_any(data, "paint_cost_per_gallon", "paint_brand", "paint_product", "selected_paint"):
        return ConversationStage.COLLECTING_PAINT_SPECS.value
    if not _has_any(data, "wall_labor_rate", "ceiling_labor_rate", "labor_cost_per_sqft", "trim_labor_rate"):
        return ConversationStage.COLLECTING_RATES.value
    if data.get("markup_percent") is None:
        return ConversationStage.READY_FOR_MARKUP.value
    return ConversationStage.COMPLETE.value


# =============================================================================
# Assistant
# =============================================================================


class QuoteAssistant:
    """Conversational quoting assistant for one contractor at a time."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_service: Optional[LLMService] = None,
        strategy: Optional[ExtractionStrategy] = None,
        data_source: Optional[ContractorDataSource] = None,
        context_loader: Optional[ContractorContextLoader] = None
    ):
        """Initialize QuoteAssistant.

        Args:
            settings: Settings instance (default: module settings).
            llm_service: LLMService for the conversational reply.
            strategy: Extraction strategy (default: selected from settings).
            data_source: Data source for paint catalog writes.
            context_loader: Loader used by start_conversation.
        """
        self.settings = settings or default_settings
        self.llm = llm_service or LLMService(settings=self.settings)
        self.strategy = strategy or build_extraction_strategy(self.settings, llm_service=self.llm)
        self.data_source = data_source or ContractorDataSource(settings=self.settings)
        self.context_loader = context_loader or ContractorContextLoader(
            data_source=self.data_source,
            settings=self.settings
        )

    async def start_conversation(self, company_id: str) -> ConversationState:
        """Load the contractor context and open a new conversation."""
        context = await self.context_loader.load(company_id)
        logger.info("conversation_started", company_id=company_id)
        return ConversationState(contractor_context=context)

    async def process_message(self, user_input: str, state: ConversationState) -> AssistantReply:
        """Process one user turn.

        Turns of the same conversation are serialized on the state's lock.
        Only a missing model credential raises; every other failure degrades
        to a fallback reply, an empty extraction or a failed paint action.

        Args:
            user_input: The contractor's message.
            state: Conversation state, updated in place.

        Returns:
            AssistantReply for this turn.

        Raises:
            ConfigurationError: If no model-backend credential is configured.
        """
        self.settings.validate()

        async with state.turn_lock:
            previous_stage = state.stage
            reply_result, extraction_result = await asyncio.gather(
                self._generate_reply(user_input, state),
                self.strategy.extract_conversation_data(
                    user_input, state.extracted_data, context=state.contractor_context
                ),
                return_exceptions=True
            )

            used_fallback = isinstance(reply_result, BaseException)
            if used_fallback:
                logger.warning(
                    "conversation_reply_failed",
                    company_id=state.contractor_context.company_id,
                    error=str(reply_result)
                )
                response = generate_fallback_response(user_input, state)
            else:
                response = reply_result

            if isinstance(extraction_result, BaseException) or not isinstance(extraction_result, dict):
                if isinstance(extraction_result, BaseException):
                    logger.warning("conversation_extraction_error", error=str(extraction_result))
                extraction_result = {}

            paint_actions = await self.handle_paint_actions(extraction_result, state.contractor_context)

            turn_data = {k: v for k, v in extraction_result.items() if k not in ACTION_KEYS}
            state.extracted_data = merge_extracted_data(state.extracted_data, turn_data)
            state.add_message("user", user_input)
            state.add_message("assistant", response)
            state.stage = determine_stage(state.extracted_data)

            log_turn(
                company_id=state.contractor_context.company_id,
                stage=previous_stage,
                next_stage=state.stage,
                used_fallback=used_fallback,
                extracted_fields=sorted(k for k, v in turn_data.items() if not is_empty_value(v))
            )

            return AssistantReply(
                response=response,
                extracted_data=turn_data,
                next_stage=state.stage,
                confidence=FALLBACK_CONFIDENCE if used_fallback else MODEL_CONFIDENCE,
                paint_actions=paint_actions,
                used_fallback=used_fallback
            )

    def price_quote(self, state: ConversationState) -> PricingResult:
        """Price everything collected so far."""
        return calculate_quote(state.extracted_data)

    async def _generate_reply(self, user_input: str, state: ConversationState) -> str:
        context = state.contractor_context
        messages: List[BaseMessage] = [SystemMessage(content=build_system_prompt(context, state))]
        for message in state.recent_history(self.settings.conversation_history_window):
            if message.role == "user":
                messages.append(HumanMessage(content=message.content))
            else:
                messages.append(AIMessage(content=message.content))
        messages.append(HumanMessage(content=(
            f'Customer just said: "{user_input}"\n\n'
            f"Please respond naturally as {context.contact_name}'s painting quote assistant, "
            "staying focused on painting and quotes. Guide the conversation forward."
        )))

        result = await self.llm.generate(
            messages,
            model=self.settings.conversation_model,
            temperature=self.settings.conversation_temperature,
            max_tokens=self.settings.conversation_max_tokens
        )
        content = (result.get("content") or "").strip()
        if not content:
            raise QuoteAssistError(code=ErrorCode.LLM_ERROR, message="LLM returned an empty reply")
        return content

    async def handle_paint_actions(
        self,
        extracted: Dict[str, Any],
        context: ContractorContext
    ) -> List[PaintAction]:
        """Dispatch price updates and new favorites found in the extraction.

        Each action is tracked independently; a failure is recorded on the
        action and never raised.
        """
        actions: List[PaintAction] = []

        price_update = extracted.get("price_update")
        if isinstance(price_update, dict) and price_update.get("new_price"):
            actions.append(await self._update_price(price_update, context))

        favorite = extracted.get("save_new_favorite")
        if isinstance(favorite, dict) and favorite.get("brand"):
            actions.append(await self._save_favorite(favorite, context))

        return actions

    async def _update_price(self, price_update: Dict[str, Any], context: ContractorContext) -> PaintAction:
        action = PaintAction(type=PaintActionType.PRICE_UPDATE, data=price_update)
        product = context.find_paint_product(str(price_update.get("product") or ""))
        if product is None or not product.id:
            action.status = PaintActionStatus.FAILED.value
            action.error = ErrorCode.PRODUCT_NOT_FOUND
            log_paint_action(action.type, action.status, action.data, error=action.error)
            return action

        action.product_id = product.id
        try:
            await self.data_source.update_paint_price(
                context.company_id, product.id, coerce_number(price_update["new_price"])
            )
            action.status = PaintActionStatus.SUCCESS.value
        except QuoteAssistError as e:
            action.status = PaintActionStatus.FAILED.value
            action.error = e.message
        except Exception as e:
            action.status = PaintActionStatus.FAILED.value
            action.error = str(e)
        log_paint_action(action.type, action.status, action.data, error=action.error)
        return action

    async def _save_favorite(self, favorite: Dict[str, Any], context: ContractorContext) -> PaintAction:
        action = PaintAction(type=PaintActionType.SAVE_FAVORITE, data=favorite)
        try:
            await self.data_source.save_favorite_paint(
                context.company_id, favorite, category=favorite.get("category")
            )
            action.status = PaintActionStatus.SUCCESS.value
        except QuoteAssistError as e:
            action.status = PaintActionStatus.FAILED.value
            action.error = e.message
        except Exception as e:
            action.status = PaintActionStatus.FAILED.value
            action.error = str(e)
        log_paint_action(action.type, action.status, action.data, error=action.error)
        return action
