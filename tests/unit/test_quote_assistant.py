"""Unit tests for the conversational quote assistant."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from paintquote.agents.quote_assistant import (
    FALLBACK_CONFIDENCE,
    MODEL_CONFIDENCE,
    QuoteAssistant,
    build_system_prompt,
    determine_stage,
    generate_fallback_response,
)
from paintquote.config.errors import ConfigurationError, DataSourceError, ErrorCode
from paintquote.models.conversation import ConversationStage, ConversationState
from paintquote.services.regex_extraction import RegexExtractionStrategy


@pytest.fixture
def mock_data_source():
    source = MagicMock()
    source.update_paint_price = AsyncMock(return_value={"success": True})
    source.save_favorite_paint = AsyncMock(return_value={"success": True})
    return source


@pytest.fixture
def assistant(model_settings, stub_llm, mock_data_source):
    """Assistant with a stubbed reply model and deterministic extraction."""
    return QuoteAssistant(
        settings=model_settings,
        llm_service=stub_llm,
        strategy=RegexExtractionStrategy(settings=model_settings),
        data_source=mock_data_source,
        context_loader=MagicMock()
    )


class TestDetermineStage:
    """Tests for determine_stage."""

    @pytest.mark.parametrize("data,expected", [
        ({}, ConversationStage.COLLECTING_BASICS),
        ({"customer_name": "John"}, ConversationStage.COLLECTING_BASICS),
        ({"customer_name": "John", "property_address": "123 Main St"}, ConversationStage.COLLECTING_MEASUREMENTS),
        (
            {"customer_name": "John", "property_address": "123 Main St", "linear_feet": 120},
            ConversationStage.COLLECTING_PAINT_SPECS
        ),
        (
            {"customer_name": "John", "property_address": "123 Main St", "walls_sqft": 1200,
             "selected_paint": {"brand": "Behr"}},
            ConversationStage.COLLECTING_RATES
        ),
        (
            {"customer_name": "John", "property_address": "123 Main St", "walls_sqft": 1200,
             "paint_cost_per_gallon": 45, "wall_labor_rate": 1.5},
            ConversationStage.READY_FOR_MARKUP
        ),
        (
            {"customer_name": "John", "property_address": "123 Main St", "walls_sqft": 1200,
             "paint_cost_per_gallon": 45, "wall_labor_rate": 1.5, "markup_percent": 0},
            ConversationStage.COMPLETE
        ),
    ])
    def test_stages(self, data, expected):
        assert determine_stage(data) == expected.value


class TestPromptAndFallback:
    """Tests for the system prompt and canned replies."""

    def test_system_prompt_includes_context(self, conversation_state):
        conversation_state.extracted_data = {"customer_name": "John"}

        prompt = build_system_prompt(conversation_state.contractor_context, conversation_state)

        assert "Dana at Brush Strokes Painting" in prompt
        assert "WALL PAINT:\n  • Sherwin Williams ProClassic Interior - $58/gal" in prompt
        assert "  • Behr Premium Plus Ceiling - $42.5/gal" in prompt
        assert "Alice Brown (2 days ago): $4,000 interior" in prompt
        assert "CURRENT STAGE: collecting_basics" in prompt
        assert '"customer_name": "John"' in prompt

    def test_system_prompt_without_catalog(self, conversation_state):
        conversation_state.contractor_context.paint_products = []
        conversation_state.contractor_context.recent_quotes = []

        prompt = build_system_prompt(conversation_state.contractor_context, conversation_state)

        assert "Standard interior/exterior paints available" in prompt
        assert "No recent projects" in prompt

    @pytest.mark.parametrize("text,expected_start", [
        ("How much will this cost?", "I'd be happy to help you get an accurate quote! To give you Dana's"),
        ("What paint do you use?", "Great! Dana works with quality brands like Sherwin Williams and Benjamin Moore."),
        ("It's a three-room house", "Perfect! Let's get the details"),
        ("Hello there", "I'm here to help you get a professional painting quote from Dana."),
    ])
    def test_fallback_responses(self, conversation_state, text, expected_start):
        assert generate_fallback_response(text, conversation_state).startswith(expected_start)


class TestProcessMessage:
    """Tests for QuoteAssistant.process_message."""

    @pytest.mark.asyncio
    async def test_requires_credential(self, fallback_settings, stub_llm, conversation_state):
        """Test a missing model credential fails before any work is done."""
        assistant = QuoteAssistant(
            settings=fallback_settings,
            llm_service=stub_llm,
            strategy=RegexExtractionStrategy(settings=fallback_settings),
            data_source=MagicMock(),
            context_loader=MagicMock()
        )

        with pytest.raises(ConfigurationError) as exc_info:
            await assistant.process_message("John and the address is 123 Main St", conversation_state)

        assert exc_info.value.code == ErrorCode.MISSING_API_KEY
        assert conversation_state.conversation_history == []
        stub_llm.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_normal_turn(self, assistant, stub_llm, conversation_state, model_settings):
        reply = await assistant.process_message("John and the address is 123 Main St", conversation_state)

        assert reply.response == "Sounds good! What's the customer's name?"
        assert reply.used_fallback is False
        assert reply.confidence == MODEL_CONFIDENCE
        assert reply.extracted_data == {"customer_name": "John", "property_address": "123 Main St"}
        assert reply.next_stage == ConversationStage.COLLECTING_MEASUREMENTS.value
        assert conversation_state.stage == ConversationStage.COLLECTING_MEASUREMENTS.value
        assert [m.role for m in conversation_state.conversation_history] == ["user", "assistant"]

        kwargs = stub_llm.generate.call_args.kwargs
        assert kwargs["model"] == model_settings.conversation_model
        assert kwargs["temperature"] == model_settings.conversation_temperature
        assert kwargs["max_tokens"] == model_settings.conversation_max_tokens

    @pytest.mark.asyncio
    async def test_history_sent_on_next_turn(self, assistant, stub_llm, conversation_state):
        await assistant.process_message("John and the address is 123 Main St", conversation_state)
        await assistant.process_message("1200 sqft of walls", conversation_state)

        messages = stub_llm.generate.call_args.args[0]
        assert messages[1].content == "John and the address is 123 Main St"
        assert messages[2].content == "Sounds good! What's the customer's name?"
        assert 'Customer just said: "1200 sqft of walls"' in messages[-1].content
        assert conversation_state.extracted_data["walls_sqft"] == 1200
        assert conversation_state.extracted_data["customer_name"] == "John"

    @pytest.mark.asyncio
    async def test_reply_failure_uses_fallback(self, assistant, stub_llm, conversation_state):
        """Test a model failure still merges the extraction."""
        stub_llm.generate = AsyncMock(side_effect=Exception("upstream timeout"))

        reply = await assistant.process_message("The quote is for 1200 sqft of walls", conversation_state)

        assert reply.used_fallback is True
        assert reply.confidence == FALLBACK_CONFIDENCE
        assert reply.response.startswith("I'd be happy to help you get an accurate quote!")
        assert conversation_state.extracted_data["walls_sqft"] == 1200

    @pytest.mark.asyncio
    async def test_empty_reply_uses_fallback(self, assistant, stub_llm, conversation_state):
        stub_llm.generate = AsyncMock(return_value={"content": "   ", "tokens_used": 3})

        reply = await assistant.process_message("Hello there", conversation_state)

        assert reply.used_fallback is True
        assert reply.response.startswith("I'm here to help")

    @pytest.mark.asyncio
    async def test_extraction_failure_keeps_reply(self, model_settings, stub_llm, conversation_state):
        strategy = MagicMock()
        strategy.extract_conversation_data = AsyncMock(side_effect=RuntimeError("bad output"))
        assistant = QuoteAssistant(
            settings=model_settings,
            llm_service=stub_llm,
            strategy=strategy,
            data_source=MagicMock(),
            context_loader=MagicMock()
        )
        conversation_state.extracted_data = {"customer_name": "John"}

        reply = await assistant.process_message("anything", conversation_state)

        assert reply.used_fallback is False
        assert reply.extracted_data == {}
        assert conversation_state.extracted_data == {"customer_name": "John"}

    @pytest.mark.asyncio
    async def test_later_turn_keeps_customer(self, assistant, conversation_state):
        await assistant.process_message("John Smith at 123 Main Street", conversation_state)
        await assistant.process_message("Sounds good, 15% markup", conversation_state)

        data = conversation_state.extracted_data
        assert data["customer_name"] == "John Smith"
        assert data["property_address"] == "123 Main Street"
        assert data["markup_percent"] == 15

    @pytest.mark.asyncio
    async def test_concurrent_turns_are_serialized(self, assistant, conversation_state):
        await asyncio.gather(
            assistant.process_message("John and the address is 123 Main St", conversation_state),
            assistant.process_message("1200 sqft of walls", conversation_state),
        )

        roles = [m.role for m in conversation_state.conversation_history]
        assert roles == ["user", "assistant", "user", "assistant"]


class TestPaintActions:
    """Tests for price updates and new favorites."""

    @pytest.mark.asyncio
    async def test_price_update(self, assistant, mock_data_source, conversation_state):
        reply = await assistant.process_message("update ProClassic price to $52", conversation_state)

        assert len(reply.paint_actions) == 1
        action = reply.paint_actions[0]
        assert action.type == "price_update"
        assert action.status == "success"
        assert action.product_id == "paint-1"
        mock_data_source.update_paint_price.assert_awaited_once_with("company-123", "paint-1", 52.0)
        assert "price_update" not in conversation_state.extracted_data
        assert reply.extracted_data == {}

    @pytest.mark.asyncio
    async def test_price_update_unknown_product(self, assistant, mock_data_source, conversation_state):
        reply = await assistant.process_message("update Duration price to $60", conversation_state)

        action = reply.paint_actions[0]
        assert action.status == "failed"
        assert action.error == ErrorCode.PRODUCT_NOT_FOUND
        mock_data_source.update_paint_price.assert_not_called()

    @pytest.mark.asyncio
    async def test_price_update_write_failure(self, assistant, mock_data_source, conversation_state):
        mock_data_source.update_paint_price = AsyncMock(side_effect=DataSourceError(
            code=ErrorCode.DATA_SOURCE_WRITE_FAILED,
            message="price_update rejected with status 500",
            resource="price_update"
        ))

        reply = await assistant.process_message("update ProClassic price to $52", conversation_state)

        action = reply.paint_actions[0]
        assert action.status == "failed"
        assert action.error == "price_update rejected with status 500"
        assert reply.used_fallback is False

    @pytest.mark.asyncio
    async def test_save_new_favorite(self, assistant, mock_data_source, conversation_state):
        reply = await assistant.process_message(
            "save Behr Premium Plus at $38/gal as a favorite", conversation_state
        )

        action = reply.paint_actions[0]
        assert action.type == "save_favorite"
        assert action.status == "success"
        company_id, favorite = mock_data_source.save_favorite_paint.call_args.args
        assert company_id == "company-123"
        assert favorite["product"] == "Premium Plus"
        assert mock_data_source.save_favorite_paint.call_args.kwargs == {"category": "wall_paint"}
        assert conversation_state.extracted_data["paint_brand"] == "Behr"
        assert "save_new_favorite" not in conversation_state.extracted_data

    @pytest.mark.asyncio
    async def test_failed_action_does_not_stop_others(self, assistant, mock_data_source, sample_context):
        mock_data_source.update_paint_price = AsyncMock(side_effect=DataSourceError(
            code=ErrorCode.DATA_SOURCE_WRITE_FAILED,
            message="price_update rejected with status 500",
            resource="price_update"
        ))

        actions = await assistant.handle_paint_actions({
            "price_update": {"product": "ProClassic", "new_price": 52.0},
            "save_new_favorite": {"brand": "Behr", "product": "Premium Plus", "price": 38.0},
        }, sample_context)

        assert [a.type for a in actions] == ["price_update", "save_favorite"]
        assert [a.status for a in actions] == ["failed", "success"]
        mock_data_source.save_favorite_paint.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_incomplete_actions_ignored(self, assistant, sample_context):
        actions = await assistant.handle_paint_actions({
            "price_update": {"product": "ProClassic"},
            "save_new_favorite": {"product": "Premium Plus"},
        }, sample_context)

        assert actions == []


class TestConversationLifecycle:
    """Tests for start_conversation and price_quote."""

    @pytest.mark.asyncio
    async def test_start_conversation(self, assistant, sample_context):
        assistant.context_loader.load = AsyncMock(return_value=sample_context)

        state = await assistant.start_conversation("company-123")

        assistant.context_loader.load.assert_awaited_once_with("company-123")
        assert isinstance(state, ConversationState)
        assert state.stage == ConversationStage.COLLECTING_BASICS.value
        assert state.contractor_context is sample_context

    def test_price_quote(self, assistant, conversation_state):
        conversation_state.extracted_data = {
            "customer_name": "John",
            "walls_sqft": 1200,
            "paint_cost_per_gallon": 45,
            "markup_percent": 15,
            "selected_paint": {"brand": "Behr"},
        }

        result = assistant.price_quote(conversation_state)

        assert result.paint_gallons_needed == 4
        assert result.materials_cost == 180
        assert result.final_quote == pytest.approx(result.subtotal * 1.15)
