"""Pytest configuration and shared fixtures for PaintQuote tests."""

import os
import sys

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from tenacity import wait_none


# ============================================================================
# Ensure the repository root is importable (paintquote/, tests/)
# ============================================================================

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Settings
# ============================================================================

@pytest.fixture
def model_settings():
    """Settings with a model-backend credential configured."""
    from paintquote.config.settings import Settings

    return Settings(
        openrouter_api_key="test-api-key",
        data_source_base_url="http://testserver",
        data_source_max_attempts=3,
        log_banners=False
    )


@pytest.fixture
def fallback_settings():
    """Settings with no credential (regex fallback mode)."""
    from paintquote.config.settings import Settings

    return Settings(
        openrouter_api_key=None,
        data_source_base_url="http://testserver",
        log_banners=False
    )


# ============================================================================
# LLM Mocks
# ============================================================================

@pytest.fixture
def mock_chat_openai():
    """Mock ChatOpenAI client."""
    mock = AsyncMock()
    mock.ainvoke.return_value = MagicMock(
        content="Mock response content",
        response_metadata={"token_usage": {"total_tokens": 100}}
    )
    return mock


@pytest.fixture
def mock_llm_service(model_settings, mock_chat_openai):
    """LLMService whose chat clients are all the mock client."""
    from paintquote.services.llm_service import LLMService

    service = LLMService(settings=model_settings)
    service.create_chat_model = MagicMock(return_value=mock_chat_openai)
    return service


@pytest.fixture
def stub_llm():
    """Bare async stub with the LLMService call surface."""
    llm = MagicMock()
    llm.generate = AsyncMock(return_value={"content": "Sounds good! What's the customer's name?", "tokens_used": 42})
    llm.generate_json = AsyncMock(return_value={"content": {}, "tokens_used": 10})
    return llm


# ============================================================================
# Contractor Context
# ============================================================================

@pytest.fixture
def sample_context():
    """Contractor context with a small paint catalog and history."""
    from paintquote.models.contractor_context import ContractorContext, RecentQuoteSummary
    from tests.fixtures.sample_inputs import PAINTS_PAYLOAD

    return ContractorContext(
        company_id="company-123",
        company_name="Brush Strokes Painting",
        contact_name="Dana",
        paint_products=PAINTS_PAYLOAD["paints"],
        recent_quotes=[
            RecentQuoteSummary(
                customer_name="Alice Brown",
                address="12 Elm St",
                amount=4000,
                status="accepted",
                days_ago=2,
                project_type="interior"
            )
        ]
    )


@pytest.fixture
def conversation_state(sample_context):
    """Fresh conversation state for the sample contractor."""
    from paintquote.models.conversation import ConversationState

    return ConversationState(contractor_context=sample_context)


# ============================================================================
# Data Source
# ============================================================================

@pytest.fixture
def fixed_now():
    """Deterministic clock for metrics tests."""
    from tests.fixtures.sample_inputs import FIXED_NOW

    return lambda: FIXED_NOW


@pytest.fixture
def api_handler():
    """httpx MockTransport handler serving the sample payloads.

    Records every request in `handler.requests`.
    """
    from tests.fixtures.sample_inputs import (
        COMPANY_PAYLOAD,
        SETTINGS_PAYLOAD,
        PAINTS_PAYLOAD,
        QUOTES_PAYLOAD,
    )

    def handler(request: httpx.Request) -> httpx.Response:
        handler.requests.append(request)
        path = request.url.path
        if path == "/api/companies/settings":
            return httpx.Response(200, json=SETTINGS_PAYLOAD)
        if path == "/api/companies/paints":
            return httpx.Response(200, json=PAINTS_PAYLOAD)
        if path == "/api/quotes":
            return httpx.Response(200, json=QUOTES_PAYLOAD)
        if path.startswith("/api/companies/"):
            return httpx.Response(200, json=COMPANY_PAYLOAD)
        if path == "/api/paint-products/favorites":
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"error": "not found"})

    handler.requests = []
    return handler


@pytest.fixture
def make_data_source(model_settings):
    """Factory for a ContractorDataSource over a MockTransport handler."""
    from paintquote.services.data_source import ContractorDataSource

    def _make(handler):
        return ContractorDataSource(
            settings=model_settings,
            transport=httpx.MockTransport(handler),
            wait=wait_none()
        )

    return _make


@pytest.fixture
def data_source(make_data_source, api_handler):
    """Data source serving the sample payloads."""
    return make_data_source(api_handler)
