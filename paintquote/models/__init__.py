"""Data models for PaintQuote."""

from paintquote.models.quote_data import (
    ParsedQuoteData,
    ParsingResult,
    ProductChanges,
    ProjectType,
    QuoteEnhancements,
    RateAdjustments,
    SurfaceProductChange,
)
from paintquote.models.contractor_context import (
    BusinessMetrics,
    ContractorContext,
    ContractorSettings,
    PaintProduct,
    RecentQuoteSummary,
)
from paintquote.models.conversation import (
    AssistantReply,
    ConversationMessage,
    ConversationStage,
    ConversationState,
    PaintAction,
    PaintActionStatus,
    PaintActionType,
    merge_extracted_data,
)
from paintquote.models.pricing import PricingBreakdown, PricingResult

__all__ = [
    "ParsedQuoteData",
    "ParsingResult",
    "ProductChanges",
    "ProjectType",
    "QuoteEnhancements",
    "RateAdjustments",
    "SurfaceProductChange",
    "BusinessMetrics",
    "ContractorContext",
    "ContractorSettings",
    "PaintProduct",
    "RecentQuoteSummary",
    "AssistantReply",
    "ConversationMessage",
    "ConversationStage",
    "ConversationState",
    "PaintAction",
    "PaintActionStatus",
    "PaintActionType",
    "merge_extracted_data",
    "PricingBreakdown",
    "PricingResult",
]
