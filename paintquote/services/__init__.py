"""PaintQuote services.

This package contains:
- llm_service: Chat-completion boundary (OpenRouter via LangChain)
- data_source: HTTP client for company, paint catalog and quote records
- context_loader: Contractor context assembly
- extraction strategies: model-backed and regex fallback
- field_extractor, quote_parser, quote_calculator: the quoting pipeline
"""

from paintquote.services.context_loader import ContractorContextLoader
from paintquote.services.data_source import ContractorDataSource
from paintquote.services.extraction_strategy import ExtractionStrategy, build_extraction_strategy
from paintquote.services.field_extractor import (
    FieldExtractor,
    CUSTOMER_INFO_INSTRUCTION,
    PROJECT_TYPE_INSTRUCTION,
)
from paintquote.services.llm_extraction import LLMExtractionStrategy
from paintquote.services.llm_service import LLMService
from paintquote.services.quote_calculator import QuoteCalculator, calculate_quote
from paintquote.services.quote_parser import (
    QuoteDataParser,
    assess_quality,
    enrich_with_calculations,
    generate_clarification_questions,
)
from paintquote.services.regex_extraction import RegexExtractionStrategy

__all__ = [
    "ContractorContextLoader",
    "ContractorDataSource",
    "ExtractionStrategy",
    "build_extraction_strategy",
    "FieldExtractor",
    "CUSTOMER_INFO_INSTRUCTION",
    "PROJECT_TYPE_INSTRUCTION",
    "LLMExtractionStrategy",
    "LLMService",
    "QuoteCalculator",
    "calculate_quote",
    "QuoteDataParser",
    "assess_quality",
    "enrich_with_calculations",
    "generate_clarification_questions",
    "RegexExtractionStrategy",
]
