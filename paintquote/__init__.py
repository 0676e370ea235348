"""PaintQuote - Quote Extraction & Conversational Assistant Core.

This package contains the natural-language quoting core for painting
contractors.

Architecture:
- Context Loader: contractor settings, paint catalog and recent business history
- Quote Parser: primary extraction -> validation -> enrichment -> quality assessment
- Field Extractor: single-question disambiguation
- Quote Calculator: deterministic pricing (labor = 30% of subtotal)
- Quote Assistant: multi-turn orchestrator with paint-catalog actions
- Extraction strategies: model-backed (OpenRouter) or regex fallback
"""

__version__ = "1.0.0"
