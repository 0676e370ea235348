"""PaintQuote conversational agents.

This package contains:
- QuoteAssistant: multi-turn quoting conversation with paint catalog actions
"""

from paintquote.agents.quote_assistant import QuoteAssistant, determine_stage

__all__ = ["QuoteAssistant", "determine_stage"]
