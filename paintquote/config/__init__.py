"""PaintQuote configuration.

This package contains:
- settings: Environment variables and configuration
- errors: Custom exceptions and error codes
"""

from paintquote.config.settings import Settings, settings
from paintquote.config.errors import (
    QuoteAssistError,
    ConfigurationError,
    ExtractionError,
    DataSourceError,
    ErrorCode,
)

__all__ = [
    "Settings",
    "settings",
    "QuoteAssistError",
    "ConfigurationError",
    "ExtractionError",
    "DataSourceError",
    "ErrorCode",
]
