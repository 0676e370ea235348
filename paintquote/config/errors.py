"""PaintQuote error handling.

Custom exceptions and error codes for the quote extraction core.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Configuration Errors
    MISSING_API_KEY = "MISSING_API_KEY"

    # Extraction Errors
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    INVALID_EXTRACTION = "INVALID_EXTRACTION"

    # LLM Errors
    LLM_ERROR = "LLM_ERROR"
    LLM_RATE_LIMIT = "LLM_RATE_LIMIT"
    LLM_CONTEXT_TOO_LONG = "LLM_CONTEXT_TOO_LONG"
    LLM_INVALID_JSON = "LLM_INVALID_JSON"

    # Data Source Errors
    DATA_SOURCE_ERROR = "DATA_SOURCE_ERROR"
    DATA_SOURCE_WRITE_FAILED = "DATA_SOURCE_WRITE_FAILED"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"


class QuoteAssistError(Exception):
    """Base exception for PaintQuote errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize QuoteAssistError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ConfigurationError(QuoteAssistError):
    """Missing or invalid configuration (e.g. no model-backend credential)."""


class ExtractionError(QuoteAssistError):
    """Extraction-stage error."""

    def __init__(
        self,
        code: str,
        message: str,
        stage: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "stage": stage}
        )
        self.stage = stage


class DataSourceError(QuoteAssistError):
    """Data source (HTTP API) error."""

    def __init__(
        self,
        code: str,
        message: str,
        resource: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "resource": resource}
        )
        self.resource = resource
