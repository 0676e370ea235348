"""Unit tests for settings and error types."""

import pytest

from paintquote.config.errors import (
    ConfigurationError,
    DataSourceError,
    ErrorCode,
    ExtractionError,
    QuoteAssistError,
)
from paintquote.config.settings import Settings


class TestSettings:
    """Tests for Settings."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "env-key")
        monkeypatch.setenv("CONVERSATION_TEMPERATURE", "0.5")
        monkeypatch.setenv("DATA_SOURCE_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("LOG_BANNERS", "TRUE")

        settings = Settings()

        assert settings.openrouter_api_key == "env-key"
        assert settings.conversation_temperature == 0.5
        assert settings.data_source_max_attempts == 5
        assert settings.log_banners is True

    def test_blank_key_is_unset(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "   ")

        settings = Settings()

        assert settings.openrouter_api_key is None
        assert settings.has_model_backend is False

    def test_validate_missing_key(self, fallback_settings):
        with pytest.raises(ConfigurationError) as exc_info:
            fallback_settings.validate()

        assert exc_info.value.code == ErrorCode.MISSING_API_KEY
        assert exc_info.value.details == {"env_var": "OPENROUTER_API_KEY"}

    def test_validate_with_key(self, model_settings):
        model_settings.validate()

        assert model_settings.has_model_backend is True

    def test_key_not_in_repr(self, model_settings):
        assert "test-api-key" not in repr(model_settings)


class TestErrors:
    """Tests for the QuoteAssistError hierarchy."""

    def test_to_dict(self):
        error = QuoteAssistError(
            code=ErrorCode.LLM_RATE_LIMIT,
            message="LLM rate limit exceeded",
            details={"model": "openai/gpt-4o"}
        )

        assert error.to_dict() == {
            "code": "LLM_RATE_LIMIT",
            "message": "LLM rate limit exceeded",
            "details": {"model": "openai/gpt-4o"}
        }
        assert str(error) == "LLM rate limit exceeded"

    def test_extraction_error_records_stage(self):
        error = ExtractionError(
            code=ErrorCode.INVALID_EXTRACTION,
            message="Primary extraction failed",
            stage="primary_extraction",
            details={"cause": ErrorCode.LLM_INVALID_JSON}
        )

        assert isinstance(error, QuoteAssistError)
        assert error.stage == "primary_extraction"
        assert error.details == {"cause": "LLM_INVALID_JSON", "stage": "primary_extraction"}

    def test_data_source_error_records_resource(self):
        error = DataSourceError(
            code=ErrorCode.DATA_SOURCE_ERROR,
            message="Data source returned 500 for paints",
            resource="paints"
        )

        assert error.resource == "paints"
        assert error.to_dict()["details"] == {"resource": "paints"}
        assert repr(error) == (
            "DataSourceError(code='DATA_SOURCE_ERROR', message='Data source returned 500 for paints')"
        )
