"""LLM service for PaintQuote.

Chat-completion boundary over OpenRouter via LangChain's ChatOpenAI.
Every call site treats this boundary as fallible and latent.
"""

import json
import re
from typing import Dict, Any, Optional, List, Tuple
import structlog
from langchain_openai import ChatOpenAI
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from paintquote.config.settings import Settings, settings as default_settings
from paintquote.config.errors import QuoteAssistError, ErrorCode

logger = structlog.get_logger()

_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    content = content.strip()
    if content.startswith("```"):
        content = _FENCE_OPEN_RE.sub("", content)
        content = _FENCE_CLOSE_RE.sub("", content)
    return content.strip()


def parse_json_object(content: str) -> Dict[str, Any]:
    """Parse a JSON object from model output.

    Handles markdown fences and leading/trailing prose around the object.

    Raises:
        QuoteAssistError: If no JSON object can be parsed.
    """
    cleaned = strip_code_fences(content or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_RE.search(cleaned)
        if not match:
            raise QuoteAssistError(
                code=ErrorCode.LLM_INVALID_JSON,
                message="LLM did not return valid JSON",
                details={"raw_content": (content or "")[:500]}
            )
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise QuoteAssistError(
                code=ErrorCode.LLM_INVALID_JSON,
                message="LLM did not return valid JSON",
                details={"parse_error": str(e), "raw_content": (content or "")[:500]}
            )

    if not isinstance(parsed, dict):
        raise QuoteAssistError(
            code=ErrorCode.LLM_INVALID_JSON,
            message="LLM returned JSON that is not an object",
            details={"raw_content": (content or "")[:500]}
        )
    return parsed


class LLMService:
    """Service for LLM operations using LangChain.

    Wraps ChatOpenAI (pointed at OpenRouter) with per-model client caching,
    token tracking and error mapping.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None
    ):
        """Initialize LLMService.

        Args:
            model: Default model id (default: conversation model from settings).
            temperature: Default temperature (default: extraction temperature).
            api_key: OpenRouter API key (default from settings).
            settings: Settings instance (default: module settings).
        """
        self.settings = settings or default_settings
        self.model = model or self.settings.conversation_model
        self.temperature = temperature if temperature is not None else self.settings.extraction_temperature
        self.api_key = api_key or self.settings.openrouter_api_key

        self._clients: Dict[Tuple[str, float], ChatOpenAI] = {}
        self._total_tokens_used = 0

    @property
    def total_tokens_used(self) -> int:
        """Get total tokens used across all calls."""
        return self._total_tokens_used

    def _get_client(self, model: str, temperature: float) -> ChatOpenAI:
        key = (model, temperature)
        if key not in self._clients:
            self._clients[key] = self.create_chat_model(model=model, temperature=temperature)
        return self._clients[key]

    async def generate(
        self,
        messages: List[BaseMessage],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response from the LLM.

        Args:
            messages: List of LangChain messages.
            model: Optional model id override.
            temperature: Optional temperature override.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with content and token usage.

        Raises:
            QuoteAssistError: If LLM call fails.
        """
        model_name = model or self.model
        temp = temperature if temperature is not None else self.temperature

        try:
            kwargs = {}
            if max_tokens:
                kwargs["max_tokens"] = max_tokens

            response = await self._get_client(model_name, temp).ainvoke(messages, **kwargs)

            tokens_used = 0
            if hasattr(response, "response_metadata"):
                usage = (response.response_metadata or {}).get("token_usage") or {}
                tokens_used = usage.get("total_tokens", 0) or 0
                self._total_tokens_used += tokens_used

            content = response.content if isinstance(response.content, str) else str(response.content)

            logger.info(
                "llm_generated",
                model=model_name,
                tokens_used=tokens_used,
                content_length=len(content)
            )

            return {
                "content": content,
                "tokens_used": tokens_used
            }

        except Exception as e:
            error_msg = str(e)

            # Detect specific error types
            if "rate_limit" in error_msg.lower() or "429" in error_msg:
                raise QuoteAssistError(
                    code=ErrorCode.LLM_RATE_LIMIT,
                    message="LLM rate limit exceeded",
                    details={"original_error": error_msg, "model": model_name}
                )
            elif "context_length" in error_msg.lower() or "maximum context" in error_msg.lower():
                raise QuoteAssistError(
                    code=ErrorCode.LLM_CONTEXT_TOO_LONG,
                    message="Input too long for model context",
                    details={"original_error": error_msg, "model": model_name}
                )
            else:
                raise QuoteAssistError(
                    code=ErrorCode.LLM_ERROR,
                    message=f"LLM generation failed: {error_msg}",
                    details={"original_error": error_msg, "model": model_name}
                )

    async def generate_with_system_prompt(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response with system prompt.

        Args:
            system_prompt: System prompt for context.
            user_message: User message/query.
            model: Optional model id override.
            temperature: Optional temperature override.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with content and token usage.
        """
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_message)
        ]
        return await self.generate(messages, model=model, temperature=temperature, max_tokens=max_tokens)

    async def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a JSON object response.

        Adds JSON formatting instructions to the system prompt.

        Returns:
            Dict with parsed JSON content and token usage.

        Raises:
            QuoteAssistError: If the call fails or the response is not a JSON object.
        """
        json_prompt = f"""{system_prompt}

IMPORTANT: You MUST respond with valid JSON only. No markdown, no explanation, just JSON."""

        result = await self.generate_with_system_prompt(
            json_prompt,
            user_message,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens
        )

        return {
            "content": parse_json_object(result["content"]),
            "tokens_used": result["tokens_used"]
        }

    def create_chat_model(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None
    ) -> ChatOpenAI:
        """Create a new ChatOpenAI instance bound to the OpenRouter endpoint.

        Args:
            model: Model id (default: service model).
            temperature: Temperature (default: service temperature).

        Returns:
            Configured ChatOpenAI instance.
        """
        return ChatOpenAI(
            model=model or self.model,
            temperature=temperature if temperature is not None else self.temperature,
            api_key=self.api_key,
            base_url=self.settings.llm_base_url,
            timeout=self.settings.llm_timeout_seconds,
            default_headers={
                "HTTP-Referer": self.settings.app_url,
                "X-Title": self.settings.app_title,
            }
        )
