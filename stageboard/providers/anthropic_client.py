"""Anthropic provider implementation."""
from anthropic import Anthropic, APIError, APIConnectionError, RateLimitError
import logging
from typing import List, Optional

from ..utils.config import Settings
from ..utils.exceptions import AnthropicError, ConfigurationError
from .base import LLMProvider, Message, ProviderRegistry
from .common import ClientCache, create_retry_decorator, validate_api_key_format

log = logging.getLogger(__name__)

RETRYABLE_ERRORS = (APIConnectionError, RateLimitError)


def _validate_api_key(api_key: Optional[str]) -> bool:
    """Validate Anthropic API key format (sk-ant- prefix, min 30 chars)."""
    return validate_api_key_format(api_key, 'sk-ant-', 30)


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API behind the LLMProvider interface."""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        # The SDK's own retries are off; tenacity handles them
        self._cache = ClientCache(
            client_factory=lambda key: Anthropic(
                api_key=key,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=0,
            ),
            key_getter=lambda: self.api_key,
        )

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model(self) -> str:
        return self.settings.anthropic_model

    def client(self) -> Anthropic:
        """Get Anthropic client, rebuilt whenever the API key changes."""
        if not self.api_key:
            raise ConfigurationError("API key not configured", details={"provider": self.name})
        try:
            return self._cache.get()
        except Exception as e:
            raise AnthropicError(f"Failed to initialize Anthropic client: {e}", cause=e)

    def _create_message(self, **params):
        return self.client().messages.create(**params)

    def complete(
        self,
        messages: List[Message],
        system: str,
        max_tokens: int,
        model: Optional[str] = None,
        operation: str = "completion"
    ) -> str:
        model = model or self.model
        create = create_retry_decorator(
            RETRYABLE_ERRORS, self.settings, f"{self.name} {operation}"
        )(self._create_message)
        try:
            msg = create(
                model=model,
                max_tokens=max_tokens,
                system=system,
                messages=messages,
            )
        except APIError as e:
            raise AnthropicError(f"Anthropic API error during {operation}: {e}", cause=e)

        for block in msg.content or []:
            if hasattr(block, 'text'):
                return block.text
        log.warning(f"Anthropic {operation} reply from {model} contained no text content")
        return ""

    def validate_api_key(self) -> bool:
        return _validate_api_key(self.api_key)


# Register the provider
ProviderRegistry.register("anthropic", AnthropicProvider)
