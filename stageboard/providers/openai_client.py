"""OpenAI provider implementation."""
from openai import OpenAI, APIError, APIConnectionError, RateLimitError
import logging
from typing import List, Optional

from ..utils.config import Settings
from ..utils.exceptions import ConfigurationError, OpenAIError
from .base import LLMProvider, Message, ProviderRegistry
from .common import ClientCache, create_retry_decorator, validate_api_key_format

log = logging.getLogger(__name__)

RETRYABLE_ERRORS = (APIConnectionError, RateLimitError)


def _validate_api_key(api_key: Optional[str]) -> bool:
    """Validate OpenAI API key format (sk- prefix, min 20 chars)."""
    return validate_api_key_format(api_key, 'sk-', 20)


class OpenAIProvider(LLMProvider):
    """OpenAI Chat Completions behind the LLMProvider interface."""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self._cache = ClientCache(
            client_factory=lambda key: OpenAI(
                api_key=key,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=0,
            ),
            key_getter=lambda: self.api_key,
        )

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self.settings.openai_model

    def client(self) -> OpenAI:
        """Get OpenAI client, rebuilt whenever the API key changes."""
        if not self.api_key:
            raise ConfigurationError("API key not configured", details={"provider": self.name})
        try:
            return self._cache.get()
        except Exception as e:
            raise OpenAIError(f"Failed to initialize OpenAI client: {e}", cause=e)

    def _create_completion(self, **params):
        return self.client().chat.completions.create(**params)

    def complete(
        self,
        messages: List[Message],
        system: str,
        max_tokens: int,
        model: Optional[str] = None,
        operation: str = "completion"
    ) -> str:
        model = model or self.model
        chat = [{"role": "system", "content": system}] if system else []
        chat.extend(messages)

        create = create_retry_decorator(
            RETRYABLE_ERRORS, self.settings, f"{self.name} {operation}"
        )(self._create_completion)
        try:
            resp = create(model=model, messages=chat, max_tokens=max_tokens)
        except APIError as e:
            raise OpenAIError(f"OpenAI API error during {operation}: {e}", cause=e)

        if not resp.choices:
            log.warning(f"OpenAI {operation} reply from {model} contained no choices")
            return ""
        return resp.choices[0].message.content or ""

    def validate_api_key(self) -> bool:
        return _validate_api_key(self.api_key)


# Register the provider
ProviderRegistry.register("openai", OpenAIProvider)
