"""
Abstract base class for LLM providers.

Provides a unified interface for all LLM provider implementations,
so the assistant endpoints never depend on a particular SDK.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import logging

from ..utils.config import SETTINGS, Settings
from ..utils.exceptions import ConfigurationError

log = logging.getLogger(__name__)

# A chat turn as sent upstream: {"role": "user" | "assistant", "content": str}
Message = Dict[str, str]


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All provider implementations (Anthropic, OpenAI) inherit from this class
    and implement the required methods.

    Args:
        settings: Settings holding the API key and model; defaults to the global settings
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or SETTINGS

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name (e.g., 'openai', 'anthropic')."""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """Return the default model for this provider."""
        pass

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.api_key_for(self.name)

    def is_configured(self) -> bool:
        """True when an API key is present, whatever its format."""
        return bool(self.api_key)

    @abstractmethod
    def complete(
        self,
        messages: List[Message],
        system: str,
        max_tokens: int,
        model: Optional[str] = None,
        operation: str = "completion"
    ) -> str:
        """
        Run one chat completion.

        Args:
            messages: Conversation, oldest first, ending with the user turn
            system: System prompt
            max_tokens: Maximum tokens in the response
            model: Model override; the provider's default when None
            operation: Name of the calling operation, used in retry and error logs

        Returns:
            The text of the reply, or an empty string if the reply had no text

        Raises:
            ConfigurationError: If no API key is configured
            LLMProviderError: If the API call fails
        """
        pass

    @abstractmethod
    def validate_api_key(self) -> bool:
        """
        Validate that the API key is properly configured.

        Returns:
            True if API key is valid, False otherwise
        """
        pass

    def health_check(self) -> Dict[str, Any]:
        """
        Perform a health check on the provider.

        Returns:
            Dictionary with health status information
        """
        try:
            is_valid = self.validate_api_key()
            return {
                "provider": self.name,
                "model": self.model,
                "api_key_valid": is_valid,
                "status": "healthy" if is_valid else "unhealthy"
            }
        except Exception as e:
            log.error(f"Health check failed for {self.name}: {e}")
            return {
                "provider": self.name,
                "model": self.model,
                "api_key_valid": False,
                "status": "error",
                "error": str(e)
            }


class ProviderRegistry:
    """
    Registry for LLM provider instances.

    Maps provider names to classes; ``create`` builds an instance bound to given settings.
    """

    _providers: Dict[str, type] = {}

    @classmethod
    def register(cls, name: str, provider_class: type) -> None:
        """
        Register a provider class.

        Args:
            name: Provider name (e.g., 'openai', 'anthropic')
            provider_class: The provider class to register
        """
        cls._providers[name.lower()] = provider_class
        log.debug(f"Registered provider: {name}")

    @classmethod
    def _provider_class(cls, name: str) -> type:
        name = name.lower()
        if name not in cls._providers:
            available = ', '.join(cls._providers.keys())
            raise ConfigurationError(
                f"Unknown provider: {name}. Available providers: {available}"
            )
        return cls._providers[name]

    @classmethod
    def create(cls, name: str, settings: Settings) -> LLMProvider:
        """Build a new, unshared provider instance bound to ``settings``."""
        return cls._provider_class(name)(settings)

    @classmethod
    def available_providers(cls) -> list:
        """Return list of registered provider names."""
        return list(cls._providers.keys())
