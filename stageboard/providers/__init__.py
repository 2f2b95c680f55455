"""LLM provider clients for stageboard."""

from .base import LLMProvider, ProviderRegistry
from . import anthropic_client, openai_client

__all__ = ['LLMProvider', 'ProviderRegistry', 'openai_client', 'anthropic_client']
