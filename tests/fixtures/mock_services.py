"""
Mock services for external API dependencies.
Provides a scripted LLM provider and realistic SDK response objects.
"""
from typing import List, Optional
from unittest.mock import Mock

from stageboard.providers.base import LLMProvider
from stageboard.utils.exceptions import LLMProviderError


class FakeProvider(LLMProvider):
    """
    LLMProvider that returns a canned reply and records every call.

    Pass ``error`` to make ``complete`` raise it instead.
    """

    def __init__(self, settings=None, reply: str = "", error: Optional[Exception] = None, name: str = "anthropic"):
        super().__init__(settings)
        self.reply = reply
        self.error = error
        self._name = name
        self.calls: List[dict] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def model(self) -> str:
        return "fake-model"

    def complete(self, messages, system, max_tokens, model=None, operation="completion") -> str:
        self.calls.append({
            "messages": messages,
            "system": system,
            "max_tokens": max_tokens,
            "model": model,
            "operation": operation,
        })
        if self.error is not None:
            raise self.error
        return self.reply

    def validate_api_key(self) -> bool:
        return self.is_configured()


def failing_provider(settings=None) -> FakeProvider:
    return FakeProvider(settings, error=LLMProviderError("upstream returned 529"))


def anthropic_message(*texts: str) -> Mock:
    """Messages API response whose content blocks carry ``texts``."""
    message = Mock()
    message.content = [Mock(text=text) for text in texts]
    return message


def anthropic_message_without_text() -> Mock:
    message = Mock()
    message.content = [Mock(spec=["type"])]
    return message


def openai_completion(content: Optional[str]) -> Mock:
    """Chat Completions response with a single choice."""
    response = Mock()
    choice = Mock()
    choice.message = Mock(content=content)
    response.choices = [choice]
    return response
