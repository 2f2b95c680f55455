"""
Intake and build assistant operations.

Both are a single request/response round trip to the configured LLM
provider followed by lenient parsing of the reply.
"""
import logging
from typing import Any, Dict, List, Optional

from ..providers.base import LLMProvider, Message
from ..utils.config import SETTINGS, Settings
from ..utils.exceptions import ConfigurationError, LLMProviderError, ValidationError
from .prompts import build_system_prompt, build_user_prompt, intake_system_prompt
from .replies import parse_build_steps, parse_intake_reply

log = logging.getLogger(__name__)


def conversation(history: Any, message: str, limit: int = 20) -> List[Message]:
    """
    Chat turns to send upstream: usable history entries plus the new message.

    Entries missing a role or content are skipped. Only the last ``limit``
    turns are kept.
    """
    messages: List[Message] = []
    if isinstance(history, list):
        for entry in history:
            if isinstance(entry, dict) and entry.get("role") and entry.get("content"):
                messages.append({"role": entry["role"], "content": entry["content"]})
    messages.append({"role": "user", "content": message})
    return messages[-limit:]


def _require_key(provider: LLMProvider) -> None:
    if not provider.is_configured():
        log.error(f"No API key configured for provider: {provider.name}")
        raise ConfigurationError("API key not configured", details={"provider": provider.name})


def run_intake(
    message: Any,
    history: Any,
    provider: LLMProvider,
    settings: Optional[Settings] = None
) -> Dict[str, Any]:
    """
    One intake conversation turn.

    Returns:
        ``{"message": str, "points": list | None}``

    Raises:
        ValidationError: If the message is missing or empty
        ConfigurationError: If the provider has no API key
        LLMProviderError: If the upstream request fails
    """
    settings = settings or SETTINGS
    if not message:
        raise ValidationError("Missing message")
    _require_key(provider)

    messages = conversation(history, str(message), settings.intake_history_limit)
    log.info(f"Intake turn with {len(messages)} messages via {provider.name}")
    try:
        raw = provider.complete(
            messages,
            system=intake_system_prompt(settings.assistant_product_name),
            max_tokens=settings.intake_max_tokens,
            model=settings.intake_model,
            operation="intake",
        )
    except LLMProviderError as e:
        log.error(f"Intake API error: {e}")
        raise

    return parse_intake_reply(raw)


def run_build(
    spec: Any,
    brand: Any,
    features: Any,
    total: Any,
    provider: LLMProvider,
    settings: Optional[Settings] = None
) -> Dict[str, List[Any]]:
    """
    Generate a build step sequence for a project.

    Returns:
        ``{"steps": [...]}``; the list is empty when the reply cannot be parsed

    Raises:
        ValidationError: If spec or brand is missing
        ConfigurationError: If the provider has no API key
        LLMProviderError: If the upstream request fails
    """
    settings = settings or SETTINGS
    if not spec or not brand:
        raise ValidationError("Missing data")
    _require_key(provider)

    prompt = build_user_prompt(spec, brand, features if isinstance(features, list) else None, total)
    try:
        raw = provider.complete(
            [{"role": "user", "content": prompt}],
            system=build_system_prompt(settings.assistant_product_name),
            max_tokens=settings.build_max_tokens,
            model=settings.build_model,
            operation="build",
        )
    except LLMProviderError as e:
        log.error(f"Build API error: {e}")
        raise

    return {"steps": parse_build_steps(raw)}
