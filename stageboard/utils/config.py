"""
Application configuration using Pydantic Settings.
Manages environment variables and default settings for Stageboard.
"""
from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_PROVIDERS = ("anthropic", "openai")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and .env file.

    All settings can be overridden with environment variables using the aliases
    (e.g., LLM_PROVIDER, ANTHROPIC_API_KEY).
    """
    # LLM Configuration
    provider: str = Field("anthropic", alias="LLM_PROVIDER")
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    llm_max_attempts: int = Field(3, alias="LLM_MAX_ATTEMPTS", ge=1)
    llm_timeout_seconds: float = Field(60.0, alias="LLM_TIMEOUT_SECONDS", gt=0)
    llm_retry_min_wait: float = Field(2.0, alias="LLM_RETRY_MIN_WAIT", ge=0)
    llm_retry_max_wait: float = Field(30.0, alias="LLM_RETRY_MAX_WAIT", ge=0)

    # Assistant endpoints (models default to the provider's model)
    anthropic_model: str = Field("claude-sonnet-4-20250514", alias="ANTHROPIC_MODEL")
    openai_model: str = Field("gpt-4o", alias="OPENAI_MODEL")
    intake_model: str | None = Field(default=None, alias="INTAKE_MODEL")
    build_model: str | None = Field(default=None, alias="BUILD_MODEL")
    intake_max_tokens: int = Field(1024, alias="INTAKE_MAX_TOKENS", gt=0)
    build_max_tokens: int = Field(2048, alias="BUILD_MAX_TOKENS", gt=0)
    intake_history_limit: int = Field(20, alias="INTAKE_HISTORY_LIMIT", gt=0)
    assistant_product_name: str = Field("Viberr", alias="ASSISTANT_PRODUCT_NAME")

    # Demo boards
    voucher_seed: int = Field(42, alias="VOUCHER_SEED")
    voucher_count: int = Field(28, alias="VOUCHER_COUNT", ge=0)
    ticket_seed: int = Field(2024, alias="TICKET_SEED")
    ticket_count: int = Field(42, alias="TICKET_COUNT", ge=0)
    donation_seed: int = Field(45, alias="DONATION_SEED")
    donation_count: int = Field(45, alias="DONATION_COUNT", ge=0)
    billing_customer_count: int = Field(28, alias="BILLING_CUSTOMER_COUNT", ge=0)
    billing_period: str = Field("January 2025", alias="BILLING_PERIOD")

    # Environment Settings
    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_to_file: bool = Field(False, alias="LOG_TO_FILE")
    log_dir: Path = Field(Path("logs"), alias="LOG_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    @field_validator('provider', mode='after')
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Normalize the provider name and reject unknown providers."""
        name = v.strip().lower()
        if name not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown LLM provider '{v}'. "
                f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
            )
        return name

    @field_validator('anthropic_api_key', 'openai_api_key', 'resend_api_key', mode='after')
    @classmethod
    def blank_key_is_missing(cls, v: str | None) -> str | None:
        """Treat empty or whitespace-only keys as not configured."""
        if v is None or not v.strip():
            return None
        return v.strip()

    def api_key_for(self, provider: str | None = None) -> str | None:
        """Return the API key for a provider (defaults to the active provider)."""
        name = (provider or self.provider).lower()
        return {
            'anthropic': self.anthropic_api_key,
            'openai': self.openai_api_key,
            'resend': self.resend_api_key,
        }.get(name)


# Global settings instance - automatically loads from environment and .env file
SETTINGS = Settings()


def mask_api_key(api_key: str | None) -> str:
    """
    Mask an API key for safe display.

    Shows only the provider prefix (e.g. ``sk-``, ``sk-ant-``, ``re_``)
    followed by ``***configured***``.  Never reveals suffix characters.

    Args:
        api_key: API key to mask

    Returns:
        Masked API key string
    """
    if not api_key:
        return "Not configured"

    for prefix in ("sk-ant-", "sk-proj-", "sk-", "re_"):
        if api_key.startswith(prefix):
            return f"{prefix}***configured***"

    return "***configured***"


def get_configuration_summary(settings: Settings | None = None) -> dict:
    """
    Get a summary of all configuration for display.

    Returns:
        Dictionary with all configuration values (sensitive values masked)
    """
    settings = settings or SETTINGS
    return {
        'provider': settings.provider,
        'anthropic_model': settings.anthropic_model,
        'openai_model': settings.openai_model,
        'intake_model': settings.intake_model or 'provider default',
        'build_model': settings.build_model or 'provider default',
        'intake_history_limit': settings.intake_history_limit,
        'llm_max_attempts': settings.llm_max_attempts,
        'llm_retry_wait': f"{settings.llm_retry_min_wait:g}-{settings.llm_retry_max_wait:g}s",
        'environment': settings.environment,
        'log_level': settings.log_level,
        'log_to_file': settings.log_to_file,
        'log_dir': str(settings.log_dir),
        'voucher_seed': settings.voucher_seed,
        'ticket_seed': settings.ticket_seed,
        'donation_seed': settings.donation_seed,
        'anthropic_api_key': mask_api_key(settings.anthropic_api_key),
        'openai_api_key': mask_api_key(settings.openai_api_key),
        'resend_api_key': mask_api_key(settings.resend_api_key),
    }


def validate_provider_config(provider: str, settings: Settings | None = None) -> bool:
    """
    Validate that required configuration is available for a provider.

    Args:
        provider: Provider name to validate

    Returns:
        True if configuration is valid, False otherwise
    """
    log = logging.getLogger(__name__)
    settings = settings or SETTINGS

    if not settings.api_key_for(provider):
        log.warning(f"No API key configured for provider: {provider}")
        return False

    return True
