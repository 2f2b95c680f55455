"""Helpers shared by the provider implementations: upstream retries, key format checks, client caching."""
import logging
import re
import threading
from typing import Callable, Optional, Tuple

from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..utils.config import Settings

log = logging.getLogger(__name__)

_KEY_CHARS = re.compile(r'^[a-zA-Z0-9_-]+$')


def _log_retry(label: str) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        wait = state.next_action.sleep if state.next_action else 0
        log.warning(
            f"{label}: attempt {state.attempt_number} failed "
            f"({error.__class__.__name__}), retrying in {wait:.1f}s"
        )
    return before_sleep


def create_retry_decorator(exception_types: Tuple, settings: Settings, label: str):
    """
    Retry transient upstream errors with exponential backoff.

    Attempts and wait bounds come from ``settings``; ``label`` names the
    provider and operation in the retry log lines, e.g. ``anthropic intake``.
    """
    return retry(
        stop=stop_after_attempt(settings.llm_max_attempts),
        wait=wait_exponential(
            multiplier=1, min=settings.llm_retry_min_wait, max=settings.llm_retry_max_wait
        ),
        retry=retry_if_exception_type(exception_types),
        before_sleep=_log_retry(label),
        reraise=True,
    )


def validate_api_key_format(api_key: Optional[str], prefix: str, min_length: int = 20) -> bool:
    """True when the key has the provider prefix, enough characters and no stray symbols."""
    if not api_key or not api_key.startswith(prefix) or len(api_key) < min_length:
        return False
    return bool(_KEY_CHARS.match(api_key))


class ClientCache:
    """One SDK client per API key; rebuilt when the configured key changes."""

    def __init__(self, client_factory: Callable[[str], object], key_getter: Callable[[], Optional[str]]):
        self._client = None
        self._client_key: Optional[str] = None
        self._factory = client_factory
        self._key_getter = key_getter
        self._lock = threading.Lock()

    def get(self):
        key = self._key_getter()
        with self._lock:
            if self._client is None or self._client_key != key:
                self._client = self._factory(key)
                self._client_key = key
                log.debug("SDK client built for current API key")
            return self._client
