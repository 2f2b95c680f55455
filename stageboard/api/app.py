"""
Application factory for the stageboard HTTP service.

Each app instance owns its settings, LLM provider, board store and clock,
so tests can build isolated apps with fakes.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI

from .. import __version__
from ..boards import BoardStore
from ..providers import ProviderRegistry
from ..providers.base import LLMProvider
from ..utils.config import SETTINGS, Settings
from .errors import register_exception_handlers
from .routes import assistant, billing, boards, health

log = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[LLMProvider] = None,
    now: Optional[datetime] = None,
    clock: Optional[Callable[[], datetime]] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; defaults to the global settings
        provider: LLM provider; defaults to the configured provider
        now: Freeze the clock at this time (board generation and actions)
        clock: Clock callable; ignored when ``now`` is given

    Returns:
        Configured FastAPI application
    """
    settings = settings or SETTINGS
    if now is not None:
        def clock() -> datetime:
            return now
    clock = clock or datetime.now

    app = FastAPI(
        title="Stageboard",
        description="Workflow pipeline boards and LLM intake assistant",
        version=__version__,
    )
    app.state.settings = settings
    app.state.provider = provider or ProviderRegistry.create(settings.provider, settings)
    app.state.clock = clock
    app.state.boards = BoardStore(settings, clock)

    register_exception_handlers(app)
    app.include_router(assistant.router)
    app.include_router(health.router)
    app.include_router(boards.router)
    app.include_router(billing.router)

    log.info(f"Stageboard API ready (provider={app.state.provider.name})")
    return app
