"""Per-application state handed to route functions."""
from datetime import datetime

from fastapi import Request

from ..boards import BoardStore
from ..providers.base import LLMProvider
from ..utils.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_boards(request: Request) -> BoardStore:
    return request.app.state.boards


def get_provider(request: Request) -> LLMProvider:
    return request.app.state.provider


def get_now(request: Request) -> datetime:
    return request.app.state.clock()
