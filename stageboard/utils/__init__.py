"""
Core utilities for stageboard.

This module contains shared utility functions and classes:
- config: Application configuration management
- logging: Rich console and file logging setup
- exceptions: Custom exception classes and log sanitization
- seeded: Deterministic random numbers for demo data
- formatting: Currency, duration and date display helpers
"""

from .config import SETTINGS
from .logging import setup_logging
from .exceptions import (
    StageboardError,
    ValidationError,
    UnknownStageError,
    NotFoundError,
    ConfigurationError,
    LLMProviderError,
)
from .seeded import SeededRandom

__all__ = [
    'SETTINGS',
    'setup_logging',
    'StageboardError',
    'ValidationError',
    'UnknownStageError',
    'NotFoundError',
    'ConfigurationError',
    'LLMProviderError',
    'SeededRandom',
]
