"""JSON-over-HTTP service for the assistant endpoints and workflow boards."""

from .app import create_app

__all__ = ['create_app']
