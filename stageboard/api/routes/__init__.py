"""API routers."""

from . import assistant, billing, boards, health

__all__ = ['assistant', 'billing', 'boards', 'health']
