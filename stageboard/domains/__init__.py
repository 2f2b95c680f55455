"""Workflow domains built on the generic stage tracker."""

from . import billing, donations, tickets, vouchers

__all__ = ['billing', 'donations', 'tickets', 'vouchers']
