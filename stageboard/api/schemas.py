"""
Request bodies.

All fields are optional; the endpoints decide what counts as missing.
"""
from typing import Any, Optional

from pydantic import BaseModel


class IntakeRequest(BaseModel):
    message: Optional[Any] = None
    history: Optional[Any] = None


class BuildRequest(BaseModel):
    spec: Optional[Any] = None
    brand: Optional[Any] = None
    features: Optional[Any] = None
    total: Optional[Any] = None


class FlagRequest(BaseModel):
    reason: Optional[str] = None


class InvoiceStatusRequest(BaseModel):
    status: Optional[str] = None
