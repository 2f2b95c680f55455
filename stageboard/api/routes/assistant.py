"""Intake and build assistant endpoints."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...assistant.service import run_build, run_intake
from ...providers.base import LLMProvider
from ...utils.config import Settings
from ..dependencies import get_provider, get_settings
from ..schemas import BuildRequest, IntakeRequest

router = APIRouter(prefix="/api", tags=["assistant"])


@router.post("/intake")
def intake(
    body: IntakeRequest,
    provider: LLMProvider = Depends(get_provider),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    return run_intake(body.message, body.history, provider, settings)


@router.post("/build")
def build(
    body: BuildRequest,
    provider: LLMProvider = Depends(get_provider),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    return run_build(body.spec, body.brand, body.features, body.total, provider, settings)
