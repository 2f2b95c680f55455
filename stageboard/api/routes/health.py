"""Health check: which API keys are configured."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...utils.config import Settings
from ..dependencies import get_settings

router = APIRouter(prefix="/api", tags=["health"])


def health_report(settings: Settings) -> Dict[str, Any]:
    """``ready`` only when both LLM keys are present; the Resend key is informational."""
    checks = {
        "server": True,
        "anthropic": bool(settings.anthropic_api_key),
        "openai": bool(settings.openai_api_key),
        "resend": bool(settings.resend_api_key),
    }
    ready = checks["anthropic"] and checks["openai"]
    return {"status": "ready" if ready else "missing_keys", "checks": checks}


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return health_report(settings)
