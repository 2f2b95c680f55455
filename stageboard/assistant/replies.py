"""
Recovery of structured data from model replies.

Models are asked for bare JSON but sometimes wrap it in code fences, add
prose around it, or return something that is not JSON at all. These
functions never raise on a bad reply: they recover what they can and fall
back to a safe default.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)

DEFAULT_INTAKE_REPLY = '{"message":"Something went wrong.","points":null}'
DEFAULT_BUILD_REPLY = '{"steps":[]}'
FALLBACK_MESSAGE = "I couldn't understand that."

_LEADING_FENCE = re.compile(r'^```(?:json)?\s*\n?', re.IGNORECASE)
_TRAILING_FENCE = re.compile(r'\n?```\s*$', re.IGNORECASE)
_EMBEDDED_REPLY = re.compile(r'\{[\s\S]*"message"\s*:\s*"[\s\S]*?\}(?:\s*$)')
_REPLY_FRAGMENT = re.compile(r'\{[^{}]*"message"[^{}]*\}')


def strip_code_fences(raw: str) -> str:
    """Remove one leading ```/```json fence and one trailing fence, then trim."""
    raw = _LEADING_FENCE.sub('', raw, count=1)
    raw = _TRAILING_FENCE.sub('', raw, count=1)
    return raw.strip()


_NOT_JSON = object()


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return _NOT_JSON


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    value = _load_json(text)
    return value if isinstance(value, dict) else None


def _points(value: Any) -> Optional[List[Any]]:
    return value if isinstance(value, list) else None


def _text(value: Any) -> str:
    if value is None or value == "":
        return ""
    return value if isinstance(value, str) else str(value)


def parse_intake_reply(raw: Optional[str]) -> Dict[str, Any]:
    """
    Turn an intake reply into ``{"message": str, "points": list | None}``.

    Tried in order: the whole reply as JSON, then a JSON object embedded in it
    that has a ``"message"`` key, then the reply text with any such objects
    removed. A reply that is valid JSON but not an object (a string, number or
    array) carries no message field and gets the fallback message; ``null``
    is treated as text.
    """
    text = strip_code_fences(raw or DEFAULT_INTAKE_REPLY)

    parsed = _load_json(text)
    if isinstance(parsed, dict):
        return {
            "message": _text(parsed.get("message")) or FALLBACK_MESSAGE,
            "points": _points(parsed.get("points")),
        }
    if parsed is not _NOT_JSON and parsed is not None:
        log.warning(f"Intake reply was JSON {type(parsed).__name__}, not an object")
        return {"message": FALLBACK_MESSAGE, "points": None}

    match = _EMBEDDED_REPLY.search(text)
    if match:
        extracted = _load_object(match.group(0))
        if extracted is not None:
            log.warning("Recovered intake reply from surrounding text")
            return {
                "message": _text(extracted.get("message")) or text,
                "points": _points(extracted.get("points")),
            }

    log.warning("Intake reply was not JSON; returning it as plain text")
    cleaned = _REPLY_FRAGMENT.sub('', text).strip()
    return {"message": cleaned or text, "points": None}


def parse_build_steps(raw: Optional[str]) -> List[Any]:
    """Steps from a build reply, or an empty list when the reply cannot be parsed."""
    text = strip_code_fences(raw or DEFAULT_BUILD_REPLY)
    parsed = _load_object(text)
    if parsed is None:
        log.error(f"Build parse error, raw: {text[:200]}")
        return []
    steps = parsed.get("steps")
    return steps if isinstance(steps, list) else []
