"""Intake and build assistant backed by an LLM provider."""

from .replies import parse_build_steps, parse_intake_reply, strip_code_fences
from .service import run_build, run_intake

__all__ = ['parse_build_steps', 'parse_intake_reply', 'strip_code_fences', 'run_build', 'run_intake']
