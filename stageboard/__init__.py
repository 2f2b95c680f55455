"""stageboard - Linear pipeline-stage tracking for workflow boards, with an LLM intake service."""

__version__ = "0.1.0"

from .workflow import PipelineTracker, StageModel

__all__ = [
    "PipelineTracker",
    "StageModel",
]
