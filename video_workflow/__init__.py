"""
Video Workflow - automated video production from a topic idea.

This package drives a four-stage pipeline (script, assets, assembly,
publish) that turns an idea into a published video.
"""

__version__ = "0.1.0"

from .config import WorkflowConfig
from .models import WorkflowInput
from .pipeline import VideoWorkflowPipeline, RunHandle
from .core.run import RunSnapshot, RunOutcome, StageStatus

__all__ = [
    "WorkflowConfig",
    "WorkflowInput",
    "VideoWorkflowPipeline",
    "RunHandle",
    "RunSnapshot",
    "RunOutcome",
    "StageStatus",
]
