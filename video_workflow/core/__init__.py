"""
Core state, errors and tracking for the video workflow.
"""

from .errors import (
    WorkflowError,
    ValidationFailure,
    StageFailure,
    InvariantViolation,
    RunClosedError,
)
from .run import Run, RunSnapshot, StageState, LogEntry, StageStatus, RunOutcome, Severity
from .tracker import RunTracker

__all__ = [
    "WorkflowError",
    "ValidationFailure",
    "StageFailure",
    "InvariantViolation",
    "RunClosedError",
    "Run",
    "RunSnapshot",
    "StageState",
    "LogEntry",
    "StageStatus",
    "RunOutcome",
    "Severity",
    "RunTracker",
]
