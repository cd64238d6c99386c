"""
Error types raised by the workflow.
"""


class WorkflowError(Exception):
    """Base class for all workflow errors."""


class ValidationFailure(WorkflowError):
    """Initial input rejected before any stage runs."""


class StageFailure(WorkflowError):
    """
    A stage service call failed.

    The message is produced by the collaborator and is recorded verbatim
    on the stage and in the run's event log.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvariantViolation(WorkflowError):
    """A stage output broke the contract the next stage relies on."""


class RunClosedError(WorkflowError):
    """A run handle was advanced after the run had already started or finished."""
