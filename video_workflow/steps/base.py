"""
Abstract base class for stage services.
"""

from abc import ABC, abstractmethod
from typing import Generic, List, TypeVar

from ..config import WorkflowConfig
from ..core.errors import StageFailure

# Type variables for input/output types
InputT = TypeVar('InputT')
OutputT = TypeVar('OutputT')


class StageService(ABC, Generic[InputT, OutputT]):
    """
    Abstract base class for the four stage services.

    Each service is a one-shot transform from its input record to its
    output record. Subclasses implement `run`; the orchestrator calls
    `execute`, which reports every failure as a single StageFailure.
    Services never retry.

    Attributes:
        name: Unique identifier for this stage
        title: Display name shown by presenters
        active_message: Stage message while the stage is running
    """

    name: str = "base_stage"
    title: str = "Base Stage"
    description: str = "Base stage service"
    active_message: str = "Working..."

    def __init__(self, config: WorkflowConfig):
        """
        Args:
            config: Workflow configuration
        """
        self.config = config

    @abstractmethod
    def run(self, input_data: InputT) -> OutputT:
        """
        Execute the stage's main logic.

        Args:
            input_data: Stage input record

        Returns:
            Stage output record
        """
        pass

    def execute(self, input_data: InputT) -> OutputT:
        """
        Execute the stage, converting any error into StageFailure.

        Raises:
            StageFailure: If run() raised for any reason
        """
        try:
            return self.run(input_data)
        except StageFailure:
            raise
        except Exception as e:
            raise StageFailure(str(e) or e.__class__.__name__) from e

    def completed_message(self, output: OutputT) -> str:
        """Stage message once the stage has completed."""
        return "Done"

    def summarize(self, output: OutputT) -> List[str]:
        """Lines the orchestrator logs after a successful call."""
        return []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
