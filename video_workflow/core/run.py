"""
Run state: stage records, the event log and immutable snapshots.

The orchestrator is the only writer of a Run. Every transition mutates the
run under its lock and republishes a frozen RunSnapshot, so readers never
observe half of a transition.
"""

import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple


class StageStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    ERROR = "error"


class RunOutcome(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunOutcome.SUCCEEDED, RunOutcome.FAILED)


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class StageState:
    """The orchestrator's record of one stage within one run."""

    index: int
    name: str
    title: str
    status: StageStatus = StageStatus.PENDING
    message: str = "Waiting to start..."
    input: Any = None
    output: Any = None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "name": self.name,
            "title": self.title,
            "status": self.status.value,
            "message": self.message,
            "input": _as_json(self.input),
            "output": _as_json(self.output),
        }


@dataclass(frozen=True)
class LogEntry:
    """One timestamped, severity-tagged event."""

    timestamp: datetime
    text: str
    severity: Severity = Severity.INFO

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "text": self.text,
            "severity": self.severity.value,
        }

    def __str__(self) -> str:
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {self.text}"


@dataclass(frozen=True)
class RunSnapshot:
    """Read-only view of a run handed to presenters and trackers."""

    run_id: str
    created_at: datetime
    stages: Tuple[StageState, ...]
    progress: int
    events: Tuple[LogEntry, ...]
    outcome: RunOutcome
    final_artifact: Any = None

    @property
    def active_stage(self) -> Optional[StageState]:
        for stage in self.stages:
            if stage.status == StageStatus.ACTIVE:
                return stage
        return None

    @property
    def is_terminal(self) -> bool:
        return self.outcome.is_terminal

    def to_dict(self) -> dict:
        return {
            "id": self.run_id,
            "created_at": self.created_at.isoformat(),
            "stages": [stage.to_dict() for stage in self.stages],
            "progress": self.progress,
            "events": [event.to_dict() for event in self.events],
            "outcome": self.outcome.value,
            "final_artifact": _as_json(self.final_artifact),
        }


def _as_json(value: Any) -> Any:
    if value is None:
        return None
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Run:
    """
    One execution of the pipeline.

    Stage records are created Pending when the run is created and only move
    Pending -> Active -> (Completed | Error). Progress never decreases and the
    event log is append-only.
    """

    def __init__(
        self,
        stage_titles: List[Tuple[str, str]],
        clock: Callable[[], datetime] = utc_now,
        run_id: Optional[str] = None,
    ):
        """
        Args:
            stage_titles: (name, title) pairs in execution order
            clock: Source of timestamps for the run and its events
            run_id: Optional explicit identifier
        """
        self._clock = clock
        self._lock = threading.Lock()
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.created_at = clock()
        self._stages: List[StageState] = [
            StageState(index=idx, name=name, title=title)
            for idx, (name, title) in enumerate(stage_titles)
        ]
        self._events: List[LogEntry] = []
        self._progress = 0
        self._outcome = RunOutcome.CREATED
        self._final_artifact: Any = None
        self._snapshot = self._build_snapshot()

    # --- Transitions ---

    def begin(self, text: str) -> RunSnapshot:
        """Created -> Running."""
        with self._lock:
            self._require_outcome(RunOutcome.CREATED)
            self._outcome = RunOutcome.RUNNING
            self._log(text, Severity.INFO)
            return self._publish()

    def reject(self, text: str) -> RunSnapshot:
        """Created -> Failed, without any stage having run."""
        with self._lock:
            self._require_outcome(RunOutcome.CREATED)
            self._outcome = RunOutcome.FAILED
            self._log(text, Severity.ERROR)
            return self._publish()

    def start_stage(self, index: int, message: str, stage_input: Any, progress: int, text: str) -> RunSnapshot:
        """Mark the next Pending stage Active."""
        with self._lock:
            self._require_outcome(RunOutcome.RUNNING)
            stage = self._stages[index]
            if stage.status != StageStatus.PENDING:
                raise RuntimeError(f"Stage '{stage.name}' is {stage.status.value}, expected pending")
            if any(s.status != StageStatus.COMPLETED for s in self._stages[:index]):
                raise RuntimeError(f"Stage '{stage.name}' started before earlier stages completed")
            self._stages[index] = replace(
                stage, status=StageStatus.ACTIVE, message=message, input=stage_input
            )
            self._bump(progress)
            self._log(text, Severity.INFO)
            return self._publish()

    def complete_stage(
        self,
        index: int,
        message: str,
        output: Any,
        progress: int,
        texts: List[str],
        finish_text: Optional[str] = None,
    ) -> RunSnapshot:
        """
        Mark the Active stage Completed.

        When finish_text is given the run succeeds in the same transition,
        with the stage output as its final artifact.
        """
        with self._lock:
            self._require_outcome(RunOutcome.RUNNING)
            stage = self._require_active(index)
            self._stages[index] = replace(
                stage, status=StageStatus.COMPLETED, message=message, output=output
            )
            self._bump(progress)
            for text in texts:
                self._log(text, Severity.SUCCESS)
            if finish_text is not None:
                self._outcome = RunOutcome.SUCCEEDED
                self._final_artifact = output
                self._bump(100)
                self._log(finish_text, Severity.SUCCESS)
            return self._publish()

    def fail_stage(self, index: int, error_message: str, text: str) -> RunSnapshot:
        """Mark the Active stage Error and fail the run. Progress stays frozen."""
        with self._lock:
            self._require_outcome(RunOutcome.RUNNING)
            stage = self._require_active(index)
            self._stages[index] = replace(stage, status=StageStatus.ERROR, message=error_message)
            self._outcome = RunOutcome.FAILED
            self._log(text, Severity.ERROR)
            return self._publish()

    def warn(self, text: str) -> RunSnapshot:
        with self._lock:
            self._log(text, Severity.WARNING)
            return self._publish()

    # --- Reads ---

    def snapshot(self) -> RunSnapshot:
        """Latest published snapshot."""
        with self._lock:
            return self._snapshot

    @property
    def outcome(self) -> RunOutcome:
        with self._lock:
            return self._outcome

    # --- Internals (caller holds the lock) ---

    def _require_outcome(self, expected: RunOutcome) -> None:
        if self._outcome != expected:
            raise RuntimeError(
                f"Run {self.run_id} is {self._outcome.value}, expected {expected.value}"
            )

    def _require_active(self, index: int) -> StageState:
        stage = self._stages[index]
        if stage.status != StageStatus.ACTIVE:
            raise RuntimeError(f"Stage '{stage.name}' is {stage.status.value}, expected active")
        return stage

    def _bump(self, progress: int) -> None:
        self._progress = max(self._progress, min(progress, 100))

    def _log(self, text: str, severity: Severity) -> None:
        self._events.append(LogEntry(timestamp=self._clock(), text=text, severity=severity))

    def _publish(self) -> RunSnapshot:
        self._snapshot = self._build_snapshot()
        return self._snapshot

    def _build_snapshot(self) -> RunSnapshot:
        return RunSnapshot(
            run_id=self.run_id,
            created_at=self.created_at,
            stages=tuple(self._stages),
            progress=self._progress,
            events=tuple(self._events),
            outcome=self._outcome,
            final_artifact=self._final_artifact,
        )

    def __repr__(self) -> str:
        return f"Run(id='{self.run_id}', outcome='{self._outcome.value}', progress={self._progress})"
