"""
Pipeline orchestrator for the video workflow.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

from .config import WorkflowConfig
from .core.errors import InvariantViolation, RunClosedError, StageFailure, ValidationFailure
from .core.run import Run, RunOutcome, RunSnapshot, utc_now
from .core.tracker import RunTracker
from .models import (
    AssemblyRequest,
    AssetBundle,
    AssetRequest,
    PublishRequest,
    PublishResult,
    PublishStatus,
    ScriptRequest,
    ScriptResult,
    VideoResult,
    WorkflowInput,
)
from .steps import (
    AssemblyService,
    AssetService,
    PublishService,
    RemoteStageService,
    ScriptService,
    StageService,
)

# (entry, exit) progress per stage
STAGE_PROGRESS: Tuple[Tuple[int, int], ...] = ((10, 25), (30, 50), (55, 75), (80, 100))

SCRIPT, ASSETS, ASSEMBLY, PUBLISH = range(4)

# Output record each stage must return
STAGE_OUTPUTS: Tuple[type, ...] = (ScriptResult, AssetBundle, VideoResult, PublishResult)

Listener = Callable[[RunSnapshot], None]


@dataclass(frozen=True)
class RunHandle:
    """Opaque reference to a run owned by a pipeline."""

    run_id: str


@dataclass
class _RunEntry:
    run: Run
    workflow_input: Optional[WorkflowInput]
    claimed: bool = False


class VideoWorkflowPipeline:
    """
    Main orchestrator that drives the four stage services in order.

    The pipeline turns a topic idea into a published video with:
    1. Script generation
    2. Asset creation (voiceover and images)
    3. Video assembly
    4. Publication

    Each stage receives the previous stage's output. The first failure
    marks the active stage Error, fails the run and stops it; nothing is
    retried. Observers only ever see immutable snapshots.

    Example:
        ```python
        pipeline = VideoWorkflowPipeline(WorkflowConfig())
        handle = pipeline.start_run({"customIdea": "solar panels"})
        snapshot = pipeline.get_snapshot(handle)
        print(snapshot.outcome, snapshot.final_artifact)
        ```
    """

    def __init__(
        self,
        config: WorkflowConfig,
        services: Optional[Sequence[StageService]] = None,
        tracker: Optional[RunTracker] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            config: Workflow configuration
            services: Script, asset, assembly and publish services, in order
            tracker: Run tracker; defaults to config.runs_file when persist_runs is set
            clock: Source of run and event timestamps
        """
        self.config = config
        self.clock = clock
        self._lock = threading.Lock()
        self._runs: Dict[str, _RunEntry] = {}
        self._listeners: List[Listener] = []
        self._listener_failures: Set[Tuple[str, int]] = set()

        if services is None:
            services = self._init_services()
        if len(services) != len(STAGE_PROGRESS):
            raise ValueError(f"Expected {len(STAGE_PROGRESS)} stage services, got {len(services)}")
        self.services: Tuple[StageService, ...] = tuple(services)

        if tracker is None and config.persist_runs:
            tracker = RunTracker(config.runs_file)
        self.tracker = tracker
        if tracker is not None:
            self.add_listener(tracker)

    def _init_services(self) -> List[StageService]:
        """Build the stage services, using remote endpoints where configured."""
        local_services = [
            (ScriptService(self.config), ScriptResult.from_dict),
            (AssetService(self.config), AssetBundle.from_dict),
            (AssemblyService(self.config), VideoResult.from_dict),
            (PublishService(self.config), PublishResult.from_dict),
        ]
        services = []
        for local, parse_result in local_services:
            url = self.config.service_url(local.name)
            if url:
                services.append(RemoteStageService(self.config, url, local, parse_result))
            else:
                services.append(local)
        return services

    def add_listener(self, listener: Listener) -> None:
        """Register a callback receiving a snapshot after every transition."""
        self._listeners.append(listener)

    # --- Public operations ---

    def validate_input(self, initial_input: Union[WorkflowInput, Dict[str, Any]]) -> WorkflowInput:
        """
        Check the form input before any stage runs.

        Raises:
            ValidationFailure: If the input cannot start a run
        """
        if isinstance(initial_input, WorkflowInput):
            workflow_input = initial_input
        else:
            workflow_input = WorkflowInput.from_dict(initial_input)

        if workflow_input.use_google_sheets and not workflow_input.sheets_id:
            raise ValidationFailure("A Google Sheets ID is required to fetch ideas from Google Sheets")
        if not (
            workflow_input.use_google_sheets
            or workflow_input.custom_script
            or workflow_input.custom_idea
            or self.config.default_idea
        ):
            raise ValidationFailure("Provide a video idea, a script, or a Google Sheets ID")
        return workflow_input

    def create_run(self, initial_input: Union[WorkflowInput, Dict[str, Any]]) -> RunHandle:
        """
        Create a run without executing it.

        Invalid input yields a run that is already Failed.
        """
        run = Run([(s.name, s.title) for s in self.services], clock=self.clock)
        try:
            workflow_input = self.validate_input(initial_input)
        except ValidationFailure as e:
            workflow_input = None
            rejected = run.reject(f"Invalid input: {e}")
        else:
            rejected = None

        with self._lock:
            self._runs[run.run_id] = _RunEntry(run=run, workflow_input=workflow_input)
        if rejected is not None:
            self._notify(rejected, run)
        return RunHandle(run.run_id)

    def advance(self, handle: RunHandle) -> RunSnapshot:
        """
        Execute a created run to its terminal state.

        Raises:
            RunClosedError: If the run was already started, succeeded or failed
            KeyError: If the handle is unknown
        """
        with self._lock:
            entry = self._runs[handle.run_id]
            outcome = entry.run.outcome
            if entry.claimed or outcome != RunOutcome.CREATED:
                raise RunClosedError(
                    f"Run {handle.run_id} is {outcome.value} and cannot be advanced; start a new run"
                )
            entry.claimed = True
        return self._advance(entry.run, entry.workflow_input)

    def start_run(self, initial_input: Union[WorkflowInput, Dict[str, Any]]) -> RunHandle:
        """Create a run and drive it to completion."""
        handle = self.create_run(initial_input)
        if self.get_snapshot(handle).outcome == RunOutcome.CREATED:
            self.advance(handle)
        return handle

    def run(self, initial_input: Union[WorkflowInput, Dict[str, Any]]) -> RunSnapshot:
        """Start a run and return its final snapshot."""
        return self.get_snapshot(self.start_run(initial_input))

    def get_snapshot(self, handle: RunHandle) -> RunSnapshot:
        """Latest snapshot of a run. Side-effect free."""
        with self._lock:
            entry = self._runs[handle.run_id]
        return entry.run.snapshot()

    def list_runs(self) -> List[RunSnapshot]:
        with self._lock:
            entries = list(self._runs.values())
        return [entry.run.snapshot() for entry in entries]

    # --- Stage driver ---

    def _advance(self, run: Run, workflow_input: WorkflowInput) -> RunSnapshot:
        self._notify(run.begin("Run started"), run)
        self._warn_about_input(run, workflow_input)

        results: Dict[int, Any] = {}
        last_index = len(self.services) - 1
        for index, service in enumerate(self.services):
            entry_progress, exit_progress = STAGE_PROGRESS[index]
            stage_input = self._build_input(index, workflow_input, results, run)
            self._notify(run.start_stage(
                index,
                service.active_message,
                stage_input,
                entry_progress,
                f"Starting stage {index + 1}: {service.title}",
            ), run)
            print(f"[{service.name}] started...")

            try:
                output = service.execute(stage_input)
                self._check_output(index, output, results)
            except (StageFailure, InvariantViolation) as e:
                message = e.message if isinstance(e, StageFailure) else str(e)
                self._notify(run.fail_stage(
                    index, message, f"Error in stage {index + 1} ({service.title}): {message}"
                ), run)
                print(f"[{service.name}] FAILED: {message}")
                return run.snapshot()

            results[index] = output
            texts = service.summarize(output) + [f"Stage {index + 1} completed: {service.title}"]
            self._notify(run.complete_stage(
                index,
                service.completed_message(output),
                output,
                exit_progress,
                texts,
                finish_text="All stages completed successfully!" if index == last_index else None,
            ), run)
            print(f"[{service.name}] completed.")

        return run.snapshot()

    def _warn_about_input(self, run: Run, workflow_input: WorkflowInput) -> None:
        if workflow_input.custom_script and workflow_input.custom_idea:
            self._notify(run.warn(
                "Custom script provided; the idea only shapes the image prompts"
            ), run)
        scheduled = workflow_input.scheduled_time
        if scheduled is not None and scheduled <= run.created_at:
            self._notify(run.warn(
                f"Scheduled time {scheduled.isoformat()} is in the past; the video will be published immediately"
            ), run)

    def _build_input(
        self,
        index: int,
        workflow_input: WorkflowInput,
        results: Dict[int, Any],
        run: Run,
    ) -> Any:
        """Shape a stage's input from the form input and earlier outputs."""
        if index == SCRIPT:
            return ScriptRequest(
                mode=workflow_input.sourcing_mode,
                idea=workflow_input.custom_idea,
                sheets_id=workflow_input.sheets_id,
                custom_script=workflow_input.custom_script,
            )

        script: ScriptResult = results[SCRIPT]
        if index == ASSETS:
            return AssetRequest(script=script.script, image_prompts=script.image_prompts)

        if index == ASSEMBLY:
            assets: AssetBundle = results[ASSETS]
            return AssemblyRequest(
                voiceover_ref=assets.voiceover_ref,
                image_refs=assets.image_refs,
                estimated_duration_seconds=script.estimated_duration_seconds,
            )

        video: VideoResult = results[ASSEMBLY]
        return PublishRequest(
            video_ref=video.video_ref,
            script=script.script,
            scheduled_time=workflow_input.scheduled_time,
            requested_at=run.created_at,
            idea=script.idea,
        )

    def _check_output(self, index: int, output: Any, results: Dict[int, Any]) -> None:
        """
        Verify the contract the next stage depends on.

        Raises:
            InvariantViolation: If the output breaks it
        """
        expected_type = STAGE_OUTPUTS[index]
        if not isinstance(output, expected_type):
            raise InvariantViolation(
                f"Stage {index + 1} returned {type(output).__name__}, expected {expected_type.__name__}"
            )

        if index == SCRIPT:
            if not isinstance(output.script, str) or not output.script.strip():
                raise InvariantViolation("Script stage returned an empty script")
            if not _is_str_sequence(output.image_prompts):
                raise InvariantViolation("Script stage returned image prompts that are not a list of strings")
            if not output.image_prompts:
                raise InvariantViolation("Script stage returned no image prompts")
            if not _is_number(output.estimated_duration_seconds):
                raise InvariantViolation(
                    f"Script stage returned a non-numeric duration ({output.estimated_duration_seconds!r})"
                )
            if output.estimated_duration_seconds <= 0:
                raise InvariantViolation(
                    f"Script stage returned a non-positive duration ({output.estimated_duration_seconds})"
                )
        elif index == ASSETS:
            if not isinstance(output.voiceover_ref, str):
                raise InvariantViolation("Asset stage returned a voiceover reference that is not a string")
            if not _is_str_sequence(output.image_refs):
                raise InvariantViolation("Asset stage returned image references that are not a list of strings")
            expected = len(results[SCRIPT].image_prompts)
            if len(output.image_refs) != expected:
                raise InvariantViolation(
                    f"Asset stage returned {len(output.image_refs)} images for {expected} prompts"
                )
        elif index == ASSEMBLY:
            if not isinstance(output.video_ref, str) or not _is_number(output.duration):
                raise InvariantViolation("Assembly stage returned an invalid video reference or duration")
        elif index == PUBLISH:
            if not isinstance(output.status, PublishStatus) or not isinstance(output.published_url, str):
                raise InvariantViolation("Publish stage returned an invalid status or URL")

    def _notify(self, snapshot: RunSnapshot, run: Run) -> None:
        """
        Hand a snapshot to every listener.

        A failing listener never interrupts the run: the first failure of
        each listener within a run is logged as a warning.
        """
        failed = self._deliver(snapshot)
        with self._lock:
            new_failures = [
                (listener, error) for listener, error in failed
                if (run.run_id, id(listener)) not in self._listener_failures
            ]
            for listener, _ in new_failures:
                self._listener_failures.add((run.run_id, id(listener)))
        for listener, error in new_failures:
            self._deliver(run.warn(f"Listener {listener!r} failed: {error}"))

    def _deliver(self, snapshot: RunSnapshot) -> List[Tuple[Listener, Exception]]:
        failed = []
        for listener in self._listeners:
            try:
                listener(snapshot)
            except Exception as e:
                print(f"WARNING: listener {listener!r} failed: {e}")
                failed.append((listener, e))
        return failed


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_str_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)
