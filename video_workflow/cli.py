"""
Command-line interface and console presenter for the video workflow.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import WorkflowConfig
from .core.run import RunOutcome, RunSnapshot, Severity, StageStatus

STATUS_MARKS = {
    StageStatus.PENDING: " ",
    StageStatus.ACTIVE: ">",
    StageStatus.COMPLETED: "✓",
    StageStatus.ERROR: "x",
}

SEVERITY_PREFIX = {
    Severity.INFO: "",
    Severity.SUCCESS: "",
    Severity.WARNING: "WARNING: ",
    Severity.ERROR: "ERROR: ",
}


class RunPresenter:
    """
    Prints run progress to the console.

    Registered as a pipeline listener; every snapshot it receives is
    compared with the previous one so that only new events are printed.
    """

    def __init__(self, stream=None, quiet: bool = False):
        self.stream = stream if stream is not None else sys.stdout
        self.quiet = quiet
        self._seen_events = {}

    def __call__(self, snapshot: RunSnapshot) -> None:
        if self.quiet:
            return
        seen = self._seen_events.get(snapshot.run_id, 0)
        for event in snapshot.events[seen:]:
            prefix = SEVERITY_PREFIX[event.severity]
            print(f"{event.timestamp.strftime('%H:%M:%S')} {prefix}{event.text}", file=self.stream)
        self._seen_events[snapshot.run_id] = len(snapshot.events)

    def render(self, snapshot: RunSnapshot) -> str:
        """Render the stage board and progress bar for a snapshot."""
        lines = [f"Run {snapshot.run_id}: {snapshot.outcome.value}", progress_bar(snapshot.progress)]
        for stage in snapshot.stages:
            mark = STATUS_MARKS[stage.status]
            lines.append(f"  [{mark}] Agent {stage.index + 1}: {stage.title} - {stage.message}")
        artifact = snapshot.final_artifact
        if snapshot.outcome == RunOutcome.SUCCEEDED and artifact is not None:
            lines.append(f"Published: {artifact.published_url} ({artifact.status.value})")
            lines.append(f"Title: {artifact.title}")
        return "\n".join(lines)


def progress_bar(progress: int, width: int = 40) -> str:
    filled = int(width * progress / 100)
    return f"[{'#' * filled}{'-' * (width - filled)}] {progress}%"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="video-workflow",
        description="Video Workflow: turn a topic idea into a published video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m video_workflow --idea "solar panels"
  python -m video_workflow --script-file script.txt --idea "home gardening"
  python -m video_workflow --sheets-id 1AbC... --schedule 2030-01-01T09:00:00Z
  python -m video_workflow --idea "solar panels" --json --no-assets
        """
    )

    # Idea / script
    parser.add_argument(
        "--idea",
        type=str,
        default=None,
        help="Topic idea for the video"
    )
    parser.add_argument(
        "--sheets-id",
        type=str,
        default=None,
        help="Fetch the idea from this Google Sheet (enables Google Sheets mode)"
    )
    parser.add_argument(
        "--script-file",
        type=Path,
        default=None,
        help="Use the script in this file instead of generating one"
    )
    parser.add_argument(
        "--schedule",
        type=str,
        default=None,
        help="Publish time as ISO-8601 (default: publish immediately)"
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("output"),
        help="Output directory (default: output/)"
    )
    parser.add_argument(
        "--no-assets",
        action="store_true",
        help="Do not write images and manifests to disk (inline data URLs)"
    )
    parser.add_argument(
        "--no-track",
        action="store_true",
        help="Do not record runs in runs.json"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the final run snapshot as JSON"
    )

    # Script options
    parser.add_argument(
        "--words-per-minute",
        type=int,
        default=150,
        help="Speaking rate used to estimate duration (default: 150)"
    )
    parser.add_argument(
        "--channel",
        type=str,
        default="AI Automation",
        help="Channel name shown on the thumbnail"
    )

    # Remote stage services
    parser.add_argument("--script-service-url", type=str, default=None, help="Remote script stage endpoint")
    parser.add_argument("--asset-service-url", type=str, default=None, help="Remote asset stage endpoint")
    parser.add_argument("--assembly-service-url", type=str, default=None, help="Remote assembly stage endpoint")
    parser.add_argument("--publish-service-url", type=str, default=None, help="Remote publish stage endpoint")

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser.parse_args(argv)


def args_to_config(args: argparse.Namespace) -> WorkflowConfig:
    """Convert parsed arguments to WorkflowConfig."""
    return WorkflowConfig(
        output_dir=args.output,
        write_assets=not args.no_assets,
        persist_runs=not args.no_track,
        words_per_minute=args.words_per_minute,
        channel_name=args.channel,
        script_service_url=args.script_service_url,
        asset_service_url=args.asset_service_url,
        assembly_service_url=args.assembly_service_url,
        publish_service_url=args.publish_service_url,
    )


def args_to_input(args: argparse.Namespace) -> dict:
    """Convert parsed arguments to the form input of a run."""
    script = None
    if args.script_file is not None:
        script = args.script_file.read_text()
    return {
        "customIdea": args.idea,
        "useGoogleSheets": args.sheets_id is not None,
        "sheetsId": args.sheets_id,
        "customScript": script,
        "scheduledTime": args.schedule,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)

    if args.script_file is not None and not args.script_file.is_file():
        print(f"ERROR: Script file '{args.script_file}' does not exist!")
        return 1

    config = args_to_config(args)
    form_input = args_to_input(args)

    # Import pipeline here to keep --help fast
    from .pipeline import VideoWorkflowPipeline

    pipeline = VideoWorkflowPipeline(config)
    presenter = RunPresenter(quiet=args.json)
    pipeline.add_listener(presenter)

    snapshot = pipeline.run(form_input)

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2, default=str))
    else:
        print("-" * 50)
        print(presenter.render(snapshot))

    return 0 if snapshot.outcome == RunOutcome.SUCCEEDED else 1


if __name__ == "__main__":
    sys.exit(main())
