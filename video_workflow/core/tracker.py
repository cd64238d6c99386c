"""
Run tracking with file locking for concurrent access safety.
"""

import json
import fcntl
from pathlib import Path
from typing import Optional

from .run import RunSnapshot


class RunTracker:
    """
    Persists run snapshots to a JSON file keyed by run id.

    Uses file locking so that several runs (or processes) can record
    their transitions into the same file.
    """

    def __init__(self, tracker_file: Path):
        """
        Args:
            tracker_file: Path to the JSON file tracking all runs
        """
        self.tracker_file = tracker_file

    def __call__(self, snapshot: RunSnapshot) -> None:
        self.save(snapshot)

    def save(self, snapshot: RunSnapshot) -> None:
        """Save a run snapshot with file locking to prevent race conditions."""
        lock_file = self.tracker_file.with_suffix(".lock")
        lock_file.parent.mkdir(parents=True, exist_ok=True)

        with open(lock_file, "w") as lock_f:
            fcntl.flock(lock_f.fileno(), fcntl.LOCK_EX)
            try:
                all_runs = self._read()
                all_runs[snapshot.run_id] = snapshot.to_dict()
                with open(self.tracker_file, "w") as f:
                    json.dump(all_runs, f, indent=2, default=str)
            finally:
                fcntl.flock(lock_f.fileno(), fcntl.LOCK_UN)

    def load_previous_runs(self) -> dict:
        """Load run records written by this or earlier processes."""
        return self._read()

    def get_run(self, run_id: str) -> Optional[dict]:
        return self._read().get(run_id)

    def clear(self) -> None:
        """Clear all run records."""
        if self.tracker_file.exists():
            self.tracker_file.unlink()

    def _read(self) -> dict:
        if not self.tracker_file.exists():
            return {}
        with open(self.tracker_file, "r") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError:
                return {}

    def __repr__(self) -> str:
        return f"RunTracker(file='{self.tracker_file}')"
