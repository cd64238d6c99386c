"""
Video assembly stage - lays out the scene timeline for voiceover and images.
"""

import uuid
from pathlib import Path
from typing import Any, Dict, List

from .base import StageService
from ..config import WorkflowConfig
from ..models import AssemblyRequest, VideoResult


class AssemblyService(StageService[AssemblyRequest, VideoResult]):
    """
    Combines voiceover and images into a video.

    Input: AssemblyRequest (voiceover, images, estimated duration)
    Output: VideoResult with the video reference and its properties

    Every image is shown for duration / len(images) seconds. With
    write_assets an ffmpeg concat manifest (scenes.txt) is written next
    to the video reference so the encode can be run separately.
    """

    name = "assembly"
    title = "Video Producer"
    description = "Combine assets into the final video"
    active_message = "Combining assets and producing video..."

    def __init__(self, config: WorkflowConfig):
        super().__init__(config)

    def run(self, request: AssemblyRequest) -> VideoResult:
        if not request.image_refs:
            raise RuntimeError("Cannot assemble a video without images")
        if request.estimated_duration_seconds <= 0:
            raise RuntimeError(
                f"Video duration must be positive, got {request.estimated_duration_seconds}"
            )

        duration = request.estimated_duration_seconds
        image_duration = duration / len(request.image_refs)
        scenes = self._build_scenes(request.image_refs, image_duration)

        batch_dir = self.config.videos_dir / uuid.uuid4().hex[:8]
        video_ref = self._video_ref(batch_dir)
        if self.config.write_assets:
            self._write_manifest(scenes, batch_dir)

        print(f"Assembled {len(scenes)} scenes at {image_duration:g}s each")
        return VideoResult(
            video_ref=video_ref,
            duration=duration,
            resolution=self.config.video_resolution,
            format=self.config.video_format,
            approx_file_size=f"{round(duration * self.config.megabytes_per_second)}MB",
            image_duration=image_duration,
            scenes=tuple(scenes),
        )

    def _build_scenes(self, image_refs, image_duration: float) -> List[Dict[str, Any]]:
        return [
            {"image": ref, "start": idx * image_duration, "duration": image_duration}
            for idx, ref in enumerate(image_refs)
        ]

    def _video_ref(self, batch_dir: Path) -> str:
        if self.config.write_assets:
            return str(batch_dir / f"video.{self.config.video_format}")
        return f"/video.{self.config.video_format}"

    def _write_manifest(self, scenes: List[Dict[str, Any]], batch_dir: Path) -> Path:
        """Write an ffmpeg concat-demuxer list for the scenes."""
        batch_dir.mkdir(parents=True, exist_ok=True)
        manifest = batch_dir / "scenes.txt"
        with open(manifest, "w") as f:
            for scene in scenes:
                f.write(f"file '{scene['image']}'\n")
                f.write(f"duration {scene['duration']:.3f}\n")
            # The concat demuxer ignores the last duration unless the file repeats
            if scenes:
                f.write(f"file '{scenes[-1]['image']}'\n")
        return manifest

    def completed_message(self, output: VideoResult) -> str:
        return "High-quality video ready"

    def summarize(self, output: VideoResult) -> List[str]:
        return [f"Video produced: {output.video_ref} ({output.resolution}, {output.approx_file_size})"]
