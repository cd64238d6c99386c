"""
Configuration dataclass for the video workflow.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple
import os


DEFAULT_KEYWORDS: Tuple[str, ...] = (
    "AI automation",
    "technology",
    "tutorial",
    "how to",
    "guide",
    "tips",
    "tricks",
)


@dataclass
class WorkflowConfig:
    """
    Configuration for the four-stage video workflow.

    All settings can be overridden via CLI arguments or by passing
    values directly when instantiating.
    """

    # Output
    output_dir: Path = field(default_factory=lambda: Path("output"))
    write_assets: bool = True
    persist_runs: bool = True

    # Script settings
    words_per_minute: int = 150
    min_image_prompts: int = 5
    seconds_per_image: int = 30
    default_idea: Optional[str] = None

    # Asset settings
    image_size: Tuple[int, int] = (1920, 1080)
    thumbnail_size: Tuple[int, int] = (1280, 720)

    # Video settings
    video_resolution: str = "1920x1080"
    video_format: str = "mp4"
    megabytes_per_second: float = 0.5

    # Publish settings
    channel_name: str = "AI Automation"
    base_keywords: Tuple[str, ...] = DEFAULT_KEYWORDS
    max_extracted_keywords: int = 5

    # Idea sourcing
    sheets_timeout_sec: float = 30.0

    # Remote stage services (None = run the stage in-process)
    script_service_url: Optional[str] = None
    asset_service_url: Optional[str] = None
    assembly_service_url: Optional[str] = None
    publish_service_url: Optional[str] = None
    service_api_key: Optional[str] = None
    remote_timeout_sec: Optional[float] = None

    def __post_init__(self):
        """Convert string paths to Path objects and fill values from the environment."""
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        self.output_dir = self.output_dir.resolve()

        if isinstance(self.image_size, list):
            self.image_size = tuple(self.image_size)
        if isinstance(self.thumbnail_size, list):
            self.thumbnail_size = tuple(self.thumbnail_size)
        if isinstance(self.base_keywords, list):
            self.base_keywords = tuple(self.base_keywords)

        if self.script_service_url is None:
            self.script_service_url = os.environ.get("SCRIPT_SERVICE_URL")
        if self.asset_service_url is None:
            self.asset_service_url = os.environ.get("ASSET_SERVICE_URL")
        if self.assembly_service_url is None:
            self.assembly_service_url = os.environ.get("ASSEMBLY_SERVICE_URL")
        if self.publish_service_url is None:
            self.publish_service_url = os.environ.get("PUBLISH_SERVICE_URL")

        if self.service_api_key is None:
            self.service_api_key = os.environ.get("WORKFLOW_SERVICE_API_KEY")

    @property
    def runs_file(self) -> Path:
        """Path to the run tracking file."""
        return self.output_dir / "runs.json"

    @property
    def images_dir(self) -> Path:
        """Path to the generated images directory."""
        return self.output_dir / "images"

    @property
    def thumbnails_dir(self) -> Path:
        """Path to the thumbnails directory."""
        return self.output_dir / "thumbnails"

    @property
    def videos_dir(self) -> Path:
        """Path to the assembled video directory."""
        return self.output_dir / "videos"

    def service_url(self, stage_name: str) -> Optional[str]:
        """Return the remote endpoint configured for a stage, if any."""
        return {
            "script": self.script_service_url,
            "assets": self.asset_service_url,
            "assembly": self.assembly_service_url,
            "publish": self.publish_service_url,
        }.get(stage_name)

    def to_dict(self) -> dict:
        """Convert config to dictionary (for serialization)."""
        return {
            "output_dir": str(self.output_dir),
            "write_assets": self.write_assets,
            "persist_runs": self.persist_runs,
            "words_per_minute": self.words_per_minute,
            "min_image_prompts": self.min_image_prompts,
            "seconds_per_image": self.seconds_per_image,
            "default_idea": self.default_idea,
            "image_size": list(self.image_size),
            "thumbnail_size": list(self.thumbnail_size),
            "video_resolution": self.video_resolution,
            "video_format": self.video_format,
            "megabytes_per_second": self.megabytes_per_second,
            "channel_name": self.channel_name,
            "base_keywords": list(self.base_keywords),
            "max_extracted_keywords": self.max_extracted_keywords,
            "sheets_timeout_sec": self.sheets_timeout_sec,
            "script_service_url": self.script_service_url,
            "asset_service_url": self.asset_service_url,
            "assembly_service_url": self.assembly_service_url,
            "publish_service_url": self.publish_service_url,
            "remote_timeout_sec": self.remote_timeout_sec,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowConfig":
        """Create config from dictionary."""
        return cls(**data)
