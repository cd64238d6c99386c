"""
Input and output records for the four workflow stages.

Field names follow Python conventions; `to_dict`/`from_dict` use the
camelCase names of the JSON wire format spoken by remote stage services.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .core.errors import ValidationFailure


class IdeaSourceMode(str, Enum):
    CUSTOM = "custom"
    GOOGLE_SHEETS = "google_sheets"


class PublishStatus(str, Enum):
    PUBLISHED = "published"
    SCHEDULED = "scheduled"


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp. Naive values are taken as UTC.

    Raises:
        ValueError: If the value is not a datetime or ISO-8601 string
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _require_number(data: Dict[str, Any], key: str) -> float:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} must be a number, got {type(value).__name__}")
    return value


def _require_str_list(data: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = data[key]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"{key} must be a list of strings")
    return tuple(value)


@dataclass(frozen=True)
class WorkflowInput:
    """What the user submits on the form."""

    custom_idea: Optional[str] = None
    use_google_sheets: bool = False
    sheets_id: Optional[str] = None
    custom_script: Optional[str] = None
    scheduled_time: Optional[datetime] = None

    @property
    def sourcing_mode(self) -> IdeaSourceMode:
        if self.use_google_sheets:
            return IdeaSourceMode.GOOGLE_SHEETS
        return IdeaSourceMode.CUSTOM

    def to_dict(self) -> dict:
        return {
            "customIdea": self.custom_idea,
            "useGoogleSheets": self.use_google_sheets,
            "sheetsId": self.sheets_id,
            "customScript": self.custom_script,
            "scheduledTime": _format_datetime(self.scheduled_time),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowInput":
        """
        Build from form data, normalising blank strings to None.

        Raises:
            ValidationFailure: If a field has the wrong type or format
        """
        if not isinstance(data, dict):
            raise ValidationFailure(f"Workflow input must be a mapping, got {type(data).__name__}")
        use_sheets = data.get("useGoogleSheets", data.get("use_google_sheets", False))
        if not isinstance(use_sheets, bool):
            raise ValidationFailure("useGoogleSheets must be true or false")
        raw_time = data.get("scheduledTime", data.get("scheduled_time"))
        try:
            scheduled = parse_datetime(raw_time)
        except ValueError as e:
            raise ValidationFailure(f"Invalid scheduled time {raw_time!r}: {e}") from e
        return cls(
            custom_idea=_clean_text(data.get("customIdea", data.get("custom_idea"))),
            use_google_sheets=use_sheets,
            sheets_id=_clean_text(data.get("sheetsId", data.get("sheets_id"))),
            custom_script=_clean_text(data.get("customScript", data.get("custom_script"))),
            scheduled_time=scheduled,
        )


# --- Stage 1: script ---

@dataclass(frozen=True)
class ScriptRequest:
    mode: IdeaSourceMode
    idea: Optional[str] = None
    sheets_id: Optional[str] = None
    custom_script: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "customIdea": self.idea,
            "useGoogleSheets": self.mode == IdeaSourceMode.GOOGLE_SHEETS,
            "sheetsId": self.sheets_id,
            "customScript": self.custom_script,
        }


@dataclass(frozen=True)
class ScriptResult:
    script: str
    image_prompts: Tuple[str, ...]
    estimated_duration_seconds: int
    idea: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "script": self.script,
            "imagePrompts": list(self.image_prompts),
            "duration": self.estimated_duration_seconds,
            "idea": self.idea,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScriptResult":
        return cls(
            script=_require_str(data, "script"),
            image_prompts=_require_str_list(data, "imagePrompts"),
            estimated_duration_seconds=_require_number(data, "duration"),
            idea=data.get("idea"),
        )


# --- Stage 2: assets ---

@dataclass(frozen=True)
class AssetRequest:
    script: str
    image_prompts: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {"script": self.script, "imagePrompts": list(self.image_prompts)}


@dataclass(frozen=True)
class AssetBundle:
    voiceover_ref: str
    image_refs: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {"voiceoverUrl": self.voiceover_ref, "images": list(self.image_refs)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetBundle":
        return cls(
            voiceover_ref=_require_str(data, "voiceoverUrl"),
            image_refs=_require_str_list(data, "images"),
        )


# --- Stage 3: assembly ---

@dataclass(frozen=True)
class AssemblyRequest:
    voiceover_ref: str
    image_refs: Tuple[str, ...]
    estimated_duration_seconds: float

    def to_dict(self) -> dict:
        return {
            "voiceoverUrl": self.voiceover_ref,
            "images": list(self.image_refs),
            "duration": self.estimated_duration_seconds,
        }


@dataclass(frozen=True)
class VideoResult:
    video_ref: str
    duration: float
    resolution: str
    format: str
    approx_file_size: str
    image_duration: Optional[float] = None
    scenes: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "videoUrl": self.video_ref,
            "duration": self.duration,
            "resolution": self.resolution,
            "format": self.format,
            "fileSize": self.approx_file_size,
            "imageDuration": self.image_duration,
            "scenes": list(self.scenes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoResult":
        return cls(
            video_ref=_require_str(data, "videoUrl"),
            duration=_require_number(data, "duration"),
            resolution=_require_str(data, "resolution"),
            format=_require_str(data, "format"),
            approx_file_size=_require_str(data, "fileSize"),
            image_duration=data.get("imageDuration"),
            scenes=tuple(data.get("scenes") or ()),
        )


# --- Stage 4: publish ---

@dataclass(frozen=True)
class PublishRequest:
    video_ref: str
    script: str
    scheduled_time: Optional[datetime] = None
    requested_at: Optional[datetime] = None
    idea: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "videoUrl": self.video_ref,
            "script": self.script,
            "scheduledTime": _format_datetime(self.scheduled_time),
            "requestedAt": _format_datetime(self.requested_at),
            "idea": self.idea,
        }


@dataclass(frozen=True)
class PublishResult:
    published_url: str
    title: str
    description: str
    keywords: FrozenSet[str]
    thumbnail_ref: str
    status: PublishStatus
    scheduled_time: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "youtubeUrl": self.published_url,
            "title": self.title,
            "description": self.description,
            "keywords": sorted(self.keywords),
            "thumbnailUrl": self.thumbnail_ref,
            "status": self.status.value,
            "scheduledTime": _format_datetime(self.scheduled_time),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PublishResult":
        return cls(
            published_url=_require_str(data, "youtubeUrl"),
            title=_require_str(data, "title"),
            description=_require_str(data, "description"),
            keywords=frozenset(_require_str_list(data, "keywords")),
            thumbnail_ref=_require_str(data, "thumbnailUrl"),
            status=PublishStatus(data["status"]),
            scheduled_time=parse_datetime(data.get("scheduledTime")),
        )
