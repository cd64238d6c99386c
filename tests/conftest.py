"""
Shared fixtures for the video workflow tests.
"""
from datetime import datetime, timezone

import pytest

from video_workflow.config import WorkflowConfig
from video_workflow.models import AssetBundle, AssetRequest, ScriptRequest, ScriptResult
from video_workflow.steps import StageService


FIXED_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

SERVICE_ENV_VARS = (
    "SCRIPT_SERVICE_URL",
    "ASSET_SERVICE_URL",
    "ASSEMBLY_SERVICE_URL",
    "PUBLISH_SERVICE_URL",
    "WORKFLOW_SERVICE_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep remote endpoints from the environment out of the tests."""
    for name in SERVICE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config(tmp_path):
    return WorkflowConfig(
        output_dir=tmp_path / "output",
        persist_runs=False,
        image_size=(64, 36),
        thumbnail_size=(64, 36),
    )


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


class FailingAssetService(StageService[AssetRequest, AssetBundle]):
    """Asset stage whose backend always errors."""

    name = "assets"
    title = "Content Creator"

    def run(self, request):
        raise RuntimeError("Content creation failed")


class ShortAssetService(StageService[AssetRequest, AssetBundle]):
    """Asset stage that drops images."""

    name = "assets"
    title = "Content Creator"

    def run(self, request):
        return AssetBundle(voiceover_ref="data:audio/wav;base64,", image_refs=("a.png", "b.png"))


class TextDurationScriptService(StageService[ScriptRequest, ScriptResult]):
    """Script stage whose duration arrives as text."""

    name = "script"
    title = "Script Generator"

    def run(self, request):
        return ScriptResult(script="hello world", image_prompts=("a",), estimated_duration_seconds="84")


class DictAssetService(StageService[AssetRequest, AssetBundle]):
    """Asset stage that returns a raw payload instead of a bundle."""

    name = "assets"
    title = "Content Creator"

    def run(self, request):
        return {"voiceoverUrl": "vo", "images": list(request.image_prompts)}
