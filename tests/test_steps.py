"""
Stage service tests
"""
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from video_workflow.core.errors import StageFailure
from video_workflow.models import (
    AssemblyRequest,
    AssetRequest,
    IdeaSourceMode,
    PublishRequest,
    PublishStatus,
    ScriptRequest,
)
from video_workflow.steps import (
    AssemblyService,
    AssetService,
    PublishService,
    ScriptService,
    SheetsIdeaSource,
)
from video_workflow.steps.publisher import FALLBACK_TITLE, build_title


NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestScriptService:
    """ScriptService"""

    def test_generated_script(self, config):
        """Generated script mentions the idea and has seven prompts"""
        result = ScriptService(config).execute(
            ScriptRequest(mode=IdeaSourceMode.CUSTOM, idea="solar panels")
        )

        assert "solar panels" in result.script
        assert len(result.image_prompts) == 7
        assert result.estimated_duration_seconds == 84
        assert result.idea == "solar panels"

    def test_custom_script_duration(self, config):
        """150 words is exactly one minute"""
        script = " ".join(["word"] * 150)
        result = ScriptService(config).execute(
            ScriptRequest(mode=IdeaSourceMode.CUSTOM, custom_script=script)
        )

        assert result.script == script
        assert result.estimated_duration_seconds == 60
        assert len(result.image_prompts) == 5

    def test_long_custom_script_prompts(self, config):
        """One prompt per 30 seconds above the minimum"""
        script = " ".join(["word"] * 600)
        result = ScriptService(config).execute(
            ScriptRequest(mode=IdeaSourceMode.CUSTOM, idea="rivers", custom_script=script)
        )

        assert result.estimated_duration_seconds == 240
        assert len(result.image_prompts) == 8
        assert result.image_prompts[0].startswith("Scene 1 visualization for video about rivers")

    def test_no_idea(self, config):
        """Nothing to write about fails the stage"""
        with pytest.raises(StageFailure):
            ScriptService(config).execute(ScriptRequest(mode=IdeaSourceMode.CUSTOM))

    def test_sheets_mode(self, config):
        """Idea comes from the sheet"""
        source = Mock(spec=SheetsIdeaSource)
        source.fetch_idea.return_value = "home gardening"
        result = ScriptService(config, idea_source=source).execute(
            ScriptRequest(mode=IdeaSourceMode.GOOGLE_SHEETS, sheets_id="abc", idea="ignored")
        )

        source.fetch_idea.assert_called_once_with("abc")
        assert result.idea == "home gardening"
        assert "home gardening" in result.script


class TestSheetsIdeaSource:
    """SheetsIdeaSource"""

    def test_parse_ideas(self):
        ideas = SheetsIdeaSource().parse_ideas("Idea,notes\n\nsolar panels,x\n ,y\nwind,z\n")
        assert ideas == ["solar panels", "wind"]

    def test_parse_without_header(self):
        assert SheetsIdeaSource().parse_ideas("rivers\nlakes\n") == ["rivers", "lakes"]

    @patch("video_workflow.steps.script_writer.requests.get")
    def test_fetch_idea(self, mock_get):
        mock_get.return_value = Mock(status_code=200, text="idea\nsolar panels\n")
        assert SheetsIdeaSource(timeout_sec=5).fetch_idea("sheet123") == "solar panels"

        url = mock_get.call_args[0][0]
        assert "sheet123" in url
        assert mock_get.call_args[1]["timeout"] == 5

    @patch("video_workflow.steps.script_writer.requests.get")
    def test_fetch_failure(self, mock_get):
        mock_get.return_value = Mock(status_code=404, text="")
        with pytest.raises(RuntimeError, match="404"):
            SheetsIdeaSource().fetch_idea("missing")

    @patch("video_workflow.steps.script_writer.requests.get")
    def test_empty_sheet(self, mock_get):
        mock_get.return_value = Mock(status_code=200, text="idea\n")
        with pytest.raises(RuntimeError, match="no ideas"):
            SheetsIdeaSource().fetch_idea("empty")


class TestAssetService:
    """AssetService"""

    def test_one_image_per_prompt(self, config):
        prompts = tuple(f"prompt {i}" for i in range(7))
        bundle = AssetService(config).execute(AssetRequest(script="Hello there", image_prompts=prompts))

        assert len(bundle.image_refs) == len(prompts)
        assert bundle.voiceover_ref.startswith("data:audio/wav;base64,")
        for ref in bundle.image_refs:
            assert Path(ref).exists()
            assert Path(ref).is_relative_to(config.images_dir)

    def test_inline_images(self, config):
        config.write_assets = False
        bundle = AssetService(config).execute(AssetRequest(script="Hi", image_prompts=("a", "b")))

        assert len(bundle.image_refs) == 2
        assert all(ref.startswith("data:image/png;base64,") for ref in bundle.image_refs)
        assert not config.images_dir.exists()


class TestAssemblyService:
    """AssemblyService"""

    def test_image_duration(self, config):
        refs = tuple(f"{i:03d}.png" for i in range(7))
        video = AssemblyService(config).execute(
            AssemblyRequest(voiceover_ref="vo", image_refs=refs, estimated_duration_seconds=84)
        )

        assert video.image_duration == 12
        assert video.duration == 84
        assert video.resolution == "1920x1080"
        assert video.format == "mp4"
        assert video.approx_file_size == "42MB"
        assert [s["start"] for s in video.scenes] == [i * 12 for i in range(7)]

    def test_manifest_written(self, config):
        video = AssemblyService(config).execute(
            AssemblyRequest(voiceover_ref="vo", image_refs=("a.png", "b.png"), estimated_duration_seconds=10)
        )

        manifest = Path(video.video_ref).parent / "scenes.txt"
        lines = manifest.read_text().splitlines()
        assert lines == [
            "file 'a.png'",
            "duration 5.000",
            "file 'b.png'",
            "duration 5.000",
            "file 'b.png'",
        ]

    def test_no_images(self, config):
        """Zero images cannot be divided into scenes"""
        with pytest.raises(StageFailure, match="without images"):
            AssemblyService(config).execute(
                AssemblyRequest(voiceover_ref="vo", image_refs=(), estimated_duration_seconds=84)
            )


class TestPublishService:
    """PublishService"""

    SCRIPT = "Welcome to this video about solar panels!\n\nSolar panels turn sunlight into electricity."

    def _publish(self, config, scheduled=None):
        return PublishService(config).execute(PublishRequest(
            video_ref="video.mp4",
            script=self.SCRIPT,
            scheduled_time=scheduled,
            requested_at=NOW,
            idea="solar panels",
        ))

    def test_published_without_schedule(self, config):
        result = self._publish(config)

        assert result.status == PublishStatus.PUBLISHED
        assert result.published_url.startswith("https://youtube.com/watch?v=demo_")
        assert result.title == "Welcome to this video about solar panels!"
        assert result.description.startswith("Welcome to this video")
        assert Path(result.thumbnail_ref).exists()

    def test_future_schedule(self, config):
        result = self._publish(config, scheduled=datetime(2027, 1, 1, tzinfo=timezone.utc))

        assert result.status == PublishStatus.SCHEDULED
        assert result.scheduled_time == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_past_schedule(self, config):
        result = self._publish(config, scheduled=datetime(2025, 1, 1, tzinfo=timezone.utc))

        assert result.status == PublishStatus.PUBLISHED
        assert result.scheduled_time is None

    def test_keywords(self, config):
        keywords = self._publish(config).keywords

        assert isinstance(keywords, frozenset)
        assert {"technology", "tutorial", "solar panels"} <= keywords
        assert "solar" in keywords

    def test_title_rules(self):
        assert build_title("Short\nrest") == FALLBACK_TITLE
        long_line = "x" * 150
        assert build_title(long_line) == "x" * 97 + "..."
