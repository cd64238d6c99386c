"""
CLI and presenter tests
"""
import io
from pathlib import Path

from video_workflow.cli import (
    RunPresenter,
    args_to_config,
    args_to_input,
    main,
    parse_args,
    progress_bar,
)
from video_workflow.pipeline import VideoWorkflowPipeline


class TestArgs:
    """Argument parsing"""

    def test_defaults(self):
        args = parse_args([])
        assert args.output == Path("output")
        assert args.idea is None
        assert args.json is False

    def test_input_from_args(self, tmp_path):
        script_file = tmp_path / "script.txt"
        script_file.write_text("My own script text")
        args = parse_args([
            "--idea", "rivers",
            "--script-file", str(script_file),
            "--schedule", "2030-01-01T09:00:00Z",
        ])

        form = args_to_input(args)
        assert form["customIdea"] == "rivers"
        assert form["customScript"] == "My own script text"
        assert form["useGoogleSheets"] is False
        assert form["scheduledTime"] == "2030-01-01T09:00:00Z"

    def test_sheets_flag(self):
        form = args_to_input(parse_args(["--sheets-id", "abc"]))
        assert form["useGoogleSheets"] is True
        assert form["sheetsId"] == "abc"

    def test_config_from_args(self, tmp_path):
        config = args_to_config(parse_args(["-o", str(tmp_path), "--no-assets", "--no-track"]))
        assert config.output_dir == tmp_path.resolve()
        assert config.write_assets is False
        assert config.persist_runs is False


class TestPresenter:
    """RunPresenter"""

    def test_prints_new_events_once(self, config, clock):
        stream = io.StringIO()
        presenter = RunPresenter(stream=stream)
        pipeline = VideoWorkflowPipeline(config, clock=clock)
        pipeline.add_listener(presenter)

        pipeline.run({"customIdea": "solar panels"})

        output = stream.getvalue()
        assert output.count("Run started") == 1
        assert output.count("All stages completed successfully!") == 1

    def test_render(self, config, clock):
        snapshot = VideoWorkflowPipeline(config, clock=clock).run({"customIdea": "solar panels"})
        text = RunPresenter().render(snapshot)

        assert "succeeded" in text
        assert "100%" in text
        assert "Agent 4: YouTube Publisher" in text
        assert "Published: https://youtube.com/watch?v=" in text

    def test_progress_bar(self):
        assert progress_bar(50, width=10) == "[#####-----] 50%"
        assert progress_bar(0, width=4) == "[----] 0%"


class TestMain:
    """main()"""

    def test_success(self, tmp_path, capsys):
        code = main(["--idea", "solar panels", "-o", str(tmp_path), "--no-assets", "--json"])

        assert code == 0
        out = capsys.readouterr().out
        assert '"outcome": "succeeded"' in out
        assert (tmp_path / "runs.json").exists()

    def test_missing_idea_fails(self, tmp_path, capsys):
        code = main(["-o", str(tmp_path), "--no-assets", "--no-track"])

        assert code == 1
        assert "Invalid input" in capsys.readouterr().out

    def test_missing_script_file(self, tmp_path, capsys):
        code = main(["--script-file", str(tmp_path / "nope.txt"), "-o", str(tmp_path)])

        assert code == 1
        assert "does not exist" in capsys.readouterr().out
