"""Tests for the subcommand dispatcher and CLI entry points."""

import json

import pytest
import yaml


def _write_project(tmp_path, clips, **extra):
    manifest = {"paths": {"media": str(tmp_path)}, "clips": clips, **extra}
    path = tmp_path / "project.yaml"
    path.write_text(yaml.dump(manifest))
    return str(path)


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from cutflow.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0  # should error without subcommand

    def test_export_subcommand_exists(self):
        """Verify export subcommand is registered (will fail on missing --manifest)."""
        from cutflow.main import main

        with pytest.raises(SystemExit):
            main(["export"])

    def test_probe_subcommand_exists(self):
        from cutflow.main import main

        with pytest.raises(SystemExit):
            main(["probe"])

    def test_health_prints_payload(self, capsys):
        from cutflow.main import main

        main(["health"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["status"] == "ok"

    def test_invalid_subcommand_errors(self, capsys):
        from cutflow.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0


class TestExportCli:
    def test_output_dir_required_for_render(self, tmp_path):
        from cutflow.export_cli import main

        path = _write_project(tmp_path, [])
        with pytest.raises(SystemExit) as exc_info:
            main(["--manifest", path])
        assert exc_info.value.code == 2

    def test_validate(self, source_video, tmp_path, capsys):
        from cutflow.export_cli import main

        path = _write_project(tmp_path, [
            {"id": "c1", "track": "video", "start": 0, "end": 3,
             "path": "${media}/source.mp4"},
        ])
        main(["--manifest", path, "--validate"])
        out = capsys.readouterr().out
        assert "1 clips" in out
        assert "All paths verified." in out

    def test_validate_missing_source(self, tmp_path, capsys):
        from cutflow.export_cli import main

        path = _write_project(tmp_path, [
            {"id": "c1", "track": "video", "start": 0, "end": 3,
             "path": "${media}/absent.mp4"},
        ])
        with pytest.raises(SystemExit) as exc_info:
            main(["--manifest", path, "--validate"])
        assert exc_info.value.code == 1
        payload = json.loads(capsys.readouterr().err)
        assert payload["error"] == "validation"
        assert "absent.mp4" in payload["message"]

    def test_print_command(self, tmp_path, capsys):
        from cutflow.export_cli import main

        path = _write_project(
            tmp_path,
            [
                {"id": "c1", "track": "image", "start": 0, "end": 4,
                 "path": "${media}/logo.png"},
                {"id": "e1", "track": "effect", "start": 0, "end": 2, "effect": "b"},
            ],
            effects=[{"id": "b", "kind": "blur", "intensity": 50}],
            video={"resolution": [640, 360], "fps": 24},
        )
        main(["--manifest", path, "--print-command", "--effect-policy", "layered"])
        out = capsys.readouterr().out
        assert "-filter_complex" in out
        assert "loop=loop=-1:size=1:start=0" in out
        assert "scale=640:360" in out
        assert "gblur" in out
        assert "-t 5.000" in out

    def test_print_command_gpu(self, tmp_path, capsys):
        from cutflow.export_cli import main

        path = _write_project(tmp_path, [
            {"id": "c1", "track": "video", "start": 0, "end": 6,
             "path": "${media}/clip.mp4"},
        ])
        main(["--manifest", path, "--print-command", "--gpu"])
        assert "h264_nvenc" in capsys.readouterr().out

    def test_print_command_uses_given_ffmpeg(self, tmp_path, capsys):
        from cutflow.export_cli import main

        path = _write_project(tmp_path, [
            {"id": "c1", "track": "video", "start": 0, "end": 6,
             "path": "${media}/clip.mp4"},
        ])
        main(["--manifest", path, "--print-command", "--ffmpeg", "/opt/ffmpeg/bin/ffmpeg"])
        assert capsys.readouterr().out.startswith("/opt/ffmpeg/bin/ffmpeg -y ")

    def test_unusable_ffmpeg_reports_payload(self, source_video, tmp_path, capsys):
        from cutflow.export_cli import main

        path = _write_project(tmp_path, [
            {"id": "c1", "track": "video", "start": 0, "end": 3,
             "path": "${media}/source.mp4"},
        ])
        with pytest.raises(SystemExit) as exc_info:
            main(["--manifest", path, "--output-dir", str(tmp_path / "renders"),
                  "--ffmpeg", str(tmp_path / "no-ffmpeg"), "--quiet"])
        assert exc_info.value.code == 1
        payload = json.loads(capsys.readouterr().err)
        assert payload["error"] == "external_tool"

    def test_render(self, source_video, tmp_path, capsys):
        from cutflow.export_cli import main

        path = _write_project(
            tmp_path,
            [{"id": "c1", "track": "video", "start": 0, "end": 3,
              "path": "${media}/source.mp4"}],
            video={"resolution": [160, 120], "fps": 10},
        )
        main(["--manifest", path, "--output-dir", str(tmp_path / "renders"), "--quiet"])
        result = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert result["filename"].startswith("output-")
        assert result["size"] > 0


class TestProbeCli:
    def test_prints_records(self, still_image, capsys):
        from cutflow.probe_cli import main

        main([str(still_image)])
        out = capsys.readouterr().out
        assert "  PROBE  image" in out
        records = json.loads(out[out.index("["):])
        assert records[0]["kind"] == "image"
        assert records[0]["duration"] == 5

    def test_writes_output_file(self, still_image, tmp_path):
        from cutflow.probe_cli import main

        out = tmp_path / "meta" / "media.json"
        main([str(still_image), "--output", str(out)])
        records = json.loads(out.read_text())
        assert records[0]["id"] == "still"
