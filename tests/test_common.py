"""Tests for cutflow.common utilities."""

import pytest

from cutflow import common
from cutflow.common import (
    ffmpeg_color,
    find_font_file,
    fmt_number,
    fmt_seconds,
    parse_hex_color,
    resolve_path_vars,
)


class TestParseHexColor:
    def test_with_hash(self):
        assert parse_hex_color("#e04c77") == (224, 76, 119)

    def test_without_hash(self):
        assert parse_hex_color("1A1A1A") == (26, 26, 26)

    def test_ffmpeg_prefix(self):
        assert parse_hex_color("0xFF8800") == (255, 136, 0)

    def test_invalid_raises(self):
        with pytest.raises(ValueError, match="Invalid hex color"):
            parse_hex_color("#12345")


class TestFfmpegColor:
    def test_named(self):
        assert ffmpeg_color("white") == "0xFFFFFF"
        assert ffmpeg_color("Black") == "0x000000"

    def test_hex(self):
        assert ffmpeg_color("#50dc78") == "0x50DC78"

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError):
            ffmpeg_color("mauve")


class TestResolvePathVars:
    def test_single_var(self):
        paths = {"media": "/data/uploads"}
        assert resolve_path_vars("${media}/clip.mp4", paths) == "/data/uploads/clip.mp4"

    def test_multiple_vars(self):
        paths = {"root": "/data", "sub": "uploads"}
        assert resolve_path_vars("${root}/${sub}/a.mp4", paths) == "/data/uploads/a.mp4"

    def test_no_vars(self):
        assert resolve_path_vars("/absolute/path.mp4", {}) == "/absolute/path.mp4"

    def test_unknown_var_raises(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            resolve_path_vars("${missing}/file.mp4", {})


class TestFindFontFile:
    def test_first_existing(self, tmp_path, monkeypatch):
        font = tmp_path / "Sans.ttf"
        font.write_bytes(b"")
        monkeypatch.setattr(common, "FONT_PATHS", [tmp_path / "absent.ttf", font])
        assert find_font_file() == str(font)

    def test_none_installed(self, tmp_path, monkeypatch):
        monkeypatch.setattr(common, "FONT_PATHS", [tmp_path / "absent.ttf"])
        assert find_font_file() is None


class TestFormatting:
    def test_fmt_seconds(self):
        assert fmt_seconds(12) == "12.000"
        assert fmt_seconds(0.25) == "0.250"

    def test_fmt_number(self):
        assert fmt_number(1.25) == "1.25"
        assert fmt_number(3.0) == "3"
        assert fmt_number(0) == "0"
