"""Shared test fixtures for cutflow tests."""

import shutil
import subprocess

import pytest
import imageio_ffmpeg
from PIL import Image

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def make_video(tmp_path):
    """Factory: small test video (320x240, 10fps) with a silent audio track."""
    def _make(name="source.mp4", duration=3, color="blue"):
        out = tmp_path / name
        subprocess.run(
            [
                _FFMPEG, "-y",
                "-f", "lavfi", "-i", f"color=c={color}:s=320x240:d={duration}:r=10",
                "-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono",
                "-shortest",
                "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
                "-c:a", "aac", "-b:a", "32k",
                str(out),
            ],
            check=True,
            capture_output=True,
        )
        return out
    return _make


@pytest.fixture
def source_video(make_video):
    """3-second blue test video."""
    return make_video()


@pytest.fixture
def audio_file(tmp_path):
    """4-second 440 Hz sine tone as WAV."""
    out = tmp_path / "tone.wav"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "sine=frequency=440:duration=4",
            "-c:a", "pcm_s16le",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def still_image(tmp_path):
    """Solid-color 64x48 PNG."""
    out = tmp_path / "still.png"
    Image.new("RGB", (64, 48), (60, 160, 60)).save(out)
    return out


@pytest.fixture
def drawtext_ffmpeg():
    """An ffmpeg binary with the drawtext filter; skip when none is installed."""
    from cutflow.runner import has_filter

    for candidate in (shutil.which("ffmpeg"), _FFMPEG):
        if candidate and has_filter("drawtext", candidate):
            return candidate
    pytest.skip("no ffmpeg with drawtext available")
