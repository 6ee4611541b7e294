"""Media ingestion — kind detection and duration probing.

Produces one record per accepted file:
    {"id": ..., "path": ..., "kind": "video"|"audio"|"image", "duration": ...}

Duration is probed with moviepy (imageio_ffmpeg does not bundle ffprobe)
and floored to whole seconds. When probing fails or reports nothing,
defaults apply: images 5, video/audio 30.
"""

import math
from pathlib import Path

from moviepy import AudioFileClip, VideoFileClip

from .errors import ValidationError


VIDEO_EXTENSIONS = {".mp4", ".mov", ".mkv", ".webm", ".avi", ".m4v"}
AUDIO_EXTENSIONS = {".mp3", ".wav", ".aac", ".m4a", ".ogg", ".flac"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp"}

DEFAULT_DURATIONS = {"image": 5, "video": 30, "audio": 30}


def detect_kind(path: str | Path) -> str:
    """Media kind from the file extension.

    Raises:
        ValidationError: Unsupported extension.
    """
    suffix = Path(path).suffix.lower()
    if suffix in VIDEO_EXTENSIONS:
        return "video"
    if suffix in AUDIO_EXTENSIONS:
        return "audio"
    if suffix in IMAGE_EXTENSIONS:
        return "image"
    raise ValidationError(f"Unsupported media type: {path}")


def probe_duration(path: str | Path, kind: str) -> float:
    """Whole-second duration of a media file, or the kind's default."""
    if kind == "image":
        return DEFAULT_DURATIONS["image"]

    opener = VideoFileClip if kind == "video" else AudioFileClip
    try:
        with opener(str(path)) as clip:
            seconds = clip.duration or 0
    except (OSError, KeyError, ValueError, IndexError):
        seconds = 0
    return math.floor(seconds) or DEFAULT_DURATIONS[kind]


def ingest(path: str | Path, media_id: str | None = None) -> dict:
    """Build the ingestion record for one file.

    Raises:
        FileNotFoundError: path does not exist.
        ValidationError: Unsupported extension.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Media file not found: {path}")
    kind = detect_kind(p)
    return {
        "id": media_id or p.stem,
        "path": str(p),
        "kind": kind,
        "duration": probe_duration(p, kind),
    }
