"""Project manifest loader — YAML (or an export request dict) to a Timeline.

Project manifest schema:
  video:
    resolution: [1920, 1080]     # optional, default shown
    fps: 30                      # optional, default shown
  paths:
    media: "/data/uploads"       # ${media} substitution in clip paths
  duration: 12                   # optional global duration override
  clips:
    - id: c1
      track: video               # video | audio | image | text | effect
      start: 0
      end: 5                     # optional for media clips: start + probed duration
      path: "${media}/intro.mp4"
    - {id: t1, track: text, start: 1, end: 3, text: title}
    - {id: e1, track: effect, start: 2, end: 4, effect: fx}
  texts:
    - {id: title, content: "Hello", x: 100, y: 80, font_size: 48,
       color: "#FFFFFF", bold: false, align: left, animation: fade}
  effects:
    - {id: fx, kind: fade, intensity: 50}

Export requests from the editor use the same structure as a dict, with
camelCase aliases accepted (startTime, endTime, textId, effectId,
fontSize, type for track/kind).
"""

from pathlib import Path

import yaml

from .common import resolve_path_vars
from .compiler import DEFAULT_FPS, DEFAULT_RESOLUTION
from .errors import ValidationError
from .ingest import DEFAULT_DURATIONS, probe_duration
from .timeline import (
    SOURCE_KINDS,
    TRACK_KINDS,
    Clip,
    Effect,
    TextOverlay,
    Timeline,
)


def _get(entry: dict, *keys, default=None):
    """First present key among aliases."""
    for key in keys:
        if key in entry:
            return entry[key]
    return default


def _number(value, prefix: str, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{prefix}: '{name}' must be a number, got {value!r}")
    return float(value)


def load_project_manifest(manifest_path: str | Path, probe: bool = True) -> dict:
    """Load a YAML project manifest.

    Returns:
        {"video": {...}, "timeline": Timeline, "duration": float | None}

    Raises:
        ValidationError: Missing/invalid fields.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValidationError("Project manifest: top level must be a mapping")
    return build_project(raw, probe=probe)


def build_project(raw: dict, probe: bool = True) -> dict:
    """Normalize a manifest or export request dict into a Timeline.

    Processing pipeline:
      1. Video settings (resolution, fps) with defaults.
      2. Text overlays and effects, in list order.
      3. Clips, resolving ${path} variables. Media clips without an end
         get start + probed duration (probe=False uses kind defaults).
      4. Cross-reference validation on the finished timeline.
    """
    video = dict(raw.get("video") or {})
    resolution = video.get("resolution", DEFAULT_RESOLUTION)
    if not isinstance(resolution, (list, tuple)) or len(resolution) != 2:
        raise ValidationError(
            f"Project manifest: video.resolution must be [width, height], got {resolution!r}"
        )
    width = _number(resolution[0], "Project manifest", "video.resolution")
    height = _number(resolution[1], "Project manifest", "video.resolution")
    video["resolution"] = (int(width), int(height))
    fps = video.get("fps", DEFAULT_FPS)
    if isinstance(fps, bool) or not isinstance(fps, int) or fps <= 0:
        raise ValidationError(f"Project manifest: video.fps must be a positive integer, got {fps!r}")
    video["fps"] = fps

    paths = raw.get("paths") or {}
    if not isinstance(paths, dict):
        raise ValidationError(f"Project manifest: paths must be a mapping, got {paths!r}")
    timeline = Timeline()

    for i, entry in enumerate(raw.get("texts") or []):
        timeline.add_text(_parse_text(entry, i))

    for i, entry in enumerate(raw.get("effects") or []):
        timeline.add_effect(_parse_effect(entry, i))

    for i, entry in enumerate(raw.get("clips") or []):
        timeline.add_clip(_parse_clip(entry, i, paths, probe))

    timeline.validate()

    duration = raw.get("duration")
    if duration is not None:
        duration = _number(duration, "Project manifest", "duration")
        if duration <= 0:
            raise ValidationError(f"Project manifest: duration must be positive, got {duration}")

    return {"video": video, "timeline": timeline, "duration": duration}


def _parse_text(entry: dict, index: int) -> TextOverlay:
    prefix = f"Text {index}"
    if "id" not in entry:
        raise ValidationError(f"{prefix}: missing required field 'id'")
    if "content" not in entry:
        raise ValidationError(f"{prefix} ({entry['id']}): missing required field 'content'")

    animation = entry.get("animation")
    if animation in ("none", ""):
        animation = None

    return TextOverlay(
        id=str(entry["id"]),
        content=str(entry["content"]),
        x=_number(entry.get("x", 100), prefix, "x"),
        y=_number(entry.get("y", 100), prefix, "y"),
        font_size=int(_number(
            _get(entry, "font_size", "fontSize", default=48), prefix, "font_size",
        )),
        color=str(entry.get("color", "white")),
        bold=bool(entry.get("bold", False)),
        italic=bool(entry.get("italic", False)),
        underline=bool(entry.get("underline", False)),
        align=str(_get(entry, "align", "alignment", default="left")),
        animation=animation,
    )


def _parse_effect(entry: dict, index: int) -> Effect:
    prefix = f"Effect {index}"
    if "id" not in entry:
        raise ValidationError(f"{prefix}: missing required field 'id'")
    kind = _get(entry, "kind", "type")
    if kind is None:
        raise ValidationError(f"{prefix} ({entry['id']}): missing required field 'kind'")

    return Effect(
        id=str(entry["id"]),
        kind=str(kind),
        intensity=_number(entry.get("intensity", 50), prefix, "intensity"),
        start=_number(_get(entry, "start", "startTime", default=0.0), prefix, "start"),
        end=_number(_get(entry, "end", "endTime", default=0.0), prefix, "end"),
    )


def _parse_clip(entry: dict, index: int, paths: dict, probe: bool) -> Clip:
    if "id" not in entry:
        raise ValidationError(f"Clip {index}: missing required field 'id'")
    cid = str(entry["id"])
    prefix = f"Clip {index} ({cid})"

    track = _get(entry, "track", "type")
    if track not in TRACK_KINDS:
        raise ValidationError(
            f"{prefix}: invalid track '{track}'. Valid: {list(TRACK_KINDS)}"
        )

    start = _get(entry, "start", "startTime")
    if start is None:
        raise ValidationError(f"{prefix}: missing required field 'start'")
    start = _number(start, prefix, "start")

    source = None
    if track in SOURCE_KINDS:
        path = _get(entry, "path", "source")
        if not path:
            raise ValidationError(f"{prefix}: missing required field 'path'")
        try:
            source = resolve_path_vars(str(path), paths)
        except ValueError as e:
            raise ValidationError(f"{prefix}: {e}") from e

    end = _get(entry, "end", "endTime")
    if end is None:
        if source is None:
            raise ValidationError(f"{prefix}: missing required field 'end'")
        if probe:
            length = probe_duration(source, track)
        else:
            length = DEFAULT_DURATIONS[track]
        end = start + length
    end = _number(end, prefix, "end")

    text_ref = _get(entry, "text", "textId")
    effect_ref = _get(entry, "effect", "effectId")

    return Clip(
        id=cid,
        track_id=track,
        kind=track,
        start=start,
        end=end,
        source_ref=source,
        text_ref=str(text_ref) if text_ref is not None else None,
        effect_ref=str(effect_ref) if effect_ref is not None else None,
    )
