#!/usr/bin/env python3
"""Generate demo media and a project manifest for cutflow.

Creates in examples/demo-media/:
  - two solid-color clips with an "END" frame (freeze-frames stand out),
  - one still image,
  - one sine-tone audio track,
and writes examples/demo-project.yaml that places them on the timeline
with a text overlay and a fade effect.

Usage:
    python examples/generate_demo_project.py
    cutflow export --manifest examples/demo-project.yaml --output-dir examples/renders/
"""

from pathlib import Path

import numpy as np
import yaml
from moviepy import AudioArrayClip, ColorClip, CompositeVideoClip, ImageClip
from PIL import Image, ImageDraw, ImageFont

EXAMPLES_DIR = Path(__file__).resolve().parent
MEDIA_DIR = EXAMPLES_DIR / "demo-media"
MANIFEST = EXAMPLES_DIR / "demo-project.yaml"
SIZE = (320, 240)
FPS = 30

CLIPS = [
    ("clip-01", (180, 60, 60), 4.0),   # red
    ("clip-02", (60, 60, 180), 6.0),   # blue
]


def _make_card(bg_color: tuple[int, int, int], label: str) -> np.ndarray:
    """White label centered on a dimmed version of bg_color."""
    dim = tuple(max(c // 3, 20) for c in bg_color)
    img = Image.new("RGB", SIZE, dim)
    draw = ImageDraw.Draw(img)
    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 48
        )
    except OSError:
        font = ImageFont.load_default()
    bbox = draw.textbbox((0, 0), label, font=font)
    tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
    draw.text(((SIZE[0] - tw) / 2, (SIZE[1] - th) / 2), label, fill=(255, 255, 255), font=font)
    return np.array(img)


def _write_clips():
    for name, color, duration in CLIPS:
        out = MEDIA_DIR / f"{name}.mp4"
        if out.exists():
            print(f"  skip {name} (exists)")
            continue
        body_dur = max(duration - 0.5, 0.5)
        body = ColorClip(size=SIZE, color=color, duration=body_dur)
        end_clip = ImageClip(_make_card(color, "END"), duration=0.5).with_start(body_dur)
        final = CompositeVideoClip([body, end_clip], size=SIZE)
        final.write_videofile(str(out), fps=FPS, logger=None)
        print(f"  wrote {name} ({duration}s)")


def _write_still():
    out = MEDIA_DIR / "still.png"
    if not out.exists():
        Image.fromarray(_make_card((60, 160, 60), "STILL")).save(out)
        print("  wrote still.png")


def _write_tone(duration: float = 12.0, freq: float = 440.0, rate: int = 44100):
    out = MEDIA_DIR / "tone.wav"
    if out.exists():
        return
    t = np.linspace(0, duration, int(duration * rate), endpoint=False)
    wave = 0.2 * np.sin(2 * np.pi * freq * t)
    AudioArrayClip(np.column_stack([wave, wave]), fps=rate).write_audiofile(
        str(out), fps=rate, logger=None,
    )
    print("  wrote tone.wav")


def _write_manifest():
    manifest = {
        "video": {"resolution": [640, 360], "fps": FPS},
        "paths": {"media": str(MEDIA_DIR)},
        "clips": [
            {"id": "c1", "track": "video", "start": 0, "end": 4, "path": "${media}/clip-01.mp4"},
            {"id": "c2", "track": "video", "start": 4, "end": 10, "path": "${media}/clip-02.mp4"},
            {"id": "c3", "track": "image", "start": 10, "end": 12, "path": "${media}/still.png"},
            {"id": "a1", "track": "audio", "start": 0, "end": 12, "path": "${media}/tone.wav"},
            {"id": "t1", "track": "text", "start": 1, "end": 4, "text": "title"},
            {"id": "e1", "track": "effect", "start": 0, "end": 3, "effect": "intro-fade"},
        ],
        "texts": [
            {"id": "title", "content": "cutflow demo", "x": 320, "y": 40,
             "font_size": 32, "color": "#FFFFFF", "align": "center", "animation": "fade"},
        ],
        "effects": [
            {"id": "intro-fade", "kind": "fade", "intensity": 50},
        ],
    }
    with open(MANIFEST, "w") as f:
        yaml.safe_dump(manifest, f, sort_keys=False)
    print(f"  wrote {MANIFEST.name}")


def main():
    MEDIA_DIR.mkdir(parents=True, exist_ok=True)
    _write_clips()
    _write_still()
    _write_tone()
    _write_manifest()
    print(f"\nDone. Media in {MEDIA_DIR}")


if __name__ == "__main__":
    main()
