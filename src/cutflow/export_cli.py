"""CLI for export — compile a project manifest and render it with ffmpeg.

Usage:
    # Render
    cutflow export --manifest project.yaml --output-dir renders/

    # Check manifest and media paths only
    cutflow export --manifest project.yaml --validate

    # Show the ffmpeg command without running it
    cutflow export --manifest project.yaml --print-command

    # Use a specific ffmpeg build (text overlays need drawtext)
    cutflow export --manifest project.yaml --output-dir renders/ --ffmpeg /usr/bin/ffmpeg
"""

import argparse
import json
import shlex
import sys

from .compiler import compile_timeline, validate_sources
from .effects import EFFECT_POLICIES
from .errors import CutflowError
from .project import load_project_manifest
from .runner import export_timeline, find_ffmpeg


def _print_summary(config):
    timeline = config["timeline"]
    duration = config["duration"] or timeline.duration
    print(f"Project valid: {len(timeline.clips)} clips, duration {duration:.1f}s")
    for track_id in timeline.tracks:
        for clip in timeline.clips_by_track(track_id):
            ref = clip.source_ref or clip.text_ref or clip.effect_ref
            print(f"  {track_id:<6} {clip.id}  {clip.start:.1f}s — {clip.end:.1f}s  {ref}")


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Compile a timeline manifest to one ffmpeg run and render it.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML project manifest",
    )
    parser.add_argument(
        "--output-dir",
        help="Directory for the rendered mp4 (required unless --validate/--print-command)",
    )
    parser.add_argument(
        "--gpu", action="store_true",
        help="Use GPU encoding (h264_nvenc). Default is CPU (libx264).",
    )
    parser.add_argument(
        "--ffmpeg", default=None,
        help="ffmpeg binary to run (default: ffmpeg on PATH, else the imageio-ffmpeg build)",
    )
    parser.add_argument(
        "--effect-policy", choices=EFFECT_POLICIES, default="first",
        help="first: apply only the earliest effect (default); layered: all effects",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only — check paths, don't render",
    )
    parser.add_argument(
        "--print-command", action="store_true",
        help="Print the compiled ffmpeg command and exit",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress progress output",
    )
    parsed = parser.parse_args(args)

    if not (parsed.validate or parsed.print_command) and not parsed.output_dir:
        parser.error("--output-dir is required (unless using --validate or --print-command)")

    codec = "h264_nvenc" if parsed.gpu else "libx264"
    ffmpeg = parsed.ffmpeg or find_ffmpeg()

    try:
        config = load_project_manifest(parsed.manifest)
        timeline = config["timeline"]
        video = config["video"]

        if parsed.validate:
            validate_sources(timeline)
            _print_summary(config)
            print("All paths verified.")
            return

        if parsed.print_command:
            plan = compile_timeline(
                timeline,
                duration=config["duration"],
                resolution=video["resolution"],
                fps=video["fps"],
                effect_policy=parsed.effect_policy,
                codec=codec,
            )
            print(shlex.join(plan.to_args(ffmpeg)))
            return

        result = export_timeline(
            timeline,
            parsed.output_dir,
            duration=config["duration"],
            resolution=video["resolution"],
            fps=video["fps"],
            effect_policy=parsed.effect_policy,
            codec=codec,
            ffmpeg=ffmpeg,
            quiet=parsed.quiet,
        )
    except CutflowError as e:
        print(json.dumps(e.to_payload()), file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result))


if __name__ == "__main__":
    main()
