"""Process runner — executes compiled plans with ffmpeg.

export_timeline() is the export request handler: validate sources,
compile, write text side files to a temp dir, run ffmpeg, and report
{filename, path, size}. Side files are removed whether ffmpeg succeeds
or fails.

No timeout is applied to the ffmpeg process and nothing serializes two
exports writing into the same output directory.
"""

import shutil
import subprocess
import tempfile
import time
from concurrent.futures import Executor, Future
from datetime import datetime, timezone
from pathlib import Path

import imageio_ffmpeg

from .common import find_font_file
from .compiler import (
    DEFAULT_FPS,
    DEFAULT_RESOLUTION,
    InvocationPlan,
    compile_timeline,
    validate_sources,
)
from .errors import ExternalToolError, OutputMissingError
from .timeline import Timeline


def find_ffmpeg() -> str:
    """ffmpeg on PATH if installed, else the imageio-ffmpeg bundled binary.

    The bundled build lacks drawtext, so text overlays need a system ffmpeg
    (or an explicit binary passed as ffmpeg=).
    """
    return shutil.which("ffmpeg") or imageio_ffmpeg.get_ffmpeg_exe()


_FFMPEG = find_ffmpeg()

ERROR_MARKERS = ("error", "invalid", "no such file", "not found", "failed")


def extract_error_message(stderr: str) -> str:
    """Pick the diagnostic lines that look like errors.

    Falls back to the last non-empty line when no marker matches.
    """
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    hits = [
        line for line in lines
        if any(marker in line.lower() for marker in ERROR_MARKERS)
    ]
    if hits:
        return "\n".join(hits)
    return lines[-1] if lines else "no diagnostic output"


def has_filter(name: str, ffmpeg: str = _FFMPEG) -> bool:
    """True if the ffmpeg binary lists filter name in `ffmpeg -filters`."""
    try:
        result = subprocess.run(
            [ffmpeg, "-hide_banner", "-filters"],
            capture_output=True, text=True,
        )
    except OSError:
        return False
    for line in result.stdout.splitlines():
        fields = line.split()
        if len(fields) >= 2 and fields[1] == name:
            return True
    return False


def write_side_files(plan: InvocationPlan) -> None:
    for side in plan.side_files:
        Path(side.path).write_text(side.content, encoding="utf-8")


def run_plan(plan: InvocationPlan, ffmpeg: str = _FFMPEG, quiet: bool = False) -> Path:
    """Run ffmpeg for a plan whose side files already exist.

    Returns:
        Path of the written output file.

    Raises:
        ExternalToolError: ffmpeg exited non-zero or could not be started.
        OutputMissingError: ffmpeg exited zero without writing the output.
    """
    Path(plan.output).parent.mkdir(parents=True, exist_ok=True)
    cmd = plan.to_args(ffmpeg)
    if not quiet:
        print(f"  RUN    {' '.join(cmd)}", flush=True)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ExternalToolError(-1, str(e)) from e
    if result.returncode != 0:
        raise ExternalToolError(result.returncode, extract_error_message(result.stderr))

    out = Path(plan.output)
    if not out.exists():
        raise OutputMissingError(out)
    return out


def export_timeline(
    timeline: Timeline,
    output_dir: str | Path,
    duration: float | None = None,
    resolution: tuple[int, int] = DEFAULT_RESOLUTION,
    fps: int = DEFAULT_FPS,
    effect_policy: str = "first",
    codec: str = "libx264",
    ffmpeg: str = _FFMPEG,
    quiet: bool = False,
) -> dict:
    """Render a timeline to output-<epoch-ms>.mp4 in output_dir.

    Returns:
        {"filename": ..., "path": ..., "size": bytes}

    Raises:
        ValidationError: No compileable clips, or a source file is missing.
        ExternalToolError / OutputMissingError: see run_plan().
    """
    validate_sources(timeline)

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    filename = f"output-{int(time.time() * 1000)}.mp4"
    output = out_dir / filename

    t0 = time.monotonic()
    with tempfile.TemporaryDirectory(prefix="cutflow-") as work_dir:
        plan = compile_timeline(
            timeline,
            duration=duration,
            output=str(output),
            work_dir=work_dir,
            resolution=resolution,
            fps=fps,
            effect_policy=effect_policy,
            codec=codec,
            font_file=find_font_file(),
        )
        write_side_files(plan)
        try:
            run_plan(plan, ffmpeg=ffmpeg, quiet=quiet)
        except (ExternalToolError, OutputMissingError) as e:
            if not quiet:
                print(f"  FAIL   {e}", flush=True)
            raise

    size = output.stat().st_size
    if not quiet:
        elapsed = time.monotonic() - t0
        print(f"  DONE   {output} — {size} bytes, {elapsed:.1f}s wall", flush=True)
    return {"filename": filename, "path": str(output), "size": size}


def submit_export(executor: Executor, timeline: Timeline, output_dir, **kwargs) -> Future:
    """Schedule export_timeline on an executor.

    Validation runs here, before submission, so ValidationError is raised
    to the caller immediately. ffmpeg failures surface from future.result().
    """
    validate_sources(timeline)
    compile_timeline(timeline, duration=kwargs.get("duration"))
    return executor.submit(export_timeline, timeline, output_dir, **kwargs)


def health() -> dict:
    """Liveness probe payload."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
