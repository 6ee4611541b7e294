"""Graph compiler — Timeline to a single ffmpeg invocation.

compile_timeline() is pure: it reads a Timeline and a global duration
and returns an InvocationPlan (ordered inputs, filter graph, output maps,
encode flags, destination). It touches no files; text overlay contents
are returned as side files for the runner to write.

Algorithm:
  1. Partition clips into visual (video + image tracks) and audio, each
     sorted by start time (stable).
  2. One normalize node per visual clip: scale to the canonical
     resolution with letterbox padding, trim to the clip span (images
     loop forever first, then trim), reset timestamps.
  3. More than one visual clip: a single concat node joins them in
     order. Exactly one: its normalize output is the visual stream.
  4. Text overlays are chained onto the end of the visual stream in
     overlay list order, each gated to its clip's window.
  5. Effects from effect clips go through the selection policy (legacy:
     first allowed effect by start time only).
  6. Audio clips are trimmed to min(span, duration) and timestamp-reset.
     More than one: a single amix node with duration=longest.
  7. Map the final labels, clamp output to the duration, add -shortest
     only when audio is present, append fixed encode flags.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path

from .common import ffmpeg_color, fmt_number, fmt_seconds
from .effects import effect_filters, select_effects
from .errors import CompilationError, ValidationError
from .graph import FilterGraph, FilterNode, escape_value, make_filter
from .timeline import Clip, TextOverlay, Timeline, VISUAL_KINDS


DEFAULT_RESOLUTION = (1920, 1080)
DEFAULT_FPS = 30

TEXT_BOX_COLOR = "black@0.5"
TEXT_BOX_BORDER = 5
TEXT_BOLD_BORDER = 2
TEXT_FADE_IN = 0.5        # seconds of alpha ramp for animation: fade


def encode_args(codec: str = "libx264") -> list[str]:
    """Fixed output encode flags. codec only swaps the video encoder."""
    if codec == "h264_nvenc":
        video = ["-c:v", codec, "-preset", "medium", "-cq", "23"]
    else:
        video = ["-c:v", "libx264", "-preset", "medium", "-crf", "23"]
    return [*video, "-pix_fmt", "yuv420p", "-c:a", "aac", "-b:a", "192k"]


@dataclass
class TextSideFile:
    """Text overlay content that must exist at path before ffmpeg runs."""
    path: str
    content: str


@dataclass
class InvocationPlan:
    """Compiled description of one ffmpeg run.

    inputs are index-aligned with the "N:v" / "N:a" references inside
    graph. maps are the graph labels sent to the output file.
    """
    inputs: list[str]
    graph: FilterGraph
    maps: list[str]
    duration: float
    shortest: bool
    encode: list[str]
    output: str
    side_files: list[TextSideFile] = field(default_factory=list)

    def to_args(self, ffmpeg: str = "ffmpeg") -> list[str]:
        """Render the full ffmpeg argument list."""
        args = [ffmpeg, "-y"]
        for path in self.inputs:
            args.extend(["-i", path])
        args.extend(["-filter_complex", self.graph.render()])
        for label in self.maps:
            args.extend(["-map", f"[{label}]"])
        args.extend(["-t", fmt_seconds(self.duration)])
        if self.shortest:
            args.append("-shortest")
        args.extend(self.encode)
        args.append(self.output)
        return args


# ── Precondition ─────────────────────────────────────────────────


def validate_sources(timeline: Timeline) -> None:
    """Check that every source-bearing clip points at an existing file.

    Raises:
        ValidationError: Lists all missing files.
    """
    missing = []
    for clip in timeline.clips:
        if clip.source_ref and not Path(clip.source_ref).exists():
            if clip.source_ref not in missing:
                missing.append(clip.source_ref)

    if missing:
        msg = f"Missing {len(missing)} source file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise ValidationError(msg)


# ── Compiler ─────────────────────────────────────────────────────


class _InputTable:
    """Distinct source paths in first-use order."""

    def __init__(self):
        self.paths: list[str] = []

    def index(self, clip: Clip) -> int:
        if not clip.source_ref:
            raise CompilationError(f"Clip '{clip.id}' ({clip.kind}) has no source")
        if clip.source_ref not in self.paths:
            self.paths.append(clip.source_ref)
        return self.paths.index(clip.source_ref)


def compile_timeline(
    timeline: Timeline,
    duration: float | None = None,
    output: str = "output.mp4",
    work_dir: str | Path = ".",
    resolution: tuple[int, int] = DEFAULT_RESOLUTION,
    fps: int = DEFAULT_FPS,
    effect_policy: str = "first",
    codec: str = "libx264",
    font_file: str | None = None,
) -> InvocationPlan:
    """Compile a timeline into an InvocationPlan.

    Args:
        timeline: Source of clips, text overlays and effects.
        duration: Global duration snapshot; defaults to timeline.duration.
        output: Destination path written into the plan.
        work_dir: Directory the runner will write text side files to.
        resolution: Canonical (width, height) for every visual segment.
        fps: Canonical frame rate for every visual segment.
        effect_policy: "first" (legacy single effect) or "layered".
        codec: Video encoder; see encode_args().
        font_file: Optional font path passed to drawtext.

    Raises:
        ValidationError: No visual and no audio clips.
        CompilationError: Graph invariant broken while assembling.
    """
    visual = timeline.clips_of_kind(*sorted(VISUAL_KINDS))
    audio = timeline.clips_of_kind("audio")
    if not visual and not audio:
        raise ValidationError("No video, image or audio clips to compile")

    if duration is None:
        duration = timeline.duration

    graph = FilterGraph()
    inputs = _InputTable()
    side_files: list[TextSideFile] = []
    maps: list[str] = []

    # Inputs are registered visual-first, then audio.
    visual_idx = [inputs.index(c) for c in visual]
    audio_idx = [inputs.index(c) for c in audio]

    if visual:
        for i, (clip, idx) in enumerate(zip(visual, visual_idx)):
            graph.add(FilterNode(
                kind="normalize",
                inputs=[f"{idx}:v"],
                filters=_normalize_filters(clip, resolution, fps),
                outputs=[f"v{i}"],
            ))

        if len(visual) > 1:
            graph.add(FilterNode(
                kind="concat",
                inputs=[f"v{i}" for i in range(len(visual))],
                filters=[make_filter("concat", n=len(visual), v=1, a=0)],
                outputs=["outv"],
            ))
            current = "outv"
        else:
            current = "v0"

        # Text overlays chain in list order, not window order.
        k = 0
        for ti, text in enumerate(timeline.texts):
            clip = timeline.clip_for_text(text.id)
            if clip is None or clip.span <= 0:
                continue
            side = TextSideFile(str(Path(work_dir) / f"text_{ti}.txt"), text.content)
            side_files.append(side)
            label = f"txt{k}"
            graph.add(FilterNode(
                kind="text",
                inputs=[current],
                filters=[_drawtext(text, clip, side.path, font_file)],
                outputs=[label],
            ))
            current = label
            k += 1

        linked = []
        for effect in timeline.effects:
            clip = timeline.clip_for_effect(effect.id)
            if clip is not None:
                linked.append(replace(effect, start=clip.start, end=clip.end))
        for k, effect in enumerate(select_effects(linked, effect_policy)):
            label = f"fx{k}"
            graph.add(FilterNode(
                kind="effect",
                inputs=[current],
                filters=effect_filters(effect, effect_policy, resolution, fps),
                outputs=[label],
            ))
            current = label

        maps.append(current)

    if audio:
        for i, (clip, idx) in enumerate(zip(audio, audio_idx)):
            trimmed = min(clip.span, duration)
            graph.add(FilterNode(
                kind="audio",
                inputs=[f"{idx}:a"],
                filters=[
                    make_filter("asetpts", "PTS-STARTPTS"),
                    make_filter("atrim", 0, fmt_seconds(trimmed)),
                ],
                outputs=[f"a{i}"],
            ))

        if len(audio) > 1:
            graph.add(FilterNode(
                kind="mix",
                inputs=[f"a{i}" for i in range(len(audio))],
                filters=[make_filter(
                    "amix", inputs=len(audio), duration="longest",
                    dropout_transition=0,
                )],
                outputs=["outa"],
            ))
            maps.append("outa")
        else:
            maps.append("a0")

    dangling = set(graph.unconsumed_outputs()) - set(maps)
    if dangling:
        raise CompilationError(f"Graph outputs never mapped: {sorted(dangling)}")

    return InvocationPlan(
        inputs=list(inputs.paths),
        graph=graph,
        maps=maps,
        duration=duration,
        shortest=bool(audio),
        encode=encode_args(codec),
        output=str(output),
        side_files=side_files,
    )


# ── Node builders ────────────────────────────────────────────────


def _normalize_filters(clip: Clip, resolution: tuple[int, int], fps: int):
    """Scale/pad to canonical size, then trim to the clip span.

    Image clips loop their single frame forever before the trim.
    """
    w, h = resolution
    filters = [
        make_filter("scale", w, h, force_original_aspect_ratio="decrease"),
        make_filter("pad", w, h, "(ow-iw)/2", "(oh-ih)/2"),
        make_filter("setsar", 1),
    ]
    if clip.kind == "image":
        filters.append(make_filter("loop", loop=-1, size=1, start=0))
    filters.extend([
        make_filter("fps", fps),
        make_filter("trim", duration=fmt_seconds(clip.span)),
        make_filter("setpts", "PTS-STARTPTS"),
    ])
    return filters


def _drawtext(text: TextOverlay, clip: Clip, textfile: str, font_file: str | None):
    x = fmt_number(text.x)
    if text.align == "center":
        x = f"'{x}-text_w/2'"
    elif text.align == "right":
        x = f"'{x}-text_w'"

    color = ffmpeg_color(text.color)
    options = {"textfile": escape_value(textfile)}
    if font_file:
        options["fontfile"] = escape_value(font_file)
    options.update(
        fontsize=text.font_size,
        fontcolor=color,
        x=x,
        y=fmt_number(text.y),
        box=1,
        boxcolor=TEXT_BOX_COLOR,
        boxborderw=TEXT_BOX_BORDER,
    )
    if text.bold:
        options["borderw"] = TEXT_BOLD_BORDER
        options["bordercolor"] = color
    if text.animation == "fade":
        options["alpha"] = (
            f"'min(1,(t-{fmt_seconds(clip.start)})/{fmt_number(TEXT_FADE_IN)})'"
        )
    options["enable"] = (
        f"'between(t,{fmt_seconds(clip.start)},{fmt_seconds(clip.end)})'"
    )
    return make_filter("drawtext", **options)
