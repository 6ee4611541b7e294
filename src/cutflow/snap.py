"""Snap & resize engine for interactive clip edits.

Dragging a clip or one of its edges proposes a new boundary time. The
proposal is hard-snapped onto the nearest start/end of any other clip
within SNAP_THRESHOLD, then clamped:

  - move:         start in [0, duration - span]
  - left resize:  start in [0, end - MIN_CLIP_SPAN]
  - right resize: end >= start + MIN_CLIP_SPAN, no upper bound (a clip
                  may extend the timeline; duration grows on the next read)

Proposals are ClipChange values. Nothing here holds timeline state except
an EditSession, which tracks one pointer gesture at a time:

  Idle --down(body)--> Dragging --up--> Idle
  Idle --down(edge)--> Resizing --up--> Idle

Pointer moves only record the latest target time. on_frame() applies at
most one mutation per display refresh, so a burst of moves between two
frames costs one timeline update.
"""

from dataclasses import dataclass

from .errors import EditStateError
from .timeline import Clip, Timeline


SNAP_THRESHOLD = 1.0
MIN_CLIP_SPAN = 0.5

RESIZE_SIDES = {"left", "right"}


@dataclass(frozen=True)
class ClipChange:
    """Proposed new window for one clip."""
    clip_id: str
    start: float
    end: float

    def apply(self, timeline: Timeline) -> Clip:
        return timeline.update_clip(self.clip_id, start=self.start, end=self.end)


# ── Snapping ─────────────────────────────────────────────────────


def snap_candidates(
    timeline: Timeline, clip_id: str, same_track: bool = False,
) -> list[float]:
    """Start and end times of every clip except clip_id.

    All tracks by default; same_track restricts to the clip's own track.
    """
    track_id = timeline.get_clip(clip_id).track_id if same_track else None
    points = []
    for clip in timeline.clips:
        if clip.id == clip_id:
            continue
        if track_id is not None and clip.track_id != track_id:
            continue
        points.extend((clip.start, clip.end))
    return points


def snap_time(
    t: float, candidates: list[float], threshold: float = SNAP_THRESHOLD,
) -> float:
    """Return the candidate nearest t if within threshold, else t.

    Ties go to the earlier candidate in the list.
    """
    best = t
    best_dist = None
    for c in candidates:
        dist = abs(c - t)
        if dist <= threshold and (best_dist is None or dist < best_dist):
            best, best_dist = c, dist
    return best


# ── Proposals ────────────────────────────────────────────────────


def propose_move(
    timeline: Timeline,
    clip_id: str,
    new_start: float,
    duration: float | None = None,
    threshold: float = SNAP_THRESHOLD,
) -> ClipChange:
    """Snap then clamp a new start for a dragged clip. Span is preserved.

    duration defaults to the timeline's current duration; pass the same
    snapshot the compiler will use when the two must agree.
    """
    clip = timeline.get_clip(clip_id)
    span = clip.span
    if duration is None:
        duration = timeline.duration

    t = snap_time(new_start, snap_candidates(timeline, clip_id), threshold)
    upper = max(0.0, duration - span)
    start = min(max(t, 0.0), upper)
    return ClipChange(clip_id, start, start + span)


def propose_resize(
    timeline: Timeline,
    clip_id: str,
    side: str,
    t: float,
    threshold: float = SNAP_THRESHOLD,
) -> ClipChange:
    """Snap then clamp the moving edge of a resized clip."""
    if side not in RESIZE_SIDES:
        raise ValueError(f"Invalid resize side '{side}'. Valid: {sorted(RESIZE_SIDES)}")

    clip = timeline.get_clip(clip_id)
    t = snap_time(t, snap_candidates(timeline, clip_id), threshold)

    if side == "left":
        start = max(0.0, min(t, clip.end - MIN_CLIP_SPAN))
        # Only reachable for clips ending before MIN_CLIP_SPAN.
        end = max(clip.end, start + MIN_CLIP_SPAN)
        return ClipChange(clip_id, start, end)

    end = max(t, clip.start + MIN_CLIP_SPAN)
    return ClipChange(clip_id, clip.start, end)


# ── Edit session state machine ───────────────────────────────────


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    clip_id: str
    grab_offset: float          # pointer time minus clip start at pointer-down
    origin: tuple[float, float]


@dataclass(frozen=True)
class Resizing:
    clip_id: str
    side: str
    origin: tuple[float, float]


class EditSession:
    """One pointer gesture at a time against a Timeline."""

    def __init__(self, timeline: Timeline, threshold: float = SNAP_THRESHOLD):
        self.timeline = timeline
        self.threshold = threshold
        self.state = Idle()
        self._pending: float | None = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def pointer_down(self, clip_id: str, t: float, handle: str | None = None) -> None:
        """Start dragging (handle=None) or resizing (handle='left'/'right')."""
        if not isinstance(self.state, Idle):
            raise EditStateError(
                f"pointer_down while {type(self.state).__name__}; release first"
            )
        clip = self.timeline.get_clip(clip_id)
        origin = (clip.start, clip.end)
        if handle is None:
            self.state = Dragging(clip_id, t - clip.start, origin)
        elif handle in RESIZE_SIDES:
            self.state = Resizing(clip_id, handle, origin)
        else:
            raise ValueError(
                f"Invalid resize handle '{handle}'. Valid: {sorted(RESIZE_SIDES)}"
            )
        self._pending = None

    def pointer_move(self, t: float) -> None:
        """Record the latest pointer time. Ignored while Idle."""
        if isinstance(self.state, Idle):
            return
        self._pending = t

    def on_frame(self) -> ClipChange | None:
        """Apply the coalesced pointer position, if any. Call once per refresh."""
        if isinstance(self.state, Idle) or self._pending is None:
            return None
        t = self._pending
        self._pending = None
        change = self._propose(t)
        change.apply(self.timeline)
        return change

    def pointer_up(self, t: float | None = None) -> ClipChange | None:
        """Flush the final position and return to Idle."""
        if isinstance(self.state, Idle):
            raise EditStateError("pointer_up without a gesture in progress")
        if t is not None:
            self._pending = t
        try:
            return self.on_frame()
        finally:
            self.state = Idle()

    def cancel(self) -> None:
        """Abort the gesture and restore the clip's window from pointer-down."""
        if isinstance(self.state, Idle):
            return
        start, end = self.state.origin
        self.timeline.update_clip(self.state.clip_id, start=start, end=end)
        self.state = Idle()
        self._pending = None

    def _propose(self, t: float) -> ClipChange:
        state = self.state
        if isinstance(state, Dragging):
            return propose_move(
                self.timeline, state.clip_id, t - state.grab_offset,
                threshold=self.threshold,
            )
        return propose_resize(
            self.timeline, state.clip_id, state.side, t,
            threshold=self.threshold,
        )
