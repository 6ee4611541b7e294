"""Timeline model — tracks, clips, text overlays, effects.

The Timeline owns every Clip, TextOverlay and Effect. The edit engine and
the compiler read from it; edits come back as explicit mutations
(add/remove/update), after which callers re-validate.

Duration is never stored: `Timeline.duration` recomputes it from the
current clip set on every read (see reconcile_duration).
"""

import math
from dataclasses import dataclass, replace

from .errors import ValidationError


# ── Constants ────────────────────────────────────────────────────

TRACK_KINDS = ("video", "audio", "image", "text", "effect")

SOURCE_KINDS = {"video", "audio", "image"}   # clips that need a source_ref
VISUAL_KINDS = {"video", "image"}

EFFECT_KINDS = {"amplify", "fade", "soften", "sparkle"}
EFFECT_ALIASES = {"zoom": "amplify", "blur": "soften"}

TEXT_ALIGNS = {"left", "center", "right"}
TEXT_ANIMATIONS = {"fade"}

MIN_TIMELINE_DURATION = 5.0
DEFAULT_TIMELINE_DURATION = 150.0   # span shown for an empty timeline


# ── Data types ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Track:
    id: str
    kind: str


@dataclass
class Clip:
    """A time-bounded placement on a track.

    Exactly one of source_ref / text_ref / effect_ref is meaningful,
    depending on kind (which always equals the owning track's kind).
    """
    id: str
    track_id: str
    kind: str
    start: float
    end: float
    source_ref: str | None = None
    text_ref: str | None = None
    effect_ref: str | None = None

    @property
    def span(self) -> float:
        return self.end - self.start


@dataclass
class TextOverlay:
    id: str
    content: str
    x: float = 100
    y: float = 100
    font_size: int = 48
    color: str = "white"
    bold: bool = False
    italic: bool = False
    underline: bool = False
    align: str = "left"
    animation: str | None = None


@dataclass
class Effect:
    """Visual effect. start/end mirror the linked effect clip once linked."""
    id: str
    kind: str
    intensity: float = 50
    start: float = 0.0
    end: float = 0.0


# ── Duration reconciliation ──────────────────────────────────────


def round_tenth(value: float) -> float:
    """Round half-up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def reconcile_duration(clips) -> float:
    """Global duration for a clip set.

    max(5, furthest clip end rounded to 0.1); an empty clip set gets
    DEFAULT_TIMELINE_DURATION.
    """
    ends = [c.end for c in clips]
    if not ends:
        return DEFAULT_TIMELINE_DURATION
    return max(MIN_TIMELINE_DURATION, round_tenth(max(ends)))


def normalize_effect_kind(kind: str) -> str:
    """Map editor aliases (zoom, blur) to effect kinds; reject unknown ones."""
    kind = EFFECT_ALIASES.get(kind, kind)
    if kind not in EFFECT_KINDS:
        raise ValidationError(
            f"Unknown effect kind '{kind}'. "
            f"Valid: {sorted(EFFECT_KINDS | set(EFFECT_ALIASES))}"
        )
    return kind


# ── Timeline ─────────────────────────────────────────────────────


class Timeline:
    """Aggregate of tracks, clips, text overlays and effects.

    Tracks are fixed at construction: one per kind in TRACK_KINDS, with
    the kind as its id. Clips keep insertion order; clips_by_track() sorts
    by start time stably, so ties stay in insertion order.
    """

    def __init__(self):
        self.tracks = {kind: Track(kind, kind) for kind in TRACK_KINDS}
        self._clips: list[Clip] = []
        self._texts: list[TextOverlay] = []
        self._effects: list[Effect] = []

    # ── Queries ──────────────────────────────────────────────────

    @property
    def clips(self) -> list[Clip]:
        return list(self._clips)

    @property
    def texts(self) -> list[TextOverlay]:
        return list(self._texts)

    @property
    def effects(self) -> list[Effect]:
        return list(self._effects)

    @property
    def duration(self) -> float:
        return reconcile_duration(self._clips)

    def get_clip(self, clip_id: str) -> Clip:
        for clip in self._clips:
            if clip.id == clip_id:
                return clip
        raise KeyError(f"No clip with id '{clip_id}'")

    def get_text(self, text_id: str) -> TextOverlay:
        for text in self._texts:
            if text.id == text_id:
                return text
        raise KeyError(f"No text overlay with id '{text_id}'")

    def get_effect(self, effect_id: str) -> Effect:
        for effect in self._effects:
            if effect.id == effect_id:
                return effect
        raise KeyError(f"No effect with id '{effect_id}'")

    def clips_by_track(self, track_id: str) -> list[Clip]:
        return sorted(
            (c for c in self._clips if c.track_id == track_id),
            key=lambda c: c.start,
        )

    def clips_of_kind(self, *kinds: str) -> list[Clip]:
        """Clips whose kind is in kinds, sorted by start (stable)."""
        return sorted(
            (c for c in self._clips if c.kind in kinds),
            key=lambda c: c.start,
        )

    def clip_for_text(self, text_id: str) -> Clip | None:
        for clip in self._clips:
            if clip.kind == "text" and clip.text_ref == text_id:
                return clip
        return None

    def clip_for_effect(self, effect_id: str) -> Clip | None:
        for clip in self._clips:
            if clip.kind == "effect" and clip.effect_ref == effect_id:
                return clip
        return None

    # ── Clip mutations ───────────────────────────────────────────

    def add_clip(self, clip: Clip) -> Clip:
        if any(c.id == clip.id for c in self._clips):
            raise ValidationError(f"Duplicate clip id: '{clip.id}'")
        self._check_clip(clip)
        self._clips.append(clip)
        self._sync_effect(clip)
        return clip

    def update_clip(self, clip_id: str, **changes) -> Clip:
        """Replace fields on a clip, keeping its insertion position."""
        old = self.get_clip(clip_id)
        if "id" in changes and changes["id"] != clip_id:
            raise ValidationError("Clip id cannot be changed")
        new = replace(old, **changes)
        self._check_clip(new)
        self._clips[self._clips.index(old)] = new
        self._sync_effect(new)
        return new

    def remove_clip(self, clip_id: str) -> Clip:
        clip = self.get_clip(clip_id)
        self._clips.remove(clip)
        return clip

    # ── Text overlay mutations ───────────────────────────────────

    def add_text(self, text: TextOverlay) -> TextOverlay:
        if any(t.id == text.id for t in self._texts):
            raise ValidationError(f"Duplicate text overlay id: '{text.id}'")
        _check_text(text)
        self._texts.append(text)
        return text

    def update_text(self, text_id: str, **changes) -> TextOverlay:
        old = self.get_text(text_id)
        new = replace(old, **changes)
        _check_text(new)
        self._texts[self._texts.index(old)] = new
        return new

    def remove_text(self, text_id: str) -> TextOverlay:
        """Remove an overlay and the text clip that places it."""
        text = self.get_text(text_id)
        self._texts.remove(text)
        self._clips = [
            c for c in self._clips
            if not (c.kind == "text" and c.text_ref == text_id)
        ]
        return text

    # ── Effect mutations ─────────────────────────────────────────

    def add_effect(self, effect: Effect) -> Effect:
        if any(e.id == effect.id for e in self._effects):
            raise ValidationError(f"Duplicate effect id: '{effect.id}'")
        effect = replace(effect, kind=normalize_effect_kind(effect.kind))
        _check_intensity(effect)
        self._effects.append(effect)
        linked = self.clip_for_effect(effect.id)
        if linked is not None:
            self._sync_effect(linked)
        return self.get_effect(effect.id)

    def update_effect(self, effect_id: str, **changes) -> Effect:
        """Update kind/intensity. A linked clip's window always wins."""
        old = self.get_effect(effect_id)
        new = replace(old, **changes)
        new = replace(new, kind=normalize_effect_kind(new.kind))
        _check_intensity(new)
        self._effects[self._effects.index(old)] = new
        linked = self.clip_for_effect(effect_id)
        if linked is not None:
            self._sync_effect(linked)
        return self.get_effect(effect_id)

    def remove_effect(self, effect_id: str) -> Effect:
        """Remove an effect and the effect clip that places it."""
        effect = self.get_effect(effect_id)
        self._effects.remove(effect)
        self._clips = [
            c for c in self._clips
            if not (c.kind == "effect" and c.effect_ref == effect_id)
        ]
        return effect

    # ── Validation ───────────────────────────────────────────────

    def validate(self) -> None:
        """Re-check cross-object invariants after a batch of mutations.

        Checks spans, source refs and that text/effect refs resolve.
        Overlapping clips on one track are allowed.
        """
        text_ids = {t.id for t in self._texts}
        effect_ids = {e.id for e in self._effects}
        for clip in self._clips:
            self._check_clip(clip)
            if clip.kind == "text" and clip.text_ref not in text_ids:
                raise ValidationError(
                    f"Clip '{clip.id}': unknown text overlay '{clip.text_ref}'"
                )
            if clip.kind == "effect" and clip.effect_ref not in effect_ids:
                raise ValidationError(
                    f"Clip '{clip.id}': unknown effect '{clip.effect_ref}'"
                )

    def _check_clip(self, clip: Clip) -> None:
        track = self.tracks.get(clip.track_id)
        if track is None:
            raise ValidationError(
                f"Clip '{clip.id}': unknown track '{clip.track_id}'. "
                f"Valid: {sorted(self.tracks)}"
            )
        if clip.kind != track.kind:
            raise ValidationError(
                f"Clip '{clip.id}': kind '{clip.kind}' does not match "
                f"track '{track.id}' ({track.kind})"
            )
        if clip.start < 0:
            raise ValidationError(
                f"Clip '{clip.id}': start must be >= 0, got {clip.start}"
            )
        if clip.end <= clip.start:
            raise ValidationError(
                f"Clip '{clip.id}': start ({clip.start}) must be < end ({clip.end})"
            )
        if clip.kind in SOURCE_KINDS and not clip.source_ref:
            raise ValidationError(f"Clip '{clip.id}': {clip.kind} clip needs a source")
        if clip.kind == "text" and not clip.text_ref:
            raise ValidationError(f"Clip '{clip.id}': text clip needs a text overlay")
        if clip.kind == "effect" and not clip.effect_ref:
            raise ValidationError(f"Clip '{clip.id}': effect clip needs an effect")

    def _sync_effect(self, clip: Clip) -> None:
        """Copy an effect clip's window onto the effect it references."""
        if clip.kind != "effect":
            return
        for i, effect in enumerate(self._effects):
            if effect.id == clip.effect_ref:
                self._effects[i] = replace(effect, start=clip.start, end=clip.end)


def _check_text(text: TextOverlay) -> None:
    if text.align not in TEXT_ALIGNS:
        raise ValidationError(
            f"Text '{text.id}': invalid align '{text.align}'. "
            f"Valid: {sorted(TEXT_ALIGNS)}"
        )
    if text.animation is not None and text.animation not in TEXT_ANIMATIONS:
        raise ValidationError(
            f"Text '{text.id}': invalid animation '{text.animation}'. "
            f"Valid: {sorted(TEXT_ANIMATIONS)}"
        )
    if text.font_size <= 0:
        raise ValidationError(
            f"Text '{text.id}': font_size must be positive, got {text.font_size}"
        )


def _check_intensity(effect: Effect) -> None:
    if not 0 <= effect.intensity <= 100:
        raise ValidationError(
            f"Effect '{effect.id}': intensity must be in [0, 100], "
            f"got {effect.intensity}"
        )
