"""Effect selection policies and intensity mappings.

Two policies decide which effects reach the filter graph:

  first    Legacy behavior. Keep effects whose kind is in
           ALLOWED_EFFECT_KINDS, order by start time, apply only the
           first one. Everything else is dropped without a trace.
  layered  Every allowed effect, in start order, each gated to its own
           window.

The two policies map soften intensity to blur differently (boxblur
radius 1..5 for first, gblur sigma 0..10 for layered); both mappings
are kept as separate functions.
"""

from .common import fmt_number, fmt_seconds
from .graph import Filter, make_filter
from .timeline import Effect


ALLOWED_EFFECT_KINDS = {"amplify", "fade", "soften"}

EFFECT_POLICIES = ("first", "layered")

FADE_WINDOW_MAX = 1.0     # seconds, per fade edge
AMPLIFY_MAX_GAIN = 0.5    # intensity 100 -> zoom 1.5


# ── Intensity mappings ───────────────────────────────────────────


def amplify_scale(intensity: float) -> float:
    """Zoom factor in [1.0, 1.5]."""
    return 1.0 + (intensity / 100) * AMPLIFY_MAX_GAIN


def fade_window(start: float, end: float) -> float:
    """Fade-in/out length: half the window, capped at FADE_WINDOW_MAX."""
    return min(FADE_WINDOW_MAX, (end - start) / 2)


def soften_radius(intensity: float) -> int:
    """boxblur radius for the first-effect path, in [1, 5]."""
    return max(1, round(intensity / 100 * 5))


def soften_sigma(intensity: float) -> float:
    """gblur sigma for the layered path, in [0, 10]."""
    return intensity / 100 * 10


# ── Selection ────────────────────────────────────────────────────


def select_effects(effects: list[Effect], policy: str = "first") -> list[Effect]:
    """Filter and order effects according to policy.

    effects must already carry their linked clip windows.
    """
    if policy not in EFFECT_POLICIES:
        raise ValueError(
            f"Unknown effect policy '{policy}'. Valid: {list(EFFECT_POLICIES)}"
        )
    allowed = sorted(
        (e for e in effects if e.kind in ALLOWED_EFFECT_KINDS),
        key=lambda e: e.start,
    )
    if policy == "first":
        return allowed[:1]
    return allowed


# ── Filters ──────────────────────────────────────────────────────


def _between(var: str, effect: Effect) -> str:
    return f"between({var},{fmt_seconds(effect.start)},{fmt_seconds(effect.end)})"


def effect_filters(
    effect: Effect,
    policy: str,
    resolution: tuple[int, int],
    fps: int,
) -> list[Filter]:
    """Filters implementing one effect on the canonical-size stream."""
    w, h = resolution

    if effect.kind == "amplify":
        z = fmt_number(amplify_scale(effect.intensity))
        return [make_filter(
            "zoompan",
            z=f"'if({_between('in_time', effect)},{z},1)'",
            x="'iw/2-(iw/zoom/2)'",
            y="'ih/2-(ih/zoom/2)'",
            d=1,
            s=f"{w}x{h}",
            fps=fps,
        )]

    if effect.kind == "fade":
        window = fade_window(effect.start, effect.end)
        return [
            make_filter(
                "fade", t="in",
                st=fmt_seconds(effect.start), d=fmt_seconds(window),
            ),
            make_filter(
                "fade", t="out",
                st=fmt_seconds(effect.end - window), d=fmt_seconds(window),
            ),
        ]

    if effect.kind == "soften":
        if policy == "first":
            r = soften_radius(effect.intensity)
            return [make_filter("boxblur", r, r, enable=f"'{_between('t', effect)}'")]
        sigma = fmt_number(soften_sigma(effect.intensity))
        return [make_filter("gblur", sigma=sigma, enable=f"'{_between('t', effect)}'")]

    raise ValueError(f"Effect kind '{effect.kind}' has no filter")
