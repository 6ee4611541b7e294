"""cutflow.common — shared helpers for manifests and filter rendering.

Contains: color parsing, path variable resolution, font lookup for
drawtext, and number formatting for filter arguments.
"""

import re
from pathlib import Path


# ── Font paths ─────────────────────────────────────────────────────
# drawtext needs a font file when ffmpeg is built without fontconfig.
# Inter preferred, DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]

NAMED_COLORS = {
    "white": (255, 255, 255),
    "black": (0, 0, 0),
}


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB', '0xRRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.strip()
    if hex_str.lower().startswith("0x"):
        hex_str = hex_str[2:]
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6 or not all(c in "0123456789abcdefABCDEF" for c in hex_str):
        raise ValueError(f"Invalid hex color: '{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


def ffmpeg_color(value: str) -> str:
    """Render a color as ffmpeg's '0xRRGGBB'.

    Accepts 'white'/'black' and any form parse_hex_color understands.
    """
    key = value.strip().lower()
    if key in NAMED_COLORS:
        r, g, b = NAMED_COLORS[key]
    else:
        r, g, b = parse_hex_color(value)
    return f"0x{r:02X}{g:02X}{b:02X}"


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font lookup ────────────────────────────────────────────────────

def find_font_file() -> str | None:
    """Return the first installed font from FONT_PATHS, or None.

    None lets ffmpeg fall back to fontconfig's default face.
    """
    for font_path in FONT_PATHS:
        if font_path.exists():
            return str(font_path)
    return None


# ── Number formatting ──────────────────────────────────────────────

def fmt_seconds(value: float) -> str:
    """Format seconds for filter arguments and -t (millisecond precision)."""
    return f"{value:.3f}"


def fmt_number(value: float) -> str:
    """Compact number: '1.25', '3', '0.5'. Used for scale factors and radii."""
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text or "0"
