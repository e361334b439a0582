"""Font presets and text fitting.

Cards use a small fixed ladder of sizes rather than continuous scaling.
A nominal size picks the preset; there is no other font fallback.
"""

from PIL import ImageFont

from qrprint.errors import RenderFailure

# Largest first: (threshold, preset px)
FONT_LADDER = ((48, 64), (24, 32), (12, 16))
SMALLEST_PRESET = 14

ELLIPSIS = "..."


def preset_size(nominal: int) -> int:
    """Map a nominal size onto the preset ladder (>=48 → 64, >=24 → 32, >=12 → 16, else 14)."""
    for threshold, preset in FONT_LADDER:
        if nominal >= threshold:
            return preset
    return SMALLEST_PRESET


def load_font(size: int, font_path: str | None = None) -> ImageFont.FreeTypeFont:
    """Load a font at an exact pixel size.

    Uses the TrueType file at *font_path* when given, otherwise Pillow's
    bundled default face.

    Raises:
        RenderFailure: the font file is missing or unreadable.
    """
    try:
        if font_path:
            return ImageFont.truetype(font_path, size)
        return ImageFont.load_default(size=size)
    except OSError as exc:
        raise RenderFailure(f"font {font_path or '<default>'} at {size}px unavailable: {exc}") from exc


def load_preset_font(nominal: int, font_path: str | None = None) -> ImageFont.FreeTypeFont:
    return load_font(preset_size(nominal), font_path)


def text_width(font, text: str) -> float:
    return font.getlength(text)


def fit_text(font, text: str, max_width: float) -> str:
    """Truncate *text* with an ellipsis so it renders within *max_width*."""
    if text_width(font, text) <= max_width:
        return text
    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if text_width(font, text[:mid].rstrip() + ELLIPSIS) <= max_width:
            lo = mid
        else:
            hi = mid - 1
    return text[:lo].rstrip() + ELLIPSIS if lo else ""


def shrink_to_fit(text: str, size: int, max_width: float, font_path: str | None = None, min_size: int = 8):
    """Largest font no bigger than *size* that fits *text* in *max_width*."""
    font = load_font(size, font_path)
    while size > min_size and text_width(font, text) > max_width:
        size -= 1
        font = load_font(size, font_path)
    return font
