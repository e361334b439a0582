"""Contrast selection — pick a legible foreground for a background colour."""

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

LUMINANCE_THRESHOLD = 0.5


def parse_hex_color(s: str) -> tuple[int, int, int]:
    """Parse a hex colour string (with or without '#') to an RGB tuple.

    Accepts 6-digit (``#1E40AF``) and 3-digit (``#fff``) forms.
    """
    h = s.strip().lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    if len(h) != 6:
        raise ValueError(f"Invalid hex colour: {s!r}")
    try:
        return tuple(int(h[i : i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        raise ValueError(f"Invalid hex colour: {s!r}") from None


def to_hex(rgb: tuple[int, int, int]) -> str:
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def luminance(color: str | tuple[int, int, int]) -> float:
    """Perceived luminance in [0, 1] using the 0.299/0.587/0.114 weights."""
    r, g, b = parse_hex_color(color) if isinstance(color, str) else color
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def is_light(color: str | tuple[int, int, int]) -> bool:
    """True when the colour is light enough to need dark text.

    The boundary (exactly 0.5) counts as dark, so it gets a light foreground.
    """
    return luminance(color) > LUMINANCE_THRESHOLD


def foreground_for(background: str | tuple[int, int, int]) -> tuple[int, int, int]:
    """Return BLACK on light backgrounds and WHITE on dark ones."""
    return BLACK if is_light(background) else WHITE
