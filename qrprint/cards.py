"""Printable business cards — five front layouts and one shared back.

Cards render at 1050x600 px (3.5x2 in at 300 DPI) with a 60 px margin.
Every text colour comes from the contrast selector for the surface it sits
on, and every font from the preset ladder.

Implements:
    classic   accent bar left, photo + name/title/company, divider, contacts
    centered  top strip, everything centred, divider, contact line
    modern    large name, full-width accent bar with title/company, photo right
    split     primary-coloured left column, company + contacts on the right
    minimal   hairlines top and bottom, name, subtitle, single contact line
    back      QR to the public card URL, caption, instruction, URL text
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
import requests
from PIL import Image, ImageDraw, ImageOps

from qrprint.composite import encode_png
from qrprint.config import Settings
from qrprint.contrast import foreground_for, parse_hex_color
from qrprint.fetch import decode_image, read_source
from qrprint.fonts import fit_text, load_preset_font
from qrprint.generator import generate_qr
from qrprint.logging import audit, get_logger, trace

log = get_logger("cards")

CARD_WIDTH = 1050
CARD_HEIGHT = 600
PADDING = 60

BACK_QR_SIZE = 240
SCAN_INSTRUCTION = "Scan to view my digital card"


class LayoutKind(Enum):
    CLASSIC = "classic"
    CENTERED = "centered"
    MODERN = "modern"
    SPLIT = "split"
    MINIMAL = "minimal"
    BACK = "back"

    @property
    def is_front(self) -> bool:
        return self is not LayoutKind.BACK

    @classmethod
    def parse(cls, value: str) -> LayoutKind:
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown layout {value!r} (choose from {choices})") from None


FRONT_LAYOUTS = tuple(k for k in LayoutKind if k.is_front)

LAYOUT_INFO = {
    LayoutKind.CLASSIC: ("Classic", "Left-aligned name, contact info below a divider"),
    LayoutKind.CENTERED: ("Centered", "Everything centered, clean hierarchy"),
    LayoutKind.MODERN: ("Modern", "Large name at top, accent bar, details below"),
    LayoutKind.SPLIT: ("Split", "Two-column with colored divider"),
    LayoutKind.MINIMAL: ("Minimal", "Maximum whitespace, subtle typography"),
}


def available_layouts() -> list[tuple[str, str, str]]:
    """``(id, name, description)`` for each front layout."""
    return [(k.value, *LAYOUT_INFO[k]) for k in FRONT_LAYOUTS]


# ---------------------------------------------------------------------------
# Card data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Profile:
    name: str = ""
    title: str = ""
    company: str = ""
    photo: bytes | str | None = None  # raw bytes, local path or URL


@dataclass(frozen=True)
class Contact:
    phone: str | None = None
    email: str | None = None
    website: str | None = None

    def items(self, labelled: bool = False) -> list[str]:
        """Present fields only, always in phone, email, website order."""
        fields = (("Phone", self.phone), ("Email", self.email), ("Web", self.website))
        return [f"{label}: {value}" if labelled else value for label, value in fields if value]


@dataclass(frozen=True)
class CardContent:
    profile: Profile = field(default_factory=Profile)
    contact: Contact = field(default_factory=Contact)


@dataclass(frozen=True)
class ColorPalette:
    primary: str = "#1E40AF"
    background: str = "#FFFFFF"
    text: str = "#1F2937"
    secondary: str | None = None
    accent: str | None = None

    def __post_init__(self):
        for name in ("primary", "background", "text", "secondary", "accent"):
            value = getattr(self, name)
            if value is not None:
                parse_hex_color(value)

    def rgb(self, name: str) -> tuple[int, int, int]:
        return parse_hex_color(getattr(self, name))


# ---------------------------------------------------------------------------
# Drawing helpers
# ---------------------------------------------------------------------------

class _Canvas:
    """One exclusively-owned card raster plus text/shape helpers."""

    def __init__(self, background: str, font_path: str | None = None):
        self.image = Image.new("RGB", (CARD_WIDTH, CARD_HEIGHT), parse_hex_color(background))
        self.draw = ImageDraw.Draw(self.image)
        self.font_path = font_path

    def rect(self, x: int, y: int, w: int, h: int, color: str):
        x1 = min(x + w, CARD_WIDTH) - 1
        y1 = min(y + h, CARD_HEIGHT) - 1
        if x1 >= x and y1 >= y:
            self.draw.rectangle([x, y, x1, y1], fill=parse_hex_color(color))

    def text(self, x: int, y: int, text: str, nominal: int, color, width: int, align: str = "left"):
        """Draw one line of text into a box ``width`` wide starting at (x, y).

        Overlong text is truncated with an ellipsis; nothing wraps.
        """
        if not text:
            return
        font = load_preset_font(nominal, self.font_path)
        line = fit_text(font, text, width)
        if align == "center":
            self.draw.text((x + width // 2, y), line, font=font, fill=color, anchor="ma")
        else:
            self.draw.text((x, y), line, font=font, fill=color, anchor="la")

    def stack(self, x: int, y: int, lines: list[tuple[str, int, int]], color, width: int, align: str = "left") -> int:
        """Draw ``(text, nominal, advance)`` lines top-down, skipping empty ones.

        Returns the y below the last drawn line.
        """
        for text, nominal, advance in lines:
            if not text:
                continue
            self.text(x, y, text, nominal, color, width, align)
            y += advance
        return y

    def photo(self, photo: Image.Image | None, x: int, y: int):
        if photo is not None:
            self.image.paste(photo, (x, y), photo)


def circular_photo(photo: Image.Image, size: int) -> Image.Image:
    """Resize-to-cover a ``size`` square, then mask everything outside the inscribed circle."""
    square = ImageOps.fit(photo.convert("RGBA"), (size, size), Image.LANCZOS, centering=(0.5, 0.5))

    center = size / 2
    yy, xx = np.mgrid[0:size, 0:size]
    inside = np.hypot(xx + 0.5 - center, yy + 0.5 - center) <= center
    alpha = np.asarray(square.getchannel("A"), dtype=np.uint8) * inside
    square.putalpha(Image.fromarray(alpha.astype(np.uint8), "L"))
    return square


def _crop(photo: Image.Image | None, size: int) -> Image.Image | None:
    return circular_photo(photo, size) if photo is not None else None


# ---------------------------------------------------------------------------
# Front layouts
# ---------------------------------------------------------------------------

def classic_front(content: CardContent, palette: ColorPalette, photo: Image.Image | None = None,
                  font_path: str | None = None) -> Image.Image:
    c = _Canvas(palette.background, font_path)
    fg = foreground_for(palette.background)
    p = content.profile

    c.rect(0, 0, 8, CARD_HEIGHT, palette.primary)

    avatar = _crop(photo, 100)
    c.photo(avatar, PADDING + 20, PADDING)

    name_x = PADDING + 140 if avatar is not None else PADDING + 20
    c.stack(name_x, PADDING, [
        (p.name, 48, 70),
        (p.title, 24, 40),
        (p.company, 12, 30),
    ], fg, CARD_WIDTH - name_x - PADDING)

    c.rect(PADDING + 20, CARD_HEIGHT - 200, CARD_WIDTH - 2 * PADDING - 40, 2, palette.primary)

    c.stack(PADDING + 20, CARD_HEIGHT - 180,
            [(item, 12, 35) for item in content.contact.items(labelled=True)],
            fg, CARD_WIDTH - 2 * PADDING)
    return c.image


def centered_front(content: CardContent, palette: ColorPalette, photo: Image.Image | None = None,
                   font_path: str | None = None) -> Image.Image:
    c = _Canvas(palette.background, font_path)
    fg = foreground_for(palette.background)
    p = content.profile

    c.rect(0, 0, CARD_WIDTH, 6, palette.primary)

    avatar = _crop(photo, 100)
    c.photo(avatar, (CARD_WIDTH - 100) // 2, 40)

    name_y = 160 if avatar is not None else 80
    c.stack(0, name_y, [
        (p.name, 48, 70),
        (p.title, 24, 40),
        (p.company, 12, 30),
    ], fg, CARD_WIDTH, align="center")

    c.rect(CARD_WIDTH // 4, CARD_HEIGHT - 150, CARD_WIDTH // 2, 2, palette.primary)

    contact = content.contact
    primary_line = "  |  ".join(v for v in (contact.phone, contact.email) if v)
    c.stack(PADDING, CARD_HEIGHT - 130, [
        (primary_line, 12, 40),
        (contact.website or "", 12, 40),
    ], fg, CARD_WIDTH - 2 * PADDING, align="center")
    return c.image


def modern_front(content: CardContent, palette: ColorPalette, photo: Image.Image | None = None,
                 font_path: str | None = None) -> Image.Image:
    c = _Canvas(palette.background, font_path)
    fg = foreground_for(palette.background)
    bar_fg = foreground_for(palette.primary)
    p = content.profile

    c.text(PADDING, PADDING, p.name, 48, fg, CARD_WIDTH - 2 * PADDING)

    bar_y, bar_h = 200, 60
    c.rect(0, bar_y, CARD_WIDTH, bar_h, palette.primary)
    headline = "  —  ".join(v for v in (p.title, p.company) if v)
    c.text(PADDING, bar_y + 14, headline, 24, bar_fg, CARD_WIDTH - 2 * PADDING)

    avatar = _crop(photo, 110)
    c.photo(avatar, CARD_WIDTH - PADDING - 110, bar_y + bar_h + 30)

    # Contacts may run under the photo slot when there is no photo
    contact_w = CARD_WIDTH - 2 * PADDING - (140 if avatar is not None else 0)
    c.stack(PADDING, bar_y + bar_h + 40,
            [(item, 12, 35) for item in content.contact.items()],
            fg, contact_w)
    return c.image


def split_front(content: CardContent, palette: ColorPalette, photo: Image.Image | None = None,
                font_path: str | None = None) -> Image.Image:
    c = _Canvas(palette.background, font_path)
    fg = foreground_for(palette.background)
    left_fg = foreground_for(palette.primary)
    p = content.profile

    left_w = int(CARD_WIDTH * 0.38)
    c.rect(0, 0, left_w, CARD_HEIGHT, palette.primary)

    avatar = _crop(photo, 100)
    c.photo(avatar, (left_w - 100) // 2, 50)

    c.stack(20, 170 if avatar is not None else 80, [
        (p.name, 24, 60),
        (p.title, 12, 30),
    ], left_fg, left_w - 40, align="center")

    right_x = left_w + 40
    right_w = CARD_WIDTH - left_w - 60
    c.text(right_x, PADDING, p.company, 24, fg, right_w)
    c.rect(right_x, PADDING + 50, 80, 3, palette.primary)

    c.stack(right_x, PADDING + 80,
            [(item, 12, 40) for item in content.contact.items(labelled=True)],
            fg, right_w)
    return c.image


def minimal_front(content: CardContent, palette: ColorPalette, photo: Image.Image | None = None,
                  font_path: str | None = None) -> Image.Image:
    # No photo slot: whitespace is the point of this layout
    c = _Canvas(palette.background, font_path)
    fg = foreground_for(palette.background)
    p = content.profile
    inner_w = CARD_WIDTH - 2 * PADDING

    c.rect(PADDING, PADDING, inner_w, 2, palette.primary)
    c.text(PADDING, PADDING + 30, p.name, 48, fg, inner_w)

    subtitle = " — ".join(v for v in (p.title, p.company) if v)
    c.text(PADDING, PADDING + 100, subtitle, 12, fg, inner_w)

    c.rect(PADDING, CARD_HEIGHT - PADDING - 80, inner_w, 1, palette.primary)
    c.text(PADDING, CARD_HEIGHT - PADDING - 60, "   ".join(content.contact.items()), 12, fg, inner_w)
    return c.image


# ---------------------------------------------------------------------------
# Back layout
# ---------------------------------------------------------------------------

def back_side(content: CardContent, palette: ColorPalette, public_url: str,
              font_path: str | None = None, qr_size: int = BACK_QR_SIZE, ecc: str = "M") -> Image.Image:
    """QR to *public_url*, company-or-name caption, instruction and URL text."""
    c = _Canvas(palette.background, font_path)
    fg = foreground_for(palette.background)
    p = content.profile

    c.rect(0, 0, CARD_WIDTH, 8, palette.primary)

    qr = generate_qr(public_url, qr_size, ecc=ecc, quiet_zone=1)
    qr_y = 80
    c.image.paste(qr, ((CARD_WIDTH - qr_size) // 2, qr_y))

    caption_y = qr_y + qr_size + 30
    c.text(PADDING, caption_y, p.company or p.name, 24, fg, CARD_WIDTH - 2 * PADDING, align="center")
    c.text(PADDING, caption_y + 50, SCAN_INSTRUCTION, 12, fg, CARD_WIDTH - 2 * PADDING, align="center")
    c.text(PADDING, CARD_HEIGHT - 60, public_url, 12, fg, CARD_WIDTH - 2 * PADDING, align="center")

    c.rect(0, CARD_HEIGHT - 8, CARD_WIDTH, 8, palette.primary)
    return c.image


FRONT_RENDERERS = {
    LayoutKind.CLASSIC: classic_front,
    LayoutKind.CENTERED: centered_front,
    LayoutKind.MODERN: modern_front,
    LayoutKind.SPLIT: split_front,
    LayoutKind.MINIMAL: minimal_front,
}


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def load_photo(
    source: bytes | str | None,
    settings: Settings | None = None,
    session: requests.Session | None = None,
    cancel: threading.Event | None = None,
) -> Image.Image | None:
    """Fetch and decode a profile photo; a failed fetch aborts the render."""
    if not source:
        return None
    cfg = (settings or Settings()).fetch
    data = read_source(source, cfg=cfg, session=session, cancel=cancel)
    return decode_image(data, label="profile photo")


@trace
def render_side(
    kind: LayoutKind,
    content: CardContent,
    palette: ColorPalette,
    photo: Image.Image | None = None,
    public_url: str | None = None,
    settings: Settings | None = None,
) -> Image.Image:
    """Render one side of a card to an RGB image, with all assets already in memory."""
    settings = settings or Settings()
    font_path = settings.card.font_path
    if kind is LayoutKind.BACK:
        if not public_url:
            raise ValueError("the back side needs the card's public URL")
        return back_side(content, palette, public_url, font_path=font_path,
                         qr_size=settings.card.qr_size, ecc=settings.qr.ecc)
    return FRONT_RENDERERS[kind](content, palette, photo=photo, font_path=font_path)


@trace
def render_card(
    kind: LayoutKind,
    content: CardContent,
    palette: ColorPalette,
    side: str = "front",
    public_url: str | None = None,
    settings: Settings | None = None,
    session: requests.Session | None = None,
    cancel: threading.Event | None = None,
) -> bytes:
    """Render one side of a card as PNG bytes.

    *side* is ``"front"`` (the layout given by *kind*) or ``"back"``; passing
    ``LayoutKind.BACK`` as *kind* also selects the back.

    Raises:
        AssetUnavailable: the profile photo could not be fetched or decoded.
        PayloadTooLarge: the public URL does not fit the back QR.
        RenderFailure: a font is missing or the PNG could not be encoded.
    """
    if side not in ("front", "back"):
        raise ValueError(f"side must be 'front' or 'back', got {side!r}")
    if side == "back":
        kind = LayoutKind.BACK

    settings = settings or Settings()
    photo = None
    if kind.is_front:
        photo = load_photo(content.profile.photo, settings=settings, session=session, cancel=cancel)
    img = render_side(kind, content, palette, photo=photo, public_url=public_url, settings=settings)
    png = encode_png(img)
    audit("card.rendered", logger=log, layout=kind.value,
          name=content.profile.name[:80], photo=photo is not None, png_bytes=len(png))
    return png


def render_card_pair(
    kind: LayoutKind,
    content: CardContent,
    palette: ColorPalette,
    public_url: str,
    settings: Settings | None = None,
    session: requests.Session | None = None,
    cancel: threading.Event | None = None,
) -> tuple[bytes, bytes]:
    """Front (in the chosen layout) and back as a pair of PNGs."""
    if not kind.is_front:
        raise ValueError("render_card_pair needs a front layout")
    front = render_card(kind, content, palette, settings=settings, session=session, cancel=cancel)
    back = render_card(kind, content, palette, side="back", public_url=public_url, settings=settings)
    return front, back
