"""Sticker rendering — a QR raster wrapped in a gradient frame with a caption.

Layout of a sticker, outside in:

    +--------------------------------+  <- gradient border (border_width)
    | +----------------------------+ |
    | |  padding                   | |  <- white rounded panel
    | |      +----------------+    | |
    | |      |    QR raster   |    | |
    | |      +----------------+    | |
    | |         SCAN ME            | |  <- caption strip (caption_height)
    | +----------------------------+ |
    +--------------------------------+

The raw QR edge is ``width - 2 * (padding + border)``, never below
MIN_QR_CODE_SIZE: when a footprint is too small the sticker grows instead.
"""

from dataclasses import dataclass, replace

import numpy as np
from PIL import Image, ImageDraw

from qrprint.config import StickerConfig
from qrprint.contrast import parse_hex_color
from qrprint.fonts import shrink_to_fit
from qrprint.generator import MIN_QR_CODE_SIZE, generate_qr
from qrprint.logging import audit, get_logger, trace

log = get_logger("sticker")


@dataclass(frozen=True)
class StickerStyle:
    """Frame styling, passed explicitly to the renderer."""
    border_width: int = 4
    padding: int = 16
    caption: str = "SCAN ME"
    caption_height: int = 40
    corner_radius: int = 16
    colors: tuple[str, ...] = ("#00d4ff", "#a855f7", "#ec4899")

    @property
    def frame(self) -> int:
        """Pixels between the outer edge and the QR raster on each side."""
        return self.padding + self.border_width

    @classmethod
    def from_config(cls, cfg: StickerConfig) -> "StickerStyle":
        return cls(
            border_width=cfg.border_width,
            padding=cfg.padding,
            caption=cfg.caption,
            caption_height=cfg.caption_height,
            corner_radius=cfg.corner_radius,
            colors=tuple(cfg.colors),
        )


GREEN_BLUE = StickerStyle(colors=("#4ade80", "#22d3ee"))
BLUE = StickerStyle(colors=("#22d3ee", "#3b82f6"))
YELLOW_ORANGE = StickerStyle(colors=("#fbbf24", "#f97316"))
ORANGE_PINK = StickerStyle(colors=("#f97316", "#ec4899"))
PURPLE = StickerStyle(colors=("#00d4ff", "#a855f7", "#ec4899"))

STYLES = {
    "green-blue": GREEN_BLUE,
    "blue": BLUE,
    "yellow-orange": YELLOW_ORANGE,
    "orange-pink": ORANGE_PINK,
    "purple": PURPLE,
}


@dataclass(frozen=True)
class StickerSpec:
    """What to encode and how big the raw QR raster is."""
    payload: str
    qr_size: int = 260
    style: StickerStyle = PURPLE

    def __post_init__(self):
        if not self.payload:
            raise ValueError("sticker payload must not be empty")
        if self.qr_size < MIN_QR_CODE_SIZE:
            raise ValueError(f"qr_size {self.qr_size} is below the {MIN_QR_CODE_SIZE}px minimum")

    @property
    def outer_size(self) -> tuple[int, int]:
        edge = self.qr_size + 2 * self.style.frame
        return edge, edge + self.style.caption_height

    @classmethod
    def for_width(cls, payload: str, width: int, style: StickerStyle = PURPLE) -> "StickerSpec":
        return cls(payload=payload, qr_size=qr_size_for(width, style), style=style)

    def fitted(self, width: int, height: int) -> "StickerSpec":
        """Copy with the QR raster sized to fill a ``width`` x ``height`` footprint."""
        return replace(self, qr_size=qr_size_for(width, self.style, height))


def qr_size_for(width: int, style: StickerStyle, height: int | None = None) -> int:
    """Raw QR edge for a sticker footprint, floored at MIN_QR_CODE_SIZE."""
    size = width - 2 * style.frame
    if height is not None:
        size = min(size, height - 2 * style.frame - style.caption_height)
    return max(MIN_QR_CODE_SIZE, round(size))


def _gradient(width: int, height: int, colors: tuple[str, ...]) -> Image.Image:
    """Left-to-right linear gradient through evenly spaced colour stops."""
    stops = np.array([parse_hex_color(c) for c in colors], dtype=np.float64)
    if len(stops) == 1:
        row = np.repeat(stops, width, axis=0)
    else:
        positions = np.linspace(0.0, 1.0, len(stops))
        t = np.linspace(0.0, 1.0, width) if width > 1 else np.zeros(1)
        row = np.stack([np.interp(t, positions, stops[:, ch]) for ch in range(3)], axis=1)
    arr = np.broadcast_to(np.rint(row).astype(np.uint8), (height, width, 3))
    return Image.fromarray(np.ascontiguousarray(arr), "RGB")


@trace
def render_sticker(
    spec: StickerSpec,
    footprint: tuple[int, int] | None = None,
    ecc: str = "M",
    quiet_zone: int = 2,
) -> Image.Image:
    """Render a sticker as an RGBA image.

    Args:
        spec: Payload, raw QR size and frame style.
        footprint: Target (width, height). The frame fills it; when it is
            smaller than the sticker's natural size the sticker grows to
            fit the QR raster. Defaults to the natural size.
        ecc: QR error correction level.
        quiet_zone: QR quiet zone in modules.

    Raises:
        PayloadTooLarge: the payload cannot be encoded at ``spec.qr_size``.
    """
    style = spec.style
    natural_w, natural_h = spec.outer_size
    if footprint is None:
        width, height = natural_w, natural_h
    else:
        width, height = max(footprint[0], natural_w), max(footprint[1], natural_h)

    border = style.border_width
    radius = style.corner_radius

    img = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    # Gradient border: the whole rounded rectangle, later covered by the panel
    outer_mask = Image.new("L", (width, height), 0)
    ImageDraw.Draw(outer_mask).rounded_rectangle(
        [0, 0, width - 1, height - 1], radius=radius, fill=255,
    )
    gradient = _gradient(width, height, style.colors)
    img.paste(gradient, (0, 0), outer_mask)

    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle(
        [border, border, width - 1 - border, height - 1 - border],
        radius=max(0, radius - border), fill=(255, 255, 255, 255),
    )

    # QR raster, centred in the panel area above the caption strip
    qr = generate_qr(spec.payload, spec.qr_size, ecc=ecc, quiet_zone=quiet_zone)
    body_h = height - style.caption_height
    qr_x = (width - spec.qr_size) // 2
    qr_y = (body_h - spec.qr_size) // 2
    img.paste(qr, (qr_x, qr_y))

    if style.caption and style.caption_height > 0:
        _draw_caption(img, style, spec.qr_size, text_top=qr_y + spec.qr_size, bottom=height - border, gradient=gradient)

    audit("sticker.rendered", logger=log,
          payload=spec.payload[:80], qr_size=spec.qr_size,
          size=f"{width}x{height}", grown=footprint is not None and (width, height) != tuple(footprint))
    return img


def _draw_caption(img: Image.Image, style: StickerStyle, qr_size: int, text_top: int, bottom: int, gradient: Image.Image):
    """Fill the caption with the frame gradient, centred in the strip below the QR."""
    width = img.size[0]
    max_text_w = width - 2 * style.frame
    font = shrink_to_fit(style.caption, max(20, int(qr_size * 0.08)), max_text_w)

    strip_top = max(text_top, bottom - style.caption_height)
    center_y = (strip_top + bottom) // 2

    mask = Image.new("L", img.size, 0)
    ImageDraw.Draw(mask).text((width // 2, center_y), style.caption, font=font, fill=255, anchor="mm")
    img.paste(gradient, (0, 0), mask)
