"""Composite assembly — merge a design image and a QR sticker into one PNG.

The whole operation is a pure function of (design bytes, native region,
sticker spec): identical inputs give byte-identical PNG output.
"""

from __future__ import annotations

import io
import re
import threading
from dataclasses import dataclass
from pathlib import Path

import requests
from PIL import Image

from qrprint.config import Settings
from qrprint.errors import RegionInvalid, RenderFailure, Stage
from qrprint.fetch import decode_image, read_source
from qrprint.logging import audit, get_logger, trace
from qrprint.mapper import Region, ScaledRegion, to_native
from qrprint.sticker import StickerSpec, StickerStyle, render_sticker

log = get_logger("composite")

PNG_COMPRESS_LEVEL = 6


@dataclass(frozen=True)
class DesignImage:
    """An uploaded design, immutable once loaded."""
    data: bytes
    width: int
    height: int
    has_alpha: bool = False

    @classmethod
    def from_bytes(cls, data: bytes) -> DesignImage:
        img = decode_image(data, label="design image")
        return cls(
            data=bytes(data),
            width=img.size[0],
            height=img.size[1],
            has_alpha=img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info,
        )

    @classmethod
    def load(
        cls,
        source: bytes | str | Path,
        settings: Settings | None = None,
        session: requests.Session | None = None,
        cancel: threading.Event | None = None,
    ) -> DesignImage:
        """Load from raw bytes, a local path or an http(s) URL."""
        cfg = (settings or Settings()).fetch
        return cls.from_bytes(read_source(source, cfg=cfg, session=session, cancel=cancel))

    def image(self) -> Image.Image:
        """A fresh RGBA copy of the pixels to draw on."""
        return decode_image(self.data, label="design image").convert("RGBA")


@dataclass(frozen=True)
class CompositeResult:
    png: bytes
    region: ScaledRegion
    sticker_size: tuple[int, int]


def encode_png(img: Image.Image) -> bytes:
    """Serialize losslessly with fixed options and no metadata."""
    buf = io.BytesIO()
    try:
        img.save(buf, format="PNG", optimize=False, compress_level=PNG_COMPRESS_LEVEL)
    except (OSError, ValueError) as exc:
        raise RenderFailure(f"PNG encode failed: {exc}", stage=Stage.SERIALIZE) from exc
    return buf.getvalue()


def _place(region: ScaledRegion, size: tuple[int, int], canvas_w: int, canvas_h: int) -> tuple[int, int]:
    """Origin for a sticker of *size*, clamped so it stays on the canvas."""
    w, h = size
    if w > canvas_w or h > canvas_h:
        raise RegionInvalid(
            f"sticker {w}x{h} does not fit the {canvas_w}x{canvas_h} design"
        )
    x = max(0, min(region.x, canvas_w - w))
    y = max(0, min(region.y, canvas_h - h))
    return x, y


@trace
def assemble(
    design: DesignImage,
    region: ScaledRegion,
    spec: StickerSpec,
    ecc: str = "M",
    quiet_zone: int = 2,
) -> CompositeResult:
    """Draw the sticker for *spec* onto *design* at the native *region*.

    The QR raster is regenerated at the size the region's footprint needs,
    never stretched from an earlier render.

    Raises:
        RegionInvalid: the region or grown sticker does not fit the design.
        PayloadTooLarge: the payload does not fit at the footprint's QR size.
        RenderFailure: canvas or PNG encode failure.
    """
    if region.width <= 0 or region.height <= 0 or region.x < 0 or region.y < 0:
        raise RegionInvalid(f"invalid native region {region}")
    if region.right > design.width or region.bottom > design.height:
        raise RegionInvalid(
            f"region {region.x},{region.y} {region.width}x{region.height} "
            f"exceeds the {design.width}x{design.height} design"
        )

    canvas = design.image()
    fitted = spec.fitted(region.width, region.height)
    sticker = render_sticker(fitted, footprint=region.size, ecc=ecc, quiet_zone=quiet_zone)
    origin = _place(region, sticker.size, design.width, design.height)

    canvas.alpha_composite(sticker, origin)
    if not design.has_alpha:
        canvas = canvas.convert("RGB")

    png = encode_png(canvas)
    placed = ScaledRegion(origin[0], origin[1], sticker.size[0], sticker.size[1])
    audit("composite.assembled", logger=log,
          design=f"{design.width}x{design.height}",
          region=f"{placed.x},{placed.y} {placed.width}x{placed.height}",
          qr_size=fitted.qr_size, png_bytes=len(png))
    return CompositeResult(png=png, region=placed, sticker_size=sticker.size)


@trace
def generate_final_design(
    source: bytes | str | Path,
    region: Region,
    payload: str,
    style: StickerStyle | None = None,
    settings: Settings | None = None,
    session: requests.Session | None = None,
    cancel: threading.Event | None = None,
) -> CompositeResult:
    """Fetch → resolve region → render → serialize, in that fixed order.

    Any failure aborts the call; nothing partial is returned.
    """
    settings = settings or Settings()
    style = style or StickerStyle.from_config(settings.sticker)

    design = DesignImage.load(source, settings=settings, session=session, cancel=cancel)
    scaled = to_native(
        region, design.width, design.height,
        max_width=settings.editor.max_display_width,
        max_height=settings.editor.max_display_height,
    )
    spec = StickerSpec.for_width(payload, scaled.width, style)
    return assemble(design, scaled, spec, ecc=settings.qr.ecc, quiet_zone=settings.qr.quiet_zone)


# ---------------------------------------------------------------------------
# Download filename convention
# ---------------------------------------------------------------------------

def sanitize_name(name: str) -> str:
    """Lowercase, every character outside [a-z0-9] replaced by '_'."""
    return re.sub(r"[^a-z0-9]", "_", name.strip().lower())


def composite_filename(name: str) -> str:
    return f"{sanitize_name(name)}_final-design.png"


def card_filename(name: str, layout: str) -> str:
    return f"{sanitize_name(name)}_{layout}.png"
