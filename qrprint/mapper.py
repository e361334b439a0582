"""Coordinate mapping between the positioning editor and native image pixels.

The editor shows the design aspect-fit inside a bounded box (800x600 by
default, never stretched). A sticker region picked there is tagged with
the space it was measured in and resolved once, on capture, into the
design's native pixel space.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum

from qrprint.errors import RegionInvalid
from qrprint.logging import audit, get_logger, trace

log = get_logger("mapper")

MIN_STICKER_WIDTH = 120
MIN_STICKER_HEIGHT = 160

DEFAULT_MAX_DISPLAY_WIDTH = 800
DEFAULT_MAX_DISPLAY_HEIGHT = 600

# height / width of a freshly placed sticker
STICKER_ASPECT = MIN_STICKER_HEIGHT / MIN_STICKER_WIDTH


class Space(Enum):
    DISPLAY = "display"
    NATIVE = "native"


@dataclass(frozen=True)
class Region:
    """A placement rectangle in an explicit pixel space."""
    x: float
    y: float
    width: float
    height: float
    space: Space = Space.DISPLAY

    @property
    def meets_minimum(self) -> bool:
        return self.width >= MIN_STICKER_WIDTH and self.height >= MIN_STICKER_HEIGHT


@dataclass(frozen=True)
class ScaledRegion:
    """A region resolved into native pixels, rounded and clamped inside the image."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class DisplayBox:
    """The box the editor actually draws the design into, plus the scale back to native."""
    width: float
    height: float
    scale_x: float
    scale_y: float


def display_box(
    native_width: int,
    native_height: int,
    max_width: int = DEFAULT_MAX_DISPLAY_WIDTH,
    max_height: int = DEFAULT_MAX_DISPLAY_HEIGHT,
) -> DisplayBox:
    """Compute the aspect-fit display box for a design of the given native size."""
    if native_width <= 0 or native_height <= 0:
        raise RegionInvalid(f"native size must be positive, got {native_width}x{native_height}")

    aspect = native_width / native_height
    if aspect > 1:
        width = max_width
        height = max_width / aspect
    else:
        height = max_height
        width = max_height * aspect
        if width > max_width:
            width = max_width
            height = max_width / aspect

    return DisplayBox(
        width=width,
        height=height,
        scale_x=native_width / width,
        scale_y=native_height / height,
    )


def _check_finite(region: Region):
    values = (region.x, region.y, region.width, region.height)
    if not all(math.isfinite(v) for v in values):
        raise RegionInvalid(f"region has non-finite coordinates: {values}")
    if region.x < 0 or region.y < 0:
        raise RegionInvalid(f"region origin must be non-negative, got ({region.x}, {region.y})")
    if region.width <= 0 or region.height <= 0:
        raise RegionInvalid(f"region size must be positive, got {region.width}x{region.height}")


@trace
def to_native(
    region: Region,
    native_width: int,
    native_height: int,
    max_width: int = DEFAULT_MAX_DISPLAY_WIDTH,
    max_height: int = DEFAULT_MAX_DISPLAY_HEIGHT,
) -> ScaledRegion:
    """Resolve *region* into native pixels.

    Display regions are scaled by the independent x/y factors of the display
    box; native regions pass through. The result is rounded to whole pixels
    and its origin clamped so the region lies inside the image.

    Raises:
        RegionInvalid: non-finite or negative values, a region below the
            minimum sticker size in its own space, or a footprint larger
            than the image.
    """
    _check_finite(region)
    if not region.meets_minimum:
        raise RegionInvalid(
            f"region {region.width:g}x{region.height:g} is below the "
            f"{MIN_STICKER_WIDTH}x{MIN_STICKER_HEIGHT} minimum ({region.space.value} space)"
        )

    if region.space is Space.DISPLAY:
        box = display_box(native_width, native_height, max_width, max_height)
        fx, fy = box.scale_x, box.scale_y
    else:
        fx = fy = 1.0

    width = round(region.width * fx)
    height = round(region.height * fy)
    if width > native_width or height > native_height:
        raise RegionInvalid(
            f"region resolves to {width}x{height}, larger than the {native_width}x{native_height} image"
        )

    x = min(max(round(region.x * fx), 0), native_width - width)
    y = min(max(round(region.y * fy), 0), native_height - height)
    scaled = ScaledRegion(x=x, y=y, width=width, height=height)

    audit("region.resolved", logger=log,
          space=region.space.value, scale=f"{fx:.4f}x{fy:.4f}",
          native=f"{native_width}x{native_height}",
          region=f"{x},{y} {width}x{height}")
    return scaled


def to_display(
    scaled: ScaledRegion,
    native_width: int,
    native_height: int,
    max_width: int = DEFAULT_MAX_DISPLAY_WIDTH,
    max_height: int = DEFAULT_MAX_DISPLAY_HEIGHT,
) -> Region:
    """Map a native region back into editor display space (inverse of ``to_native``)."""
    box = display_box(native_width, native_height, max_width, max_height)
    return Region(
        x=scaled.x / box.scale_x,
        y=scaled.y / box.scale_y,
        width=scaled.width / box.scale_x,
        height=scaled.height / box.scale_y,
        space=Space.DISPLAY,
    )


def guess_space(width: float, height: float, native_width: int, native_height: int) -> Space:
    """Space of an untagged legacy region, inferred from its magnitude.

    Stored positions from before regions carried a space tag were display
    coordinates whenever they overflowed the native image. Anything else is
    ambiguous and is taken as native. New code should always tag regions.

    This is the direction the editor front end always applied when loading
    saved positions: overflowing values were scaled down, not kept as native.
    """
    if width > native_width or height > native_height:
        return Space.DISPLAY
    log.warning("untagged region %gx%g fits %dx%d, assuming native space",
                width, height, native_width, native_height)
    return Space.NATIVE


# ---------------------------------------------------------------------------
# Interactive editing (drag / resize), always in display space
# ---------------------------------------------------------------------------

def default_region() -> Region:
    return Region(0, 0, MIN_STICKER_WIDTH, MIN_STICKER_HEIGHT, Space.DISPLAY)


def clamp_size(width: float, height: float) -> tuple[float, float]:
    """Raise undersized dimensions to the minimum sticker size."""
    return max(MIN_STICKER_WIDTH, width), max(MIN_STICKER_HEIGHT, height)


def _constrain(region: Region, bounds_width: float, bounds_height: float) -> Region:
    x = max(0, min(region.x, bounds_width - region.width))
    y = max(0, min(region.y, bounds_height - region.height))
    return replace(region, x=x, y=y)


def move_region(region: Region, x: float, y: float, bounds_width: float, bounds_height: float) -> Region:
    """Drag *region* to (x, y), keeping it inside the bounds."""
    return _constrain(replace(region, x=x, y=y), bounds_width, bounds_height)


def set_size(region: Region, width: float, height: float) -> Region:
    """Set the size directly; undersized requests are clamped up, never taken verbatim."""
    w, h = clamp_size(width, height)
    if (w, h) != (width, height):
        audit("region.clamped", logger=log,
              requested=f"{width:g}x{height:g}", clamped=f"{w:g}x{h:g}")
    return replace(region, width=w, height=h)


def resize_keep_aspect(region: Region, width: float | None = None, height: float | None = None) -> Region:
    """Resize from one dimension, preserving the sticker's current aspect ratio.

    Whichever dimension is given drives the other; both are then raised to
    the minimums with the aspect ratio held.
    """
    aspect = region.height / region.width if region.width else STICKER_ASPECT
    if width is not None:
        w = max(MIN_STICKER_WIDTH, width)
        h = w * aspect
        if h < MIN_STICKER_HEIGHT:
            h = MIN_STICKER_HEIGHT
            w = h / aspect
    elif height is not None:
        h = max(MIN_STICKER_HEIGHT, height)
        w = h / aspect
        if w < MIN_STICKER_WIDTH:
            w = MIN_STICKER_WIDTH
            h = w * aspect
    else:
        w, h = clamp_size(region.width, region.height)
    return replace(region, width=w, height=h)


HANDLES = ("n", "s", "e", "w", "ne", "nw", "se", "sw")


def resize_region(
    region: Region,
    handle: str,
    dx: float,
    dy: float,
    bounds_width: float,
    bounds_height: float,
) -> Region:
    """Apply a pointer drag of (dx, dy) on a resize *handle*.

    The edge opposite the handle stays put; dimensions never drop below the
    minimum sticker size and the result is constrained to the bounds.
    """
    if handle not in HANDLES:
        raise ValueError(f"Unknown resize handle: {handle!r}")

    width, height = region.width, region.height
    x, y = region.x, region.y

    right = region.x + region.width
    bottom = region.y + region.height

    # Growth stops at the bounds edge the handle moves towards
    if "e" in handle:
        width = min(max(MIN_STICKER_WIDTH, region.width + dx), bounds_width - region.x)
    if "w" in handle:
        width = min(max(MIN_STICKER_WIDTH, region.width - dx), right)
        x = right - width
    if "s" in handle:
        height = min(max(MIN_STICKER_HEIGHT, region.height + dy), bounds_height - region.y)
    if "n" in handle:
        height = min(max(MIN_STICKER_HEIGHT, region.height - dy), bottom)
        y = bottom - height

    resized = Region(x, y, width, height, region.space)
    return _constrain(resized, bounds_width, bounds_height)
