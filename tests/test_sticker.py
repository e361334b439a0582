"""Tests for sticker sizing and rendering."""

import pytest
from PIL import Image

from qrprint.config import StickerConfig
from qrprint.generator import MIN_QR_CODE_SIZE
from qrprint.sticker import (
    BLUE,
    PURPLE,
    STYLES,
    StickerSpec,
    StickerStyle,
    _gradient,
    qr_size_for,
    render_sticker,
)
from qrprint.verify import scan

URL = "https://example.com/c/summer-sale"


class TestSizing:
    def test_scenario_outer_300_gives_qr_260(self) -> None:
        """Border 4 and padding 16 leave a 260px raw QR in a 300px sticker."""
        assert qr_size_for(300, StickerStyle(border_width=4, padding=16)) == 260
        assert StickerSpec.for_width(URL, 300).qr_size == 260

    def test_floor_at_minimum(self) -> None:
        spec = StickerSpec.for_width(URL, 100)
        assert spec.qr_size == MIN_QR_CODE_SIZE
        # the sticker grows instead of shrinking the QR
        assert spec.outer_size == (120, 160)

    def test_outer_size(self) -> None:
        assert StickerSpec(URL, 260).outer_size == (300, 340)

    def test_fitted_uses_limiting_dimension(self) -> None:
        fitted = StickerSpec(URL, 80).fitted(300, 200)
        # 200 - 2*20 - 40 caption = 120 is tighter than 300 - 40
        assert fitted.qr_size == 120

    def test_rejects_small_qr(self) -> None:
        with pytest.raises(ValueError):
            StickerSpec(URL, 79)

    def test_rejects_empty_payload(self) -> None:
        with pytest.raises(ValueError):
            StickerSpec("", 200)


class TestStyles:
    def test_five_named_styles(self) -> None:
        assert set(STYLES) == {"green-blue", "blue", "yellow-orange", "orange-pink", "purple"}
        assert PURPLE.colors == ("#00d4ff", "#a855f7", "#ec4899")

    def test_from_config(self) -> None:
        style = StickerStyle.from_config(StickerConfig(caption="HELLO", colors=("#000000",)))
        assert style.caption == "HELLO"
        assert style.colors == ("#000000",)

    def test_gradient_endpoints(self) -> None:
        img = _gradient(5, 2, ("#000000", "#ffffff"))
        assert img.getpixel((0, 1)) == (0, 0, 0)
        assert img.getpixel((4, 1)) == (255, 255, 255)
        assert img.getpixel((2, 0)) == (128, 128, 128)

    def test_single_stop_gradient(self) -> None:
        img = _gradient(3, 1, ("#ff0000",))
        assert img.getpixel((2, 0)) == (255, 0, 0)


class TestRender:
    def test_natural_size(self) -> None:
        img = render_sticker(StickerSpec(URL, 260))
        assert img.size == (300, 340)
        assert img.mode == "RGBA"

    def test_rounded_corners_transparent(self) -> None:
        img = render_sticker(StickerSpec(URL, 260))
        assert img.getpixel((0, 0))[3] == 0
        assert img.getpixel((299, 339))[3] == 0

    def test_border_uses_gradient(self) -> None:
        img = render_sticker(StickerSpec(URL, 260, style=BLUE))
        r, g, b, a = img.getpixel((1, 170))
        assert a == 255
        assert (r, g, b) != (255, 255, 255)
        assert b > r

    def test_panel_is_white(self) -> None:
        img = render_sticker(StickerSpec(URL, 260))
        assert img.getpixel((150, 8)) == (255, 255, 255, 255)

    def test_caption_drawn(self) -> None:
        img = render_sticker(StickerSpec(URL, 260))
        strip = img.crop((20, 300, 280, 334)).convert("RGB")
        assert any(c != (255, 255, 255) for _, c in strip.getcolors(maxcolors=100_000))

    def test_no_caption(self) -> None:
        style = StickerStyle(caption="")
        img = render_sticker(StickerSpec(URL, 260, style=style))
        strip = img.crop((20, 300, 280, 334)).convert("RGB")
        assert strip.getcolors() == [(260 * 34, (255, 255, 255))]

    def test_footprint_fills_region(self) -> None:
        img = render_sticker(StickerSpec(URL, 260), footprint=(400, 500))
        assert img.size == (400, 500)

    def test_small_footprint_grows(self) -> None:
        img = render_sticker(StickerSpec(URL, 80), footprint=(100, 100))
        assert img.size == (120, 160)

    def test_scans(self) -> None:
        img = render_sticker(StickerSpec(URL, 260))
        flat = Image.new("RGB", img.size, (255, 255, 255))
        flat.paste(img, (0, 0), img)
        assert scan(flat, expected=URL).success
