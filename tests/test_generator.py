"""Tests for the QR encoder adapter."""

import logging

import pytest

from qrprint.errors import PayloadTooLarge, Stage
from qrprint.generator import generate_qr


class TestGenerateQr:
    def test_exact_size(self) -> None:
        img = generate_qr("https://example.com", 200)
        assert img.size == (200, 200)
        assert img.mode == "RGB"

    def test_odd_size_is_exact(self) -> None:
        assert generate_qr("https://example.com", 263).size == (263, 263)

    def test_quiet_zone_is_background(self) -> None:
        img = generate_qr("https://example.com", 200, back_color=(255, 255, 255))
        assert img.getpixel((0, 0)) == (255, 255, 255)
        assert img.getpixel((199, 199)) == (255, 255, 255)

    def test_only_two_colours(self) -> None:
        img = generate_qr("https://example.com", 200)
        assert {c for _, c in img.getcolors()} == {(0, 0, 0), (255, 255, 255)}

    def test_deterministic(self) -> None:
        a = generate_qr("https://example.com/p/42", 240)
        b = generate_qr("https://example.com/p/42", 240)
        assert a.tobytes() == b.tobytes()

    def test_payload_too_large(self) -> None:
        with pytest.raises(PayloadTooLarge) as exc_info:
            generate_qr("x" * 5000, 400)
        assert exc_info.value.stage is Stage.RENDER
        assert not exc_info.value.retryable

    def test_overflow_past_version_40(self) -> None:
        # just past the version 40 byte capacity at ECC L
        with pytest.raises(PayloadTooLarge) as exc_info:
            generate_qr("a" * 2954, 400, ecc="L")
        assert exc_info.value.__cause__ is not None

    def test_size_too_small_for_modules(self) -> None:
        with pytest.raises(PayloadTooLarge):
            generate_qr("hello", 10)

    def test_unknown_ecc(self) -> None:
        with pytest.raises(ValueError):
            generate_qr("hello", 200, ecc="Z")

    def test_audit_event(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="qrprint")
        generate_qr("hello", 100)
        events = [getattr(r, "event", None) for r in caplog.records]
        assert "qr.generated" in events

