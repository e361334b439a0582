"""Tests for scan verification with OpenCV."""

from PIL import Image

from qrprint.generator import generate_qr
from qrprint.verify import scan

URL = "https://example.com/p/jane-doe"


class TestScan:
    def test_decodes_generated_qr(self) -> None:
        result = scan(generate_qr(URL, 300, quiet_zone=4), expected=URL)
        assert result.success
        assert result.decoded_data == URL
        assert result.decoder == "opencv"

    def test_mismatch_fails(self) -> None:
        result = scan(generate_qr(URL, 300, quiet_zone=4), expected="https://other.test")
        assert not result.success
        assert "mismatch" in result.error

    def test_blank_image(self) -> None:
        result = scan(Image.new("RGB", (200, 200), (255, 255, 255)))
        assert not result.success
        assert result.decoded_data is None
