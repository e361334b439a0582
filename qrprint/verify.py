"""Scan verification — decode a rendered QR back and compare it to the payload."""

import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image

from qrprint.logging import audit, get_logger, trace

log = get_logger("verify")

DECODER = "opencv"


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = DECODER
    error: str | None = None


@trace
def scan_opencv(image: Image.Image) -> ScanResult:
    """Scan a QR code using OpenCV's built-in QR detector."""
    start = time.perf_counter()
    try:
        arr = np.array(image.convert("RGB"))
        gray = cv2.cvtColor(arr, cv2.COLOR_RGB2GRAY)
        data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except cv2.error as e:
        elapsed = (time.perf_counter() - start) * 1000
        audit("scan.error", logger=log, decoder=DECODER, error=str(e), time_ms=round(elapsed, 1))
        return ScanResult(success=False, decode_time_ms=elapsed, error=str(e))

    elapsed = (time.perf_counter() - start) * 1000
    if data:
        return ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed)
    return ScanResult(success=False, decode_time_ms=elapsed, error="No QR code detected")


@trace
def scan(image: Image.Image, expected: str | None = None) -> ScanResult:
    """Decode *image* and, when *expected* is given, require an exact match.

    The QR should be the dominant code in the image; a sticker, card back or
    composite with one sticker all qualify.
    """
    result = scan_opencv(image)
    if result.success and expected is not None and result.decoded_data != expected:
        result.success = False
        result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected}'"

    audit("scan.verified", logger=log, decoder=result.decoder, success=result.success,
          time_ms=round(result.decode_time_ms, 1),
          data=(result.decoded_data or "")[:80], error=result.error)
    return result
