"""QR Encoder — payload string + pixel size in, crisp square raster out.

Wraps the ``qrcode`` library. The raster is always rendered at an integer
module size chosen for the requested footprint and centred in the quiet
zone, so modules stay sharp and are never resampled.
"""

from enum import Enum

import qrcode
import qrcode.constants
from qrcode.exceptions import DataOverflowError
from qrcode.image.pil import PilImage
from PIL import Image

from qrprint.errors import PayloadTooLarge
from qrprint.logging import audit, get_logger, trace

log = get_logger("generator")

MIN_QR_CODE_SIZE = 80


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}


def _build(data: str, ecc: str, quiet_zone: int) -> qrcode.QRCode:
    try:
        ecc_level = ECC_NAMES[ecc.upper()]
    except KeyError:
        raise ValueError(f"Unknown ECC level: {ecc!r}") from None

    qr = qrcode.QRCode(
        version=None,
        error_correction=ecc_level.value,
        box_size=1,
        border=quiet_zone,
    )
    qr.add_data(data)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as exc:
        # newer qrcode releases overflow as ValueError("Invalid version ...")
        raise PayloadTooLarge(
            f"payload of {len(data)} chars does not fit any QR version at ECC {ecc.upper()}"
        ) from exc
    return qr


@trace
def generate_qr(
    data: str,
    size: int,
    ecc: str = "M",
    quiet_zone: int = 2,
    fill_color: tuple[int, int, int] = (0, 0, 0),
    back_color: tuple[int, int, int] = (255, 255, 255),
) -> Image.Image:
    """Render *data* as a ``size`` x ``size`` RGB image.

    Args:
        data: The string to encode, used verbatim.
        size: Edge length of the output raster in pixels.
        ecc: Error correction level: L/M/Q/H.
        quiet_zone: Quiet zone width in modules.

    Raises:
        PayloadTooLarge: the payload does not fit any QR version, or the
            requested size cannot give each module a whole pixel.
    """
    qr = _build(data, ecc, quiet_zone)
    grid = qr.modules_count + 2 * quiet_zone
    box_size = size // grid
    if box_size < 1:
        raise PayloadTooLarge(
            f"payload needs at least {grid}px at ECC {ecc.upper()}, requested {size}px"
        )

    qr.box_size = box_size
    code = qr.make_image(image_factory=PilImage, fill_color=fill_color, back_color=back_color).convert("RGB")

    # Centre the integer-module raster; the remainder widens the quiet zone
    img = Image.new("RGB", (size, size), back_color)
    offset = (size - code.size[0]) // 2
    img.paste(code, (offset, offset))

    audit("qr.generated", logger=log,
          data=data[:80], version=qr.version, modules=qr.modules_count,
          ecc=ecc.upper(), box_size=box_size, image_px=f"{size}x{size}")
    return img
