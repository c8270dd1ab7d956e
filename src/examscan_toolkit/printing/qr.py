"""
Module: printing.qr

Purpose:
    Render page identifiers as QR rasters. The top mark carries the
    canonical identifier; the bottom mark carries the rotated variant and
    is turned upside down so a sheet fed in reverse still scans.

Key Functions:
    - render_qr(): Raster for an arbitrary string
    - render_identifier_marks(): (top, bottom) rasters for one page

Dependencies:
    - qrcode: QR symbol generation
    - PIL/Pillow: Raster handling and rotation
    - core.codec: Canonical identifier encoding

Used By:
    - printing.header
"""

from __future__ import annotations

import logging
from typing import Tuple

import qrcode
from qrcode.image.pil import PilImage
from PIL import Image

from examscan_toolkit.core import codec
from examscan_toolkit.core.models import PageIdentifier

logger = logging.getLogger(__name__)


def render_qr(text: str, *, box_size: int = 10, border: int = 2) -> Image.Image:
    """
    Encode a string as a black-on-white QR raster.

    Args:
        text: Content of the symbol
        box_size: Pixels per module
        border: Quiet zone width in modules

    Returns:
        RGB PIL image
    """
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(text)
    qr.make(fit=True)
    image = qr.make_image(image_factory=PilImage, fill_color="black", back_color="white")
    return image.get_image().convert("RGB")


def render_identifier_marks(
    identifier: PageIdentifier,
    *,
    box_size: int = 10,
    border: int = 2,
) -> Tuple[Image.Image, Image.Image]:
    """
    Build the top and bottom QR marks for one page.

    Returns:
        (top, bottom) where bottom encodes the "-R" variant rotated 180°
    """
    plain = identifier.as_plain()
    top = render_qr(codec.encode(plain), box_size=box_size, border=border)
    bottom = render_qr(codec.encode(plain.as_rotated()), box_size=box_size, border=border)
    logger.debug(f"Rendered QR marks for {codec.encode(plain)}")
    return top, bottom.rotate(180)
