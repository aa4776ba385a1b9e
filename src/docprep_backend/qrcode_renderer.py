"""
QR code encoding backed by the ``qrcode`` library and Pillow.

The encoder picks the smallest QR version that fits the text at the configured
error-correction level, draws it with one pixel per module and scales the
result to a fixed square width with nearest-neighbour sampling so module edges
stay sharp.
"""

from __future__ import annotations

import io
import logging

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from qrcode.exceptions import DataOverflowError

logger = logging.getLogger(__name__)

ERROR_CORRECTION_LEVELS = {
    "L": ERROR_CORRECT_L,  # ~7% damage tolerated
    "M": ERROR_CORRECT_M,  # ~15%
    "Q": ERROR_CORRECT_Q,  # ~25%
    "H": ERROR_CORRECT_H,  # ~30%
}


class QRCodeEncoder:
    """
    Render text into a square PNG QR code.

    Attributes:
        error_correction: Level name, one of L, M, Q, H
        width: Output edge length in pixels
        margin: Quiet zone around the symbol, in modules
        dark: Foreground color
        light: Background color
    """

    def __init__(
        self,
        error_correction: str = "H",
        width: int = 200,
        margin: int = 1,
        dark: str = "#000000",
        light: str = "#ffffff",
    ) -> None:
        level = str(error_correction).upper()
        if level not in ERROR_CORRECTION_LEVELS:
            raise ValueError(f"Unknown QR error correction level: {error_correction}")
        if width <= 0:
            raise ValueError("QR code width must be positive")
        self.error_correction = level
        self.width = int(width)
        self.margin = int(margin)
        self.dark = dark
        self.light = light

    def encode(self, text: str) -> bytes:
        """
        Encode ``text`` and return the PNG file contents.

        Raises:
            qrcode.exceptions.DataOverflowError: If the text does not fit in
                the largest QR version at the configured level
        """
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECTION_LEVELS[self.error_correction],
            box_size=1,
            border=self.margin,
        )
        qr.add_data(text)
        try:
            qr.make(fit=True)
        except ValueError as exc:
            # Newer qrcode releases report overflow as an invalid version 41
            raise DataOverflowError(f"Text of {len(text)} chars does not fit a QR code at level {self.error_correction}") from exc
        logger.debug(f"QR code fitted to version {qr.version} ({len(text)} chars, level {self.error_correction})")

        image = qr.make_image(fill_color=self.dark, back_color=self.light).get_image()
        image = image.convert("RGB").resize((self.width, self.width), Image.Resampling.NEAREST)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
