"""QR challenge image generator.

Renders a pairing challenge string as a PNG with `qrcode` and Pillow and
returns it base64-encoded, ready to embed in a dashboard `<img>` tag.

Public class: `QRCodeGenerator`

Example:
    gen = QRCodeGenerator(box_size=6, border=1)
    png_b64 = gen.create_png_base64("challenge")
"""
from __future__ import annotations

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


class QRCodeGenerator:
    """Encode challenge strings as QR code images.

    Args:
        box_size: Pixel size of each QR module. Defaults to 6.
        border: Quiet-zone width in modules. Defaults to 1.
    """

    def __init__(self, box_size: int = 6, border: int = 1):
        self.box_size = box_size
        self.border = border

    def create_png_bytes(self, challenge: str) -> bytes:
        """Render `challenge` to raw PNG bytes.

        Raises:
            ValueError: If the challenge is empty.
        """
        if not challenge:
            raise ValueError("QR challenge must not be empty")

        qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=self.box_size, border=self.border)
        qr.add_data(challenge)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white").convert("RGB")

        out_io = io.BytesIO()
        img.save(out_io, format="PNG")
        return out_io.getvalue()

    def create_png_base64(self, challenge: str) -> str:
        """Render `challenge` and return the PNG as a base64 string (no data-URL prefix)."""
        return base64.b64encode(self.create_png_bytes(challenge)).decode("utf-8")
