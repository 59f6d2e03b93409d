from __future__ import annotations

import io

import qrcode

from .invite_codes import normalize_invite_code


def render_invite_qr(invite_code: str, *, box_size: int = 10, border: int = 2) -> bytes:
    """Render an invite code as a PNG QR image."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=box_size,
        border=border,
    )
    qr.add_data(normalize_invite_code(invite_code))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
