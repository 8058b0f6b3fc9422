"""QR rendering for payment-intent strings returned by create-subscription."""
from __future__ import annotations

import base64
from io import BytesIO

import qrcode
from PIL import Image

from app.config import settings
from app.core.exceptions import ValidationError


def render_qr_png(
    payment_intent: str,
    size: int | None = None,
    margin: int | None = None,
) -> bytes:
    """Render ``payment_intent`` as a square black-on-white PNG of ``size`` pixels."""
    if not payment_intent or not payment_intent.strip():
        raise ValidationError("Payment QR data is empty")
    size = size or settings.qr_code_size
    margin = settings.qr_code_margin if margin is None else margin

    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=margin)
    qr.add_data(payment_intent)
    qr.make(fit=True)
    modules = qr.modules_count + 2 * margin
    qr.box_size = max(1, size // modules)

    img = qr.make_image(fill_color="black", back_color="white").get_image()
    img = img.convert("RGB")
    if img.size != (size, size):
        img = img.resize((size, size), Image.NEAREST)

    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_qr_data_url(
    payment_intent: str,
    size: int | None = None,
    margin: int | None = None,
) -> str:
    png = render_qr_png(payment_intent, size=size, margin=margin)
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
