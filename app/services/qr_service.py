from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_H

from app.utils.event_utils import guest_url


def generate_event_qr_png(event_id: str) -> bytes:
    """PNG QR code pointing guests at the event page."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_H,
        box_size=10,
        border=4,
    )
    qr.add_data(guest_url(event_id))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return buffered.getvalue()
