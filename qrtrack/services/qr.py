import base64
import io
import logging

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_M
from PIL import Image

logger = logging.getLogger(__name__)

LOGO_RATIO = 0.25


def _add_logo(img, logo_path: str, background: str):
    logo = Image.open(logo_path).convert('RGBA')
    size = int(img.size[0] * LOGO_RATIO)
    logo.thumbnail((size, size), Image.LANCZOS)
    pad = max(4, size // 10)
    plate = Image.new('RGBA', (logo.size[0] + 2 * pad, logo.size[1] + 2 * pad), background)
    plate.paste(logo, (pad, pad), logo)
    x = (img.size[0] - plate.size[0]) // 2
    y = (img.size[1] - plate.size[1]) // 2
    img.paste(plate, (x, y), plate)
    return img


def make_qr_image(content: str, color='#000000', background='#ffffff', margin=4, logo_path=None, box_size=10):
    # H keeps the code readable with a centered logo covering ~25% of it
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_H if logo_path else ERROR_CORRECT_M,
        box_size=box_size,
        border=margin,
    )
    qr.add_data(content)
    qr.make(fit=True)
    img = qr.make_image(fill_color=color, back_color=background).convert('RGB')
    if logo_path:
        try:
            img = _add_logo(img, logo_path, background)
        except OSError as exc:
            logger.warning('could not composite logo %s: %s', logo_path, exc)
    return img


def make_qr_bytes(content: str, **options) -> bytes:
    """Return QR PNG bytes for the provided content."""
    img = make_qr_image(content, **options)
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()


def make_qr_data_url(content: str, **options) -> str:
    png = make_qr_bytes(content, **options)
    return 'data:image/png;base64,' + base64.b64encode(png).decode('ascii')
