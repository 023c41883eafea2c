"""QR code rendering for published cards."""

import uuid
from io import BytesIO

import qrcode
from libs.common.storage import StorageService
from PIL import Image

QR_SIZE_PX = 512
QR_BORDER_MODULES = 2


def render_qr_png(url: str, size: int = QR_SIZE_PX) -> bytes:
    """Render ``url`` as a black-on-white PNG of ``size`` x ``size`` pixels."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=QR_BORDER_MODULES,
    )
    qr.add_data(url)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white").get_image()
    img = img.convert("RGB").resize((size, size), Image.Resampling.NEAREST)

    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


async def generate_and_upload_qr(
    storage: StorageService, card_id: uuid.UUID, public_url: str
) -> str:
    """Render the card's QR code, store it under a stable per-card key, return its URL."""
    png = render_qr_png(public_url)
    return await storage.upload_bytes(f"qr-codes/qr-{card_id}.png", png, "image/png")
