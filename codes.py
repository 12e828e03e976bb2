"""Code128 and QR images for attendee barcode tokens."""

import logging
from io import BytesIO

import qrcode
from PIL import Image
from reportlab.graphics import renderSVG
from reportlab.graphics.barcode import createBarcodeDrawing

from errors import RasterizeError

logger = logging.getLogger(__name__)

EMPTY_TOKEN = "EMPTY"
MIN_QR_SIZE = 16
MAX_QR_SIZE = 1024


def code128_svg(token: str, width: float = 90, height: float = 45, scale: float = 1.0) -> bytes:
    """Render ``token`` as a Code128 symbol in SVG, without human-readable text.

    ``scale`` sets the module width; the finished symbol is then stretched
    or squeezed horizontally to exactly ``width``.
    """
    text = token or EMPTY_TOKEN
    try:
        width = max(1.0, float(width))
        drawing = createBarcodeDrawing(
            "Code128",
            value=text,
            barWidth=max(1, int(float(scale) * 3)) * 0.5,
            barHeight=max(1.0, float(height)),
            humanReadable=False,
        )
        drawing.scale(width / drawing.width, 1)
        drawing.width = width
        return renderSVG.drawToString(drawing).encode("utf-8")
    except Exception as e:
        logger.error("Code128 rendering failed for %r: %s", text, e)
        raise RasterizeError(f"Barcode error: {e}") from e


def qr_png(token: str, size: int = 70) -> bytes:
    """Render ``token`` as a square QR PNG, ``size`` pixels wide."""
    text = token or EMPTY_TOKEN
    try:
        size = min(MAX_QR_SIZE, max(MIN_QR_SIZE, int(size)))
        qr = qrcode.QRCode(border=1)
        qr.add_data(text)
        qr.make(fit=True)
        raw = BytesIO()
        qr.make_image(fill_color="black", back_color="white").save(raw)
        raw.seek(0)
        img = Image.open(raw).convert("1").resize((size, size), Image.NEAREST)
        buf = BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
    except Exception as e:
        logger.error("QR rendering failed for %r: %s", text, e)
        raise RasterizeError(f"QR error: {e}") from e
