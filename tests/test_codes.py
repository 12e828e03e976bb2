import re
from io import BytesIO

import pytest
from PIL import Image

from codes import code128_svg, qr_png
from errors import RasterizeError


def test_code128_svg():
    svg = code128_svg("0b7e2c4e-1111-4222-8333-444455556666", 90, 45, 1.0)
    assert b"<svg" in svg
    assert b"</svg>" in svg


def _svg_width(svg):
    return float(re.search(rb'<svg[^>]*\swidth="([\d.]+)"', svg).group(1))


def test_code128_svg_has_requested_width():
    token = "0b7e2c4e-1111-4222-8333-444455556666"
    assert _svg_width(code128_svg(token, 90, 45, 1.0)) == 90
    assert _svg_width(code128_svg(token, 200, 45, 1.0)) == 200
    assert _svg_width(code128_svg("A", 200, 45, 2.0)) == 200


def test_code128_empty_token_uses_placeholder():
    assert b"<svg" in code128_svg("")


def test_code128_failure_raises_rasterize_error():
    with pytest.raises(RasterizeError):
        code128_svg("abc", height="tall")


def test_qr_png_has_requested_size():
    png = qr_png("0b7e2c4e-1111-4222-8333-444455556666", 70)
    assert png.startswith(b"\x89PNG")
    img = Image.open(BytesIO(png))
    assert img.size == (70, 70)


def test_qr_size_is_clamped():
    img = Image.open(BytesIO(qr_png("token", 5)))
    assert img.size == (16, 16)


def test_qr_failure_raises_rasterize_error():
    with pytest.raises(RasterizeError):
        qr_png("token", "huge")
