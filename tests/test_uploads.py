import base64
from io import BytesIO

import pytest
from PIL import Image

from agriscan.errors import UnsupportedImageError
from agriscan.uploads import image_to_data_uri, open_data_uri, thumbnail


def png_bytes(size=(400, 200)):
    buf = BytesIO()
    Image.new("RGB", size, (34, 139, 34)).save(buf, format="PNG")
    return buf.getvalue()


def test_image_to_data_uri_keeps_declared_type():
    data = png_bytes()
    uri = image_to_data_uri(data, "image/png")
    assert uri.startswith("data:image/png;base64,")
    assert base64.b64decode(uri.split(",", 1)[1]) == data


@pytest.mark.parametrize("declared", ["application/pdf", "text/plain", "", None])
def test_non_images_are_rejected(declared):
    with pytest.raises(UnsupportedImageError) as exc:
        image_to_data_uri(b"%PDF-1.4", declared)
    assert "Unsupported file type" in str(exc.value)
    assert (declared or "unknown type") in str(exc.value)


def test_open_data_uri_round_trip():
    img = open_data_uri(image_to_data_uri(png_bytes(), "image/png"))
    assert img.size == (400, 200)


def test_open_data_uri_garbage():
    assert open_data_uri("data:image/png;base64,bm90IGFuIGltYWdl") is None


def test_thumbnail_fits_box():
    thumb = thumbnail(image_to_data_uri(png_bytes(), "image/png"), size=(100, 100))
    assert thumb.size == (100, 50)
    assert thumbnail("data:image/png;base64,bm90IGFuIGltYWdl") is None
