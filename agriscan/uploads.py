import base64
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from .ai_client import split_data_uri
from .errors import UnsupportedImageError


def image_to_data_uri(data: bytes, declared_type: str) -> str:
    """Encode an uploaded file as a data URI, keeping its declared MIME type."""
    if not (declared_type or "").startswith("image/"):
        file_type = declared_type or "unknown type"
        raise UnsupportedImageError(
            f'Unsupported file type: "{file_type}". Please upload a valid image file (e.g., JPEG, PNG).'
        )
    return f"data:{declared_type};base64,{base64.b64encode(data).decode()}"


def open_data_uri(data_uri: str):
    """Decode a stored data URI back into a PIL image, or None if it is not one."""
    _, b64 = split_data_uri(data_uri)
    try:
        img = Image.open(BytesIO(base64.b64decode(b64)))
        img.load()
        return img
    except (ValueError, OSError, UnidentifiedImageError):
        return None


def thumbnail(data_uri: str, size=(160, 160)):
    img = open_data_uri(data_uri)
    if img is None:
        return None
    img = img.convert("RGB")
    img.thumbnail(size)
    return img
