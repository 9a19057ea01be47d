"""
Image codec boundary for profile photos.

Profile photos are stored as JPEG. Callers may hand over encoded bytes
directly or a Pillow image, which is flattened to RGB and compressed here.
"""

from io import BytesIO
from typing import Any

from PIL import Image

JPEG_CONTENT_TYPE = "image/jpeg"
DEFAULT_JPEG_QUALITY = 70


def encode_jpeg(image: Image.Image, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """Encode a Pillow image as JPEG bytes."""
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def to_jpeg_bytes(image: Any, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """
    Normalize an upload payload to bytes.

    Raw bytes are passed through untouched (they are assumed to be encoded
    already); Pillow images are encoded.

    Raises:
        TypeError: If the payload is neither bytes nor a Pillow image
    """
    if isinstance(image, (bytes, bytearray, memoryview)):
        return bytes(image)
    if isinstance(image, Image.Image):
        return encode_jpeg(image, quality)
    raise TypeError(f"Unsupported image payload: {type(image).__name__}")
