"""
openai-chat-stream - Image Codec

Converts between in-memory images and the JPEG data-URI strings used
in ``image_url`` content blocks.
"""

import base64
import binascii
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, EncodingError


JPEG_DATA_URI_PREFIX = "data:image/jpeg;base64,"
DEFAULT_JPEG_QUALITY = 85


def encode_image(image: Image.Image, quality: int = DEFAULT_JPEG_QUALITY) -> str:
    """
    Encode an image as a JPEG data URI.

    JPEG has no alpha channel or palette, so other modes are
    converted to RGB first. Re-encoding is lossy.

    Raises:
        EncodingError: If Pillow cannot write the image.
    """
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    buffer = BytesIO()
    try:
        image.save(buffer, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise EncodingError(f"Failed to encode image as JPEG: {e}") from e

    payload = base64.b64encode(buffer.getvalue()).decode("ascii")
    return JPEG_DATA_URI_PREFIX + payload


def decode_image(data_uri: str) -> Image.Image:
    """
    Decode a JPEG data URI into a fully loaded image.

    Raises:
        DecodeError: If the prefix, base64 payload or image bytes are invalid.
    """
    if not isinstance(data_uri, str) or not data_uri.startswith(JPEG_DATA_URI_PREFIX):
        raise DecodeError("image_url is not a JPEG data URI", raw=data_uri)

    try:
        raw_bytes = base64.b64decode(data_uri[len(JPEG_DATA_URI_PREFIX):], validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 image payload: {e}", raw=data_uri) from e

    try:
        image = Image.open(BytesIO(raw_bytes), formats=["JPEG"])
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(f"Invalid image bytes: {e}", raw=data_uri) from e

    return image
