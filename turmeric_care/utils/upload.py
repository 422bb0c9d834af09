import base64
import binascii
import io
import logging
import re
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from turmeric_care.config import MAX_UPLOAD_BYTES
from turmeric_care.errors import UploadValidationError

logger = logging.getLogger(__name__)

INVALID_TYPE_MESSAGE = "Please select a valid image file"
TOO_LARGE_MESSAGE = "Image size must be less than 10MB"
UNREADABLE_MESSAGE = "Failed to read image file"

DATA_URL_PATTERN = re.compile(r'^data:(?P<type>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$', re.DOTALL)


def validate_upload(content_type: str, size: int) -> None:
    """Reject non-images and files over the size ceiling. Runs before any storage or network call."""
    if not content_type or not content_type.lower().startswith("image/"):
        logger.info(f"Rejected upload with content type {content_type!r}")
        raise UploadValidationError(INVALID_TYPE_MESSAGE)

    if size > MAX_UPLOAD_BYTES:
        logger.info(f"Rejected upload of {size} bytes")
        raise UploadValidationError(TOO_LARGE_MESSAGE)


def to_data_url(content_type: str, data: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('utf-8')}"


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a base64 data URL into (content_type, bytes)"""
    match = DATA_URL_PATTERN.match((data_url or "").strip())
    if not match:
        raise UploadValidationError(UNREADABLE_MESSAGE)

    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError):
        raise UploadValidationError(UNREADABLE_MESSAGE)

    return match.group("type").lower(), data


def validate_data_url(data_url: str) -> Tuple[str, bytes]:
    """Decode and validate an image data URL"""
    content_type, data = decode_data_url(data_url)
    validate_upload(content_type, len(data))
    return content_type, data


def decode_image(data: bytes) -> Tuple[int, int]:
    """Check the bytes really are a readable image, returns (width, height)"""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
            size = image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        logger.info(f"Image decode failed: {e}")
        raise UploadValidationError(UNREADABLE_MESSAGE)
    return size
