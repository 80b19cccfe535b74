"""
Validation of image input before any paid inference call.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from app.services.outcomes import ErrorKind

MIN_BASE64_LENGTH = 100

_BASE64_IMAGE = re.compile(r"^(?:data:image/[a-z]+;base64,)?[A-Za-z0-9+/]+={0,2}$")
_WHITESPACE = re.compile(r"\s")


def is_url(image: str) -> bool:
    return image.startswith("http://") or image.startswith("https://")


def validate_image(image: object) -> Optional[ErrorKind]:
    """
    Check that image is a usable URL or base64 payload.

    Returns:
        None when valid, otherwise the ErrorKind to report
    """
    if not isinstance(image, str) or not image:
        return ErrorKind.INVALID_IMAGE_FORMAT

    if is_url(image):
        try:
            parsed = urlparse(image)
        except ValueError:
            return ErrorKind.INVALID_IMAGE_URL
        if not parsed.netloc or _WHITESPACE.search(image):
            return ErrorKind.INVALID_IMAGE_URL
        return None

    compact = _WHITESPACE.sub("", image)
    if not _BASE64_IMAGE.match(compact):
        return ErrorKind.INVALID_IMAGE_FORMAT

    payload = compact.split("base64,", 1)[1] if "base64," in compact else compact
    if len(payload) < MIN_BASE64_LENGTH:
        return ErrorKind.IMAGE_TOO_SMALL

    return None


def prepare_image_url(image: str) -> str:
    """URL or data URL the vision model accepts; bare base64 is assumed JPEG."""
    if is_url(image):
        return image
    compact = _WHITESPACE.sub("", image)
    if compact.startswith("data:image/"):
        return compact
    return f"data:image/jpeg;base64,{compact}"
