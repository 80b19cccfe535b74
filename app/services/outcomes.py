"""
Error taxonomy and response envelope shared by the lookup and
identification services.

Every failure leaving a service is one ErrorKind; its value is the short
code the client UI branches on.
"""

from enum import Enum
from typing import Any, Dict


class ErrorKind(str, Enum):
    """Uniform failure codes returned at the service boundary."""

    # Caller errors: fix the input and retry
    INVALID_BARCODE = "INVALID_BARCODE"
    INVALID_IMAGE_URL = "INVALID_IMAGE_URL"
    INVALID_IMAGE_FORMAT = "INVALID_IMAGE_FORMAT"
    IMAGE_TOO_SMALL = "IMAGE_TOO_SMALL"

    # Expected terminal outcomes: fall back to manual entry
    BARCODE_NOT_FOUND = "BARCODE_NOT_FOUND"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    NO_PRODUCT = "NO_PRODUCT"

    # Provider-level failures
    NO_RESPONSE = "NO_RESPONSE"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_IMAGE = "INVALID_IMAGE"
    IDENTIFICATION_FAILED = "IDENTIFICATION_FAILED"

    # Retry later
    RATE_LIMIT = "RATE_LIMIT"
    AI_QUOTA_EXCEEDED = "AI_QUOTA_EXCEEDED"

    SERVER_ERROR = "SERVER_ERROR"

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self]

    @property
    def retryable(self) -> bool:
        """True when retrying the same request later is likely to succeed."""
        return self in (ErrorKind.RATE_LIMIT, ErrorKind.AI_QUOTA_EXCEEDED)


ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_BARCODE: "Invalid barcode, please check the number and try again",
    ErrorKind.INVALID_IMAGE_URL: "Invalid image URL provided",
    ErrorKind.INVALID_IMAGE_FORMAT: "Image must be a valid base64 string or URL",
    ErrorKind.IMAGE_TOO_SMALL: "Image too small, try closer photo",
    ErrorKind.BARCODE_NOT_FOUND: "Product not found, please enter the details manually",
    ErrorKind.LOW_CONFIDENCE: "No product detected, please photograph the product clearly",
    ErrorKind.NO_PRODUCT: "No product detected, please photograph the product clearly",
    ErrorKind.NO_RESPONSE: "Could not identify product, please try again",
    ErrorKind.PARSE_ERROR: "Could not identify product, please try again",
    ErrorKind.INVALID_IMAGE: "Could not process image, please try again",
    ErrorKind.IDENTIFICATION_FAILED: "Could not identify product, please try again",
    ErrorKind.RATE_LIMIT: "Too many requests, please try again in a moment",
    ErrorKind.AI_QUOTA_EXCEEDED: "Identification is temporarily unavailable, please try again later",
    ErrorKind.SERVER_ERROR: "Something went wrong, please try again",
}


def error_response(kind: ErrorKind) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {
            "code": kind.value,
            "message": kind.message,
            "retryable": kind.retryable,
        },
    }


def success_response(data: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    response = {"success": True, "data": data}
    response.update(extra)
    return response
