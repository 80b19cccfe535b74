"""
Normalization and validation of product identifiers (barcodes).

The normalized identifier is both the query sent to providers and the cache
key, so every textual variant of a code must collapse to one canonical form.
"""

import re
from dataclasses import dataclass
from typing import Any

from .interfaces import BarcodeValidationError

MIN_IDENTIFIER_LENGTH = 8
MAX_IDENTIFIER_LENGTH = 14

_ASCII_DIGITS = re.compile(r"[0-9]+")

_FORMATS_BY_LENGTH = {
    8: "EAN-8",
    12: "UPC-A",
    13: "EAN-13",
    14: "GTIN-14",
}


@dataclass(frozen=True)
class IdentifierInfo:
    """Diagnostic description of a normalized identifier."""
    identifier: str
    format_type: str
    checksum_valid: bool


def normalize_identifier(raw: Any) -> str:
    """
    Strip separators and validate the identifier family bounds.

    Args:
        raw: Code as typed or scanned ("5901234-123457", "0 12345 67890 5")

    Returns:
        Digits-only identifier

    Raises:
        BarcodeValidationError: input is not a string, contains letters or
            non-ASCII digits, or its length falls outside [MIN_IDENTIFIER_LENGTH, MAX_IDENTIFIER_LENGTH]
    """
    if not isinstance(raw, str):
        raise BarcodeValidationError("Barcode must be a string", barcode=str(raw))

    # Only punctuation and whitespace are separators; any letter or digit is kept
    identifier = "".join(ch for ch in raw if ch.isalnum())

    if not _ASCII_DIGITS.fullmatch(identifier):
        raise BarcodeValidationError("Barcode must contain digits only", barcode=raw)

    if not MIN_IDENTIFIER_LENGTH <= len(identifier) <= MAX_IDENTIFIER_LENGTH:
        raise BarcodeValidationError(
            f"Unsupported barcode length: {len(identifier)}",
            barcode=raw
        )

    return identifier


def describe_identifier(identifier: str) -> IdentifierInfo:
    """Format guess and check-digit verification, used for logging only."""
    format_type = _FORMATS_BY_LENGTH.get(len(identifier), "unknown")
    checksum_valid = format_type != "unknown" and _gtin_checksum_valid(identifier)
    return IdentifierInfo(
        identifier=identifier,
        format_type=format_type,
        checksum_valid=checksum_valid
    )


def _gtin_checksum_valid(identifier: str) -> bool:
    """GS1 check digit: weights 3,1,3,... from the digit left of the check digit."""
    try:
        body, check = identifier[:-1], int(identifier[-1])
        total = 0
        for i, digit in enumerate(reversed(body)):
            weight = 3 if i % 2 == 0 else 1
            total += int(digit) * weight
        return (10 - (total % 10)) % 10 == check
    except (ValueError, IndexError):
        return False
