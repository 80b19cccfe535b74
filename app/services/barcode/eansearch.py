"""
EAN-Search.org adapter, last resort of the fallback chain.
"""

from typing import Optional, Dict, Any

from .base import HttpBarcodeSource
from .interfaces import LookupResult, ConfidenceTier


class EANSearchSource(HttpBarcodeSource):
    """Tertiary source, tagged medium."""

    BASE_URL = "https://ean-search.org/api/ean"

    @property
    def provider_name(self) -> str:
        return "EAN-Search"

    @property
    def confidence_tier(self) -> ConfidenceTier:
        return ConfidenceTier.MEDIUM

    def build_url(self, identifier: str) -> str:
        return f"{self.BASE_URL}/{identifier}"

    def map_response(self, payload: Dict[str, Any]) -> Optional[LookupResult]:
        return self.make_result(
            name=payload.get("name"),
            brand=payload.get("brand"),
            category=payload.get("category")
        )
