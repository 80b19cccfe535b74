"""
UPCitemdb adapter (free trial endpoint, no API key).
Best general-purpose coverage, limited to 100 requests/day.
"""

from typing import Optional, Dict, Any

from .base import HttpBarcodeSource
from .interfaces import LookupResult, ConfidenceTier


class UPCItemDBSource(HttpBarcodeSource):
    """Primary source, tagged high."""

    BASE_URL = "https://api.upcitemdb.com/prod/trial/lookup"

    # 400 INVALID_UPC is how the trial API says it cannot know this code
    not_found_statuses = frozenset({400, 404})

    @property
    def provider_name(self) -> str:
        return "UPCitemdb"

    @property
    def confidence_tier(self) -> ConfidenceTier:
        return ConfidenceTier.HIGH

    def build_url(self, identifier: str) -> str:
        return f"{self.BASE_URL}?upc={identifier}"

    def map_response(self, payload: Dict[str, Any]) -> Optional[LookupResult]:
        items = payload.get("items")
        if not isinstance(items, list) or not items:
            return None

        item = items[0]
        return self.make_result(
            name=item.get("title"),
            brand=item.get("brand"),
            category=item.get("category"),
            model=item.get("model")
        )
