"""
Implémentation du service OpenFoodFacts pour lookup de codes-barres.
Service gratuit et open source, couverture surtout alimentaire.

Documentation API : https://openfoodfacts.github.io/openfoodfacts-server/api/
"""

from typing import Optional, Dict, Any

from .base import HttpBarcodeSource, clean_text
from .interfaces import LookupResult, ConfidenceTier


class OpenFoodFactsSource(HttpBarcodeSource):
    """
    Secondary source: unlimited and community-sourced, tagged medium.

    Returns {"status": 0} for unknown products instead of a 404.
    """

    BASE_URL = "https://world.openfoodfacts.org/api/v0/product"

    @property
    def provider_name(self) -> str:
        return "Open Food Facts"

    @property
    def confidence_tier(self) -> ConfidenceTier:
        return ConfidenceTier.MEDIUM

    def build_url(self, identifier: str) -> str:
        return f"{self.BASE_URL}/{identifier}.json"

    def map_response(self, payload: Dict[str, Any]) -> Optional[LookupResult]:
        product = payload.get("product")
        if payload.get("status") != 1 or not isinstance(product, dict):
            return None

        name = clean_text(product.get("product_name")) or clean_text(product.get("generic_name"))

        # "brands" is a comma separated list, the first one is the owner brand
        brand = None
        brands = clean_text(product.get("brands"))
        if brands:
            brand = brands.split(",")[0]

        return self.make_result(
            name=name,
            brand=brand,
            category=product.get("categories")
        )
