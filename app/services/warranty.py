"""
Warranty-period suggestions from brand and category.

Rules are evaluated in order and the first match wins. Matching is a
case-insensitive substring test, so "Apple Inc." and "Consumer Electronics"
match the "apple" and "electronic" rules.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_WARRANTY_SUGGESTION = "Check manufacturer website"


@dataclass(frozen=True)
class WarrantyRule:
    suggestion: str
    brand_terms: Tuple[str, ...] = ()
    category_terms: Tuple[str, ...] = ()

    def matches(self, brand: str, category: str) -> bool:
        return (
            any(term in brand for term in self.brand_terms)
            or any(term in category for term in self.category_terms)
        )


WARRANTY_RULES: Tuple[WarrantyRule, ...] = (
    WarrantyRule("1 year (Apple standard warranty)", brand_terms=("apple",)),
    WarrantyRule("1 year (Samsung standard warranty)", brand_terms=("samsung",)),
    WarrantyRule(
        "1-2 years (manufacturer standard)",
        category_terms=("electronic", "computer", "phone", "tablet", "laptop"),
    ),
    WarrantyRule(
        "2-5 years (varies by type)",
        category_terms=("appliance", "refrigerator", "washer", "dryer", "dishwasher", "oven"),
    ),
    WarrantyRule("1-3 years (varies by manufacturer)", category_terms=("furniture",)),
    WarrantyRule(
        "30-90 days (return policy varies)",
        category_terms=("clothing", "apparel", "shoes"),
    ),
)


def suggest_warranty(brand: Optional[str] = None, category: Optional[str] = None) -> str:
    """Suggested warranty period text for a product."""
    brand_lower = (brand or "").lower()
    category_lower = (category or "").lower()

    for rule in WARRANTY_RULES:
        if rule.matches(brand_lower, category_lower):
            return rule.suggestion

    return DEFAULT_WARRANTY_SUGGESTION
