"""
Service de code-barres.
Lookup de produits via UPCitemdb, Open Food Facts et EAN-Search, avec cache
de 30 jours et fallback vers la saisie manuelle.

Exemple :
    from app.services.barcode import lookup_barcode

    outcome = await lookup_barcode("5901234123457")
    if outcome.success:
        print(outcome.result.name, outcome.was_cached)
"""

from .interfaces import (
    IBarcodeSource,
    BarcodeProvider,
    ConfidenceTier,
    LookupResult,
    LookupOutcome,
    SourceStatus,
    SourceOutcome,
    FallbackResult,
    BarcodeServiceError,
    BarcodeValidationError,
    BarcodeRateLimitError
)

from .identifier import normalize_identifier, describe_identifier
from .base import HttpBarcodeSource
from .upcitemdb import UPCItemDBSource
from .openfoodfacts import OpenFoodFactsSource
from .eansearch import EANSearchSource
from .orchestrator import FallbackOrchestrator
from .cache import BarcodeResultCache, CacheEntry
from .manager import (
    BarcodeServiceFactory,
    BarcodeLookupService,
    create_barcode_lookup_service,
    get_barcode_lookup_service,
    lookup_barcode
)

# Exports publics
__all__ = [
    # Interfaces
    "IBarcodeSource",
    "BarcodeProvider",
    "ConfidenceTier",
    "LookupResult",
    "LookupOutcome",
    "SourceStatus",
    "SourceOutcome",
    "FallbackResult",

    # Exceptions
    "BarcodeServiceError",
    "BarcodeValidationError",
    "BarcodeRateLimitError",

    # Identifiants
    "normalize_identifier",
    "describe_identifier",

    # Implémentations
    "HttpBarcodeSource",
    "UPCItemDBSource",
    "OpenFoodFactsSource",
    "EANSearchSource",
    "FallbackOrchestrator",
    "BarcodeResultCache",
    "CacheEntry",

    # Factory et service
    "BarcodeServiceFactory",
    "BarcodeLookupService",
    "create_barcode_lookup_service",
    "get_barcode_lookup_service",

    # Fonctions utilitaires
    "lookup_barcode"
]
