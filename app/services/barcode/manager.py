"""
Factory and lookup service for barcodes.

Entry point of the barcode flow: normalize, read the cache, fall back across
sources on a miss, write the fresh result back and answer with a uniform
LookupOutcome.

Architecture Pattern : Factory + Singleton Manager + Service Locator
"""

import asyncio
from datetime import timedelta
from typing import Any, List, Optional, Sequence
import structlog

from app.cache.document_store import IDocumentStore, RedisDocumentStore
from app.core.config import Settings, settings as default_settings
from app.services.outcomes import ErrorKind
from app.services.warranty import suggest_warranty
from .cache import BarcodeResultCache
from .eansearch import EANSearchSource
from .identifier import describe_identifier, normalize_identifier
from .interfaces import (
    IBarcodeSource, BarcodeProvider, BarcodeValidationError, LookupOutcome
)
from .openfoodfacts import OpenFoodFactsSource
from .orchestrator import FallbackOrchestrator
from .upcitemdb import UPCItemDBSource

logger = structlog.get_logger(__name__)


class BarcodeServiceFactory:
    """
    Factory pour créer les sources de code-barres selon le provider choisi.

    Pattern : Factory Method + Strategy
    """

    _SOURCES = {
        BarcodeProvider.UPCITEMDB: UPCItemDBSource,
        BarcodeProvider.OPENFOODFACTS: OpenFoodFactsSource,
        BarcodeProvider.EANSEARCH: EANSearchSource,
    }

    @classmethod
    def create_source(cls, provider: BarcodeProvider, **kwargs) -> IBarcodeSource:
        """
        Build the barcode source for a provider.

        Args:
            provider: Provider enum value
            **kwargs: timeout, user_agent

        Raises:
            ValueError: If the provider is not supported
        """
        source_class = cls._SOURCES.get(provider)
        if source_class is None:
            raise ValueError(f"Unsupported barcode provider: {provider}")

        return source_class(
            timeout=kwargs.get("timeout", 5.0),
            user_agent=kwargs.get("user_agent", "WarrantyLookup/1.0")
        )

    @classmethod
    def create_sources(cls, order: Sequence[str], **kwargs) -> List[IBarcodeSource]:
        """Sources in priority order, best-quality first."""
        return [cls.create_source(BarcodeProvider(name), **kwargs) for name in order]


class BarcodeLookupService:
    """
    Lookup Service: the only barcode entry point callers use.

    Side effects: exactly one cache write per fresh successful resolution,
    none on a cache hit or a total miss.
    """

    def __init__(self, orchestrator: FallbackOrchestrator, cache: BarcodeResultCache):
        self.orchestrator = orchestrator
        self.cache = cache

    @property
    def worst_case_latency(self) -> float:
        return self.orchestrator.worst_case_latency

    async def lookup(self, raw_identifier: Any) -> LookupOutcome:
        """
        Resolve a raw barcode into product info.

        Returns:
            LookupOutcome; never raises for provider or input problems
        """
        try:
            identifier = normalize_identifier(raw_identifier)
        except BarcodeValidationError as e:
            logger.info("Rejected barcode", barcode=raw_identifier, error=str(e))
            return LookupOutcome.failed(ErrorKind.INVALID_BARCODE)

        try:
            return await self._lookup_identifier(identifier)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Barcode lookup failed unexpectedly", identifier=identifier)
            return LookupOutcome.failed(ErrorKind.SERVER_ERROR)

    async def _lookup_identifier(self, identifier: str) -> LookupOutcome:
        entry = await self.cache.get(identifier)
        if entry is not None and self.cache.is_fresh(entry):
            logger.info("Barcode cache hit", identifier=identifier, source=entry.result.source)
            return self._resolved(entry.result, was_cached=True)

        info = describe_identifier(identifier)
        logger.info(
            "Barcode cache miss",
            identifier=identifier,
            stale=entry is not None,
            format_type=info.format_type,
            checksum_valid=info.checksum_valid
        )

        fallback = await self.orchestrator.resolve_with_fallback(identifier)
        if not fallback.found:
            return LookupOutcome.failed(ErrorKind.BARCODE_NOT_FOUND)

        await self._write_back(identifier, fallback.result)
        return self._resolved(fallback.result, was_cached=False)

    async def _write_back(self, identifier: str, result):
        """Store a fresh resolution; a failed write never costs the caller the result."""
        try:
            await self.cache.put(identifier, result)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Cache write-back failed", identifier=identifier, error=repr(e))

    @staticmethod
    def _resolved(result, was_cached: bool) -> LookupOutcome:
        return LookupOutcome.resolved(
            result,
            was_cached=was_cached,
            suggested_warranty=suggest_warranty(result.brand, result.category)
        )

    async def close(self):
        """Ferme toutes les connexions des sources."""
        for source in self.orchestrator.sources:
            try:
                await source.close()
            except Exception as e:
                logger.warning("Failed to close source", source=source.provider_name, error=str(e))


def create_barcode_lookup_service(config: Optional[Settings] = None,
                                  store: Optional[IDocumentStore] = None) -> BarcodeLookupService:
    """Wire sources, orchestrator and cache from settings."""
    config = config or default_settings
    sources = BarcodeServiceFactory.create_sources(
        config.barcode_source_order,
        timeout=config.barcode_source_timeout,
        user_agent=config.http_user_agent
    )
    cache = BarcodeResultCache(
        store or RedisDocumentStore(),
        ttl=timedelta(days=config.barcode_cache_ttl_days)
    )

    logger.info(
        "Barcode lookup service created",
        sources=[source.provider_name for source in sources],
        cache_ttl_days=config.barcode_cache_ttl_days
    )
    return BarcodeLookupService(FallbackOrchestrator(sources), cache)


# Instance globale singleton
_lookup_service: Optional[BarcodeLookupService] = None


def get_barcode_lookup_service() -> BarcodeLookupService:
    """Process-wide lookup service built from the global settings."""
    global _lookup_service
    if _lookup_service is None:
        _lookup_service = create_barcode_lookup_service()
    return _lookup_service


async def lookup_barcode(raw_identifier: Any) -> LookupOutcome:
    """Lookup rapide d'un code-barres."""
    return await get_barcode_lookup_service().lookup(raw_identifier)
