"""
Test configuration and shared fixtures.
Everything runs in memory: fake sources, fake vision adapter, in-memory
document store and a controllable clock.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from app.cache.document_store import InMemoryDocumentStore
from app.services.barcode.cache import BarcodeResultCache
from app.services.barcode.interfaces import (
    IBarcodeSource, ConfidenceTier, LookupResult, SourceOutcome
)
from app.services.barcode.manager import BarcodeLookupService
from app.services.barcode.orchestrator import FallbackOrchestrator
from app.services.identification.interfaces import (
    IAnalyticsSink, IVisionAdapter, VisionDescription
)


TOWEL_SET = "Grandeur Cotton Hospitality 6-piece Towel Set"


class FakeClock:
    """Mutable clock for TTL tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeSource(IBarcodeSource):
    """Scripted source answering from a dict; records every identifier it receives."""

    def __init__(self, name: str, tier: ConfidenceTier = ConfidenceTier.HIGH,
                 products: Optional[Dict[str, str]] = None, fail_with: Optional[str] = None):
        self.name = name
        self.tier = tier
        self.products = products or {}
        self.fail_with = fail_with
        self.calls: List[str] = []
        self.closed = False

    @property
    def provider_name(self) -> str:
        return self.name

    @property
    def confidence_tier(self) -> ConfidenceTier:
        return self.tier

    async def resolve(self, identifier: str) -> SourceOutcome:
        self.calls.append(identifier)
        if self.fail_with:
            return SourceOutcome.transient_error(self.name, self.fail_with)
        if identifier not in self.products:
            return SourceOutcome.no_match(self.name)
        result = LookupResult(
            name=self.products[identifier],
            confidence_tier=self.tier,
            source=self.name
        )
        return SourceOutcome.found(self.name, result)

    async def close(self):
        self.closed = True


class FakeVisionAdapter(IVisionAdapter):
    """Returns a fixed description or raises a fixed error."""

    def __init__(self, description: Optional[VisionDescription] = None, error: Optional[Exception] = None,
                 timeout: float = 30.0):
        self.description = description
        self.error = error
        self._timeout = timeout
        self.calls: List[str] = []

    @property
    def provider_name(self) -> str:
        return "fake-vision"

    @property
    def timeout(self) -> float:
        return self._timeout

    async def describe(self, image_url: str) -> VisionDescription:
        self.calls.append(image_url)
        if self.error is not None:
            raise self.error
        return self.description


class RecordingAnalyticsSink(IAnalyticsSink):
    def __init__(self):
        self.events: List[dict] = []

    async def record(self, event: dict) -> None:
        self.events.append(event)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def result_cache(document_store, clock) -> BarcodeResultCache:
    return BarcodeResultCache(document_store, clock=clock)


@pytest.fixture
def primary_source() -> FakeSource:
    return FakeSource("primary", ConfidenceTier.HIGH, products={"5901234123457": TOWEL_SET})


@pytest.fixture
def secondary_source() -> FakeSource:
    return FakeSource("secondary", ConfidenceTier.MEDIUM, products={"3017620422003": "Nutella"})


@pytest.fixture
def tertiary_source() -> FakeSource:
    return FakeSource("tertiary", ConfidenceTier.MEDIUM, products={"0051000012510": "Coca-Cola Classic"})


@pytest.fixture
def sources(primary_source, secondary_source, tertiary_source) -> List[FakeSource]:
    return [primary_source, secondary_source, tertiary_source]


@pytest.fixture
def lookup_service(sources, result_cache) -> BarcodeLookupService:
    return BarcodeLookupService(FallbackOrchestrator(sources), result_cache)


@pytest.fixture
def analytics_sink() -> RecordingAnalyticsSink:
    return RecordingAnalyticsSink()


# Long enough to pass the minimum size check, valid base64 alphabet
SAMPLE_BASE64_IMAGE = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA" * 3


@pytest.fixture
def source_factory():
    return FakeSource


@pytest.fixture
def vision_factory():
    return FakeVisionAdapter


@pytest.fixture
def base64_image() -> str:
    return SAMPLE_BASE64_IMAGE
