"""
Unit tests for ProductIdentificationService: validation before inference,
confidence threshold, error mapping and fire-and-forget analytics.
"""

import asyncio
import pytest
import aiohttp

from app.cache.document_store import InMemoryDocumentStore
from app.cache.redis_client import Collections
from app.core.config import Settings
from app.services.identification.analytics import DocumentStoreAnalyticsSink
from app.services.identification.interfaces import (
    IAnalyticsSink,
    VisionDescription,
    VisionImageError,
    VisionQuotaError,
    VisionResponseError,
    VisionServiceError,
)
from app.services.identification.openai_vision import OpenAIVisionAdapter
from app.services.identification.service import (
    MIN_IDENTIFICATION_CONFIDENCE,
    ProductIdentificationService,
    create_identification_service,
)
from app.services.outcomes import ErrorKind


MACBOOK = VisionDescription(
    name="MacBook Pro 14-inch",
    brand="Apple",
    category="Electronics",
    model="A2442",
    color="Space Gray",
    estimated_year=2023,
    confidence=0.95
)


class FailingAnalyticsSink(IAnalyticsSink):
    async def record(self, event):
        raise ConnectionError("analytics store down")


class TestIdentification:

    @pytest.mark.asyncio
    async def test_identified_product_enriched(self, vision_factory, analytics_sink):
        service = ProductIdentificationService(vision_factory(MACBOOK), analytics_sink)

        outcome = await service.identify("https://cdn.example.com/laptop.jpg", "user-1")

        assert outcome.success
        assert outcome.result.name == "MacBook Pro 14-inch"
        assert outcome.result.confidence_score == pytest.approx(0.95)
        assert outcome.result.suggested_warranty == "1 year (Apple standard warranty)"

    @pytest.mark.asyncio
    async def test_success_envelope(self, vision_factory):
        service = ProductIdentificationService(vision_factory(MACBOOK))

        response = (await service.identify("https://cdn.example.com/laptop.jpg", "user-1")).to_response()

        assert response["success"] is True
        assert response["data"]["estimatedYear"] == 2023
        assert response["data"]["suggestedWarranty"] == "1 year (Apple standard warranty)"

    @pytest.mark.asyncio
    async def test_base64_sent_as_data_url(self, vision_factory, base64_image):
        vision = vision_factory(MACBOOK)
        service = ProductIdentificationService(vision)

        await service.identify(base64_image, "user-1")

        assert vision.calls == [f"data:image/jpeg;base64,{base64_image}"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("image,kind", [
        ("invalid-image", ErrorKind.INVALID_IMAGE_FORMAT),
        ("abc123", ErrorKind.IMAGE_TOO_SMALL),
        ("https://", ErrorKind.INVALID_IMAGE_URL),
        (None, ErrorKind.INVALID_IMAGE_FORMAT),
    ])
    async def test_invalid_input_never_reaches_model(self, vision_factory, image, kind):
        vision = vision_factory(MACBOOK)
        service = ProductIdentificationService(vision)

        outcome = await service.identify(image, "user-1")

        assert outcome.error_kind == kind
        assert vision.calls == []


class TestConfidenceThreshold:

    def test_default_threshold(self):
        assert MIN_IDENTIFICATION_CONFIDENCE == 0.7

    @pytest.mark.asyncio
    async def test_below_threshold_rejected(self, vision_factory):
        vision = vision_factory(VisionDescription(name="Toaster", confidence=0.69))
        service = ProductIdentificationService(vision)

        outcome = await service.identify("https://cdn.example.com/toaster.jpg", "user-1")

        assert outcome.error_kind == ErrorKind.LOW_CONFIDENCE
        assert outcome.result is None

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self, vision_factory):
        vision = vision_factory(VisionDescription(name="Toaster", confidence=0.70))
        service = ProductIdentificationService(vision)

        outcome = await service.identify("https://cdn.example.com/toaster.jpg", "user-1")

        assert outcome.success
        assert outcome.result.suggested_warranty == "Check manufacturer website"

    @pytest.mark.asyncio
    async def test_no_product_detected(self, vision_factory):
        vision = vision_factory(VisionDescription(name="No product detected", confidence=0.9))
        service = ProductIdentificationService(vision)

        outcome = await service.identify("https://cdn.example.com/wall.jpg", "user-1")

        assert outcome.error_kind == ErrorKind.NO_PRODUCT

    @pytest.mark.asyncio
    async def test_zero_confidence_no_product(self, vision_factory):
        vision = vision_factory(VisionDescription(name="No product detected", confidence=0.0))
        service = ProductIdentificationService(vision)

        outcome = await service.identify("https://cdn.example.com/wall.jpg", "user-1")

        assert outcome.error_kind == ErrorKind.LOW_CONFIDENCE

    def test_threshold_must_be_probability(self, vision_factory):
        with pytest.raises(ValueError):
            ProductIdentificationService(vision_factory(MACBOOK), min_confidence=1.2)


class TestErrorMapping:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error,kind", [
        (VisionQuotaError("quota", error_code="insufficient_quota"), ErrorKind.AI_QUOTA_EXCEEDED),
        (VisionQuotaError("slow down", error_code="rate_limit_exceeded"), ErrorKind.RATE_LIMIT),
        (VisionResponseError("empty", empty=True), ErrorKind.NO_RESPONSE),
        (VisionResponseError("garbled"), ErrorKind.PARSE_ERROR),
        (VisionImageError("bad image", error_code="invalid_image_url"), ErrorKind.INVALID_IMAGE),
        (VisionServiceError("HTTP 500", error_code="HTTP_500"), ErrorKind.IDENTIFICATION_FAILED),
        (aiohttp.ClientConnectionError("reset"), ErrorKind.IDENTIFICATION_FAILED),
        (asyncio.TimeoutError(), ErrorKind.IDENTIFICATION_FAILED),
        (RuntimeError("bug"), ErrorKind.SERVER_ERROR),
    ])
    async def test_provider_errors(self, vision_factory, error, kind):
        service = ProductIdentificationService(vision_factory(error=error))

        outcome = await service.identify("https://cdn.example.com/laptop.jpg", "user-1")

        assert not outcome.success
        assert outcome.error_kind == kind

    @pytest.mark.asyncio
    async def test_quota_errors_are_retryable(self, vision_factory):
        service = ProductIdentificationService(
            vision_factory(error=VisionQuotaError("quota", error_code="insufficient_quota"))
        )

        response = (await service.identify("https://cdn.example.com/laptop.jpg", "user-1")).to_response()

        assert response["error"]["code"] == "AI_QUOTA_EXCEEDED"
        assert response["error"]["retryable"] is True

    @pytest.mark.asyncio
    async def test_slow_model_times_out(self, vision_factory):
        vision = vision_factory(MACBOOK, timeout=0.01)

        async def slow_describe(image_url):
            await asyncio.sleep(1)

        vision.describe = slow_describe
        outcome = await ProductIdentificationService(vision).identify(
            "https://cdn.example.com/laptop.jpg", "user-1"
        )

        assert outcome.error_kind == ErrorKind.IDENTIFICATION_FAILED


class TestAnalytics:

    @pytest.mark.asyncio
    async def test_success_recorded(self, vision_factory, analytics_sink):
        service = ProductIdentificationService(vision_factory(MACBOOK), analytics_sink)

        await service.identify("https://cdn.example.com/laptop.jpg", "user-1")
        await service.wait_for_analytics()

        assert len(analytics_sink.events) == 1
        event = analytics_sink.events[0]
        assert event["userId"] == "user-1"
        assert event["success"] is True
        assert event["errorCode"] is None
        assert event["productName"] == "MacBook Pro 14-inch"
        assert event["suggestedWarranty"] == "1 year (Apple standard warranty)"
        assert event["timestamp"]

    @pytest.mark.asyncio
    async def test_low_confidence_recorded_with_score(self, vision_factory, analytics_sink):
        vision = vision_factory(VisionDescription(name="Toaster", confidence=0.4))
        service = ProductIdentificationService(vision, analytics_sink)

        await service.identify("https://cdn.example.com/toaster.jpg", "user-2")
        await service.wait_for_analytics()

        event = analytics_sink.events[0]
        assert event["success"] is False
        assert event["errorCode"] == "LOW_CONFIDENCE"
        assert event["confidence"] == pytest.approx(0.4)
        assert event["productName"] is None

    @pytest.mark.asyncio
    async def test_invalid_input_recorded(self, vision_factory, analytics_sink):
        service = ProductIdentificationService(vision_factory(MACBOOK), analytics_sink)

        await service.identify("abc123", "user-3")
        await service.wait_for_analytics()

        assert analytics_sink.events[0]["errorCode"] == "IMAGE_TOO_SMALL"

    @pytest.mark.asyncio
    async def test_failing_analytics_does_not_affect_result(self, vision_factory):
        service = ProductIdentificationService(vision_factory(MACBOOK), FailingAnalyticsSink())

        outcome = await service.identify("https://cdn.example.com/laptop.jpg", "user-1")
        await service.wait_for_analytics()

        assert outcome.success

    @pytest.mark.asyncio
    async def test_document_store_sink(self, vision_factory):
        store = InMemoryDocumentStore()
        service = ProductIdentificationService(vision_factory(MACBOOK), DocumentStoreAnalyticsSink(store))

        await service.identify("https://cdn.example.com/laptop.jpg", "user-1")
        await service.close()

        events = store.appended(Collections.PRODUCT_IDENTIFICATIONS)
        assert [e["productName"] for e in events] == ["MacBook Pro 14-inch"]


class TestServiceWiring:

    def test_built_from_settings(self):
        config = Settings(openai_api_key="sk-test", vision_model="gpt-4o-mini", min_identification_confidence=0.8)

        service = create_identification_service(config, store=InMemoryDocumentStore())

        assert isinstance(service.vision, OpenAIVisionAdapter)
        assert service.vision.model == "gpt-4o-mini"
        assert service.min_confidence == 0.8
        assert isinstance(service.analytics, DocumentStoreAnalyticsSink)
