"""
Identification de produits par photo.

Valide l'image, demande une description à l'adapter de vision, rejette les
réponses peu sûres, ajoute une garantie suggérée aux résultats acceptés et
enregistre chaque tentative pour l'analytics.
"""

import asyncio
from typing import Any, Optional, Set
import aiohttp
import structlog

from app.cache.document_store import IDocumentStore, RedisDocumentStore
from app.core.config import Settings, settings as default_settings
from app.services.outcomes import ErrorKind
from app.services.warranty import suggest_warranty
from .analytics import DocumentStoreAnalyticsSink, build_identification_event
from .image_input import prepare_image_url, validate_image
from .interfaces import (
    IAnalyticsSink, IVisionAdapter, IdentificationOutcome, IdentificationResult,
    VisionDescription, VisionServiceError, VisionQuotaError, VisionResponseError,
    VisionImageError
)
from .openai_vision import OpenAIVisionAdapter

logger = structlog.get_logger(__name__)

# Results scoring below this are reported as LOW_CONFIDENCE, never returned.
MIN_IDENTIFICATION_CONFIDENCE = 0.7


class ProductIdentificationService:
    """
    AI Identification Service.

    Args:
        vision: Adapter producing product descriptions
        analytics: Sink receiving one record per attempt (optional)
        min_confidence: Inclusive acceptance threshold in [0, 1]
    """

    def __init__(self, vision: IVisionAdapter, analytics: Optional[IAnalyticsSink] = None,
                 min_confidence: float = MIN_IDENTIFICATION_CONFIDENCE):
        if not 0.0 <= min_confidence <= 1.0:
            raise ValueError("min_confidence must be within [0, 1]")
        self.vision = vision
        self.analytics = analytics
        self.min_confidence = min_confidence
        self._pending_records: Set[asyncio.Task] = set()

    async def identify(self, image_data: Any, requester_id: Optional[str]) -> IdentificationOutcome:
        """
        Identify the product shown in image_data.

        Args:
            image_data: http(s) URL, data URL or bare base64 payload
            requester_id: User the attempt is recorded for

        Returns:
            IdentificationOutcome; never raises for input or provider problems
        """
        confidence: Optional[float] = None

        invalid = validate_image(image_data)
        if invalid is not None:
            logger.info("Rejected image input", requester_id=requester_id, error_code=invalid.value)
            outcome = IdentificationOutcome.failed(invalid)
        else:
            try:
                description = await asyncio.wait_for(
                    self.vision.describe(prepare_image_url(image_data)),
                    timeout=self.vision.timeout
                )
                confidence = description.confidence
                outcome = self._evaluate(description)
            except asyncio.CancelledError:
                raise
            except VisionQuotaError as e:
                logger.warning("Vision provider quota hit", provider=e.provider, error_code=e.error_code)
                kind = ErrorKind.AI_QUOTA_EXCEEDED if e.quota_exhausted else ErrorKind.RATE_LIMIT
                outcome = IdentificationOutcome.failed(kind)
            except VisionResponseError as e:
                logger.warning("Unusable vision response", provider=e.provider, error=str(e))
                kind = ErrorKind.NO_RESPONSE if e.empty else ErrorKind.PARSE_ERROR
                outcome = IdentificationOutcome.failed(kind)
            except VisionImageError as e:
                logger.warning("Vision provider rejected image", provider=e.provider, error_code=e.error_code)
                outcome = IdentificationOutcome.failed(ErrorKind.INVALID_IMAGE)
            except (VisionServiceError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error("Vision provider failed", provider=self.vision.provider_name, error=repr(e))
                outcome = IdentificationOutcome.failed(ErrorKind.IDENTIFICATION_FAILED)
            except Exception:
                logger.exception("Product identification failed unexpectedly", requester_id=requester_id)
                outcome = IdentificationOutcome.failed(ErrorKind.SERVER_ERROR)

        self._record(build_identification_event(requester_id, outcome, confidence))
        return outcome

    def _evaluate(self, description: VisionDescription) -> IdentificationOutcome:
        if description.confidence < self.min_confidence:
            logger.info(
                "Identification below confidence threshold",
                confidence=description.confidence,
                threshold=self.min_confidence
            )
            return IdentificationOutcome.failed(ErrorKind.LOW_CONFIDENCE)

        if "no product" in description.name.lower():
            return IdentificationOutcome.failed(ErrorKind.NO_PRODUCT)

        result = IdentificationResult.from_description(
            description,
            suggested_warranty=suggest_warranty(description.brand, description.category)
        )
        logger.info(
            "Product identified",
            name=result.name,
            brand=result.brand,
            confidence=result.confidence_score
        )
        return IdentificationOutcome.identified(result)

    def _record(self, event: dict):
        if self.analytics is None:
            return
        task = asyncio.create_task(self._safe_record(event))
        self._pending_records.add(task)
        task.add_done_callback(self._pending_records.discard)

    async def _safe_record(self, event: dict):
        try:
            await self.analytics.record(event)
        except Exception as e:
            logger.warning("Failed to record product identification", error=str(e))

    async def wait_for_analytics(self):
        """Wait until every scheduled analytics record has been written or dropped."""
        if self._pending_records:
            await asyncio.gather(*list(self._pending_records))

    async def close(self):
        await self.wait_for_analytics()
        await self.vision.close()


def create_identification_service(config: Optional[Settings] = None,
                                  store: Optional[IDocumentStore] = None) -> ProductIdentificationService:
    """Wire the OpenAI adapter and analytics sink from settings."""
    config = config or default_settings
    vision = OpenAIVisionAdapter(
        api_key=config.openai_api_key,
        model=config.vision_model,
        timeout=config.vision_timeout,
        max_tokens=config.vision_max_tokens,
        temperature=config.vision_temperature,
        user_agent=config.http_user_agent
    )
    analytics = DocumentStoreAnalyticsSink(store or RedisDocumentStore())
    return ProductIdentificationService(
        vision,
        analytics=analytics,
        min_confidence=config.min_identification_confidence
    )


_identification_service: Optional[ProductIdentificationService] = None


def get_identification_service() -> ProductIdentificationService:
    """Process-wide identification service built from the global settings."""
    global _identification_service
    if _identification_service is None:
        _identification_service = create_identification_service()
    return _identification_service


async def identify_product(image_data: Any, requester_id: Optional[str]) -> IdentificationOutcome:
    """Identification rapide d'un produit."""
    return await get_identification_service().identify(image_data, requester_id)
