"""
Analytics records for identification attempts.

Records are fire-and-forget: they are never read back by the identification
flow and a failed write must not affect the caller.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import structlog

from app.cache.document_store import IDocumentStore
from app.cache.redis_client import Collections
from .interfaces import IAnalyticsSink, IdentificationOutcome

logger = structlog.get_logger(__name__)


class DocumentStoreAnalyticsSink(IAnalyticsSink):
    """Appends one document per attempt to a collection."""

    def __init__(self, store: IDocumentStore, collection: str = Collections.PRODUCT_IDENTIFICATIONS):
        self.store = store
        self.collection = collection

    async def record(self, event: Dict[str, Any]) -> None:
        stored = await self.store.add(self.collection, event)
        if not stored:
            logger.warning("Identification analytics write failed", collection=self.collection)


def build_identification_event(requester_id: Optional[str], outcome: IdentificationOutcome,
                               confidence: Optional[float] = None) -> Dict[str, Any]:
    """Flatten one attempt into an analytics document."""
    result = outcome.result
    return {
        "userId": requester_id,
        "success": outcome.success,
        "errorCode": outcome.error_kind.value if outcome.error_kind else None,
        "productName": result.name if result else None,
        "brand": result.brand if result else None,
        "category": result.category if result else None,
        "model": result.model if result else None,
        "color": result.color if result else None,
        "estimatedYear": result.estimated_year if result else None,
        "confidence": result.confidence_score if result else confidence,
        "suggestedWarranty": result.suggested_warranty if result else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
