"""
Lookup result cache, keyed by normalized identifier.

Entries are replaced wholesale and never evicted here; staleness is decided
on read by comparing cached_at with the TTL. Only successful resolutions are
ever written.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import structlog

from app.cache.document_store import IDocumentStore
from app.cache.redis_client import Collections
from .interfaces import LookupResult

logger = structlog.get_logger(__name__)

DEFAULT_CACHE_TTL = timedelta(days=30)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    """One cached resolution for one identifier."""
    key: str
    result: LookupResult
    cached_at: datetime

    def to_document(self) -> dict:
        return {
            "key": self.key,
            "result": self.result.to_dict(),
            "cached_at": self.cached_at.isoformat(),
        }

    @classmethod
    def from_document(cls, document: dict) -> "CacheEntry":
        return cls(
            key=document["key"],
            result=LookupResult.from_dict(document["result"]),
            cached_at=datetime.fromisoformat(document["cached_at"]),
        )


class BarcodeResultCache:
    """
    Read-through / write-through cache over an injected document store.

    Args:
        store: Backend holding one document per identifier
        ttl: Age after which an entry is stale
        clock: Returns the current aware datetime (injectable for tests)
    """

    def __init__(self, store: IDocumentStore, ttl: timedelta = DEFAULT_CACHE_TTL,
                 clock: Clock = utc_now, collection: str = Collections.BARCODE_CACHE):
        self.store = store
        self.ttl = ttl
        self.clock = clock
        self.collection = collection

    async def get(self, identifier: str) -> Optional[CacheEntry]:
        """Cached entry for identifier, fresh or stale; None on a miss or a store failure."""
        try:
            document = await self.store.get(self.collection, identifier)
        except Exception as e:
            logger.warning("Cache read failed, treating as miss", identifier=identifier, error=repr(e))
            return None

        if document is None:
            return None

        try:
            return CacheEntry.from_document(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Unreadable cache entry ignored", identifier=identifier, error=str(e))
            return None

    async def put(self, identifier: str, result: LookupResult) -> CacheEntry:
        """
        Unconditionally overwrite the entry for identifier.

        A failed store write is logged and skipped; the entry is returned either way.
        """
        entry = CacheEntry(key=identifier, result=result, cached_at=self.clock())
        try:
            stored = await self.store.set(self.collection, identifier, entry.to_document())
        except Exception as e:
            logger.warning("Cache write failed", identifier=identifier, error=repr(e))
            return entry

        if not stored:
            logger.warning("Cache write failed", identifier=identifier)
        return entry

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.cached_at < self.ttl
