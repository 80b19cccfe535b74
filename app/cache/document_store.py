"""
Document store abstraction used by the lookup cache and analytics sink.

Architecture Pattern : Repository Pattern + Strategy Pattern
Backends : Redis (production), in-memory (tests and local development)
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import structlog

from app.cache.redis_client import RedisClient, CacheKeys, redis_client

logger = structlog.get_logger(__name__)


class IDocumentStore(ABC):
    """
    Minimal key/document contract over an external document database.

    Implementations must provide atomic per-key read and overwrite; no
    cross-key transactions are required.
    """

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """
        Read one document.

        Returns:
            The stored document or None when absent
        """
        pass

    @abstractmethod
    async def set(self, collection: str, key: str, document: Dict[str, Any]) -> bool:
        """Overwrite the document stored under key."""
        pass

    @abstractmethod
    async def add(self, collection: str, document: Dict[str, Any]) -> bool:
        """Append a document to a collection without a caller-chosen key."""
        pass


class InMemoryDocumentStore(IDocumentStore):
    """Dictionary-backed store. Not shared across processes."""

    def __init__(self):
        self._documents: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._appended: Dict[str, List[Dict[str, Any]]] = {}

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        document = self._documents.get(collection, {}).get(key)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, collection: str, key: str, document: Dict[str, Any]) -> bool:
        self._documents.setdefault(collection, {})[key] = copy.deepcopy(document)
        return True

    async def add(self, collection: str, document: Dict[str, Any]) -> bool:
        self._appended.setdefault(collection, []).append(copy.deepcopy(document))
        return True

    def documents(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Keyed documents of a collection (inspection helper)."""
        return self._documents.get(collection, {})

    def appended(self, collection: str) -> List[Dict[str, Any]]:
        """Documents appended to a collection (inspection helper)."""
        return self._appended.get(collection, [])


class RedisDocumentStore(IDocumentStore):
    """Document store over Redis: one JSON string per key, one list per log."""

    def __init__(self, client: Optional[RedisClient] = None):
        self.redis = client or redis_client

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        document = await self.redis.get(CacheKeys.document(collection, key))
        if document is not None and not isinstance(document, dict):
            logger.warning("Ignoring non-document value", collection=collection, key=key)
            return None
        return document

    async def set(self, collection: str, key: str, document: Dict[str, Any]) -> bool:
        return await self.redis.set(CacheKeys.document(collection, key), document)

    async def add(self, collection: str, document: Dict[str, Any]) -> bool:
        return await self.redis.push(CacheKeys.collection_log(collection), document)
