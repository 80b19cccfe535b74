"""
Shared base for the HTTP barcode adapters.

Handles the HTTP session lifecycle, the per-call timeout and the collapse of
ordinary failures into tagged SourceOutcome values. Subclasses only build the
request URL and map the provider payload.

Architecture Pattern : Template Method + Strategy Pattern + Async/Await
"""

import asyncio
import json
from abc import abstractmethod
from typing import Any, Dict, FrozenSet, Optional
import aiohttp
import structlog

from .interfaces import (
    IBarcodeSource, LookupResult, SourceOutcome,
    BarcodeServiceError, BarcodeRateLimitError
)

logger = structlog.get_logger(__name__)


def clean_text(value: Any) -> Optional[str]:
    """
    Collapse provider field variants to Optional[str].

    Absent, null, non-string and blank values all map to None; anything else
    is returned stripped.
    """
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class HttpBarcodeSource(IBarcodeSource):
    """
    Adapter HTTP générique vers un provider JSON.

    Fonctionnalités :
    - Session aiohttp paresseuse, fermée via close()
    - Timeout borné par appel (asyncio.wait_for)
    - 404 (et statuts déclarés) -> NoMatch
    - 429, 5xx, JSON invalide, timeout, erreur réseau -> TransientError
    """

    # Statuts signifiant "produit inconnu" plutôt qu'une panne
    not_found_statuses: FrozenSet[int] = frozenset({404})

    def __init__(self, timeout: float = 5.0, user_agent: str = "WarrantyLookup/1.0"):
        self._timeout = timeout
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def timeout(self) -> float:
        return self._timeout

    @abstractmethod
    def build_url(self, identifier: str) -> str:
        """URL of the provider lookup endpoint for identifier."""
        pass

    @abstractmethod
    def map_response(self, payload: Dict[str, Any]) -> Optional[LookupResult]:
        """
        Map a decoded provider payload to a LookupResult.

        Returns:
            LookupResult, or None when the payload means "no such product"
        """
        pass

    def make_result(self, name: Optional[str], brand: Any = None,
                    category: Any = None, model: Any = None) -> Optional[LookupResult]:
        """Build a result tagged with this provider, None when name is missing."""
        name = clean_text(name)
        if name is None:
            return None
        return LookupResult(
            name=name,
            brand=clean_text(brand),
            category=clean_text(category),
            model=clean_text(model),
            confidence_tier=self.confidence_tier,
            source=self.provider_name
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Obtient ou crée une session HTTP."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            headers = {
                "User-Agent": self.user_agent,
                "Accept": "application/json",
            }
            self._session = aiohttp.ClientSession(timeout=timeout, headers=headers)
        return self._session

    async def close(self):
        """Ferme la session HTTP."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _fetch_json(self, url: str) -> Optional[Dict[str, Any]]:
        """
        GET url and decode the JSON body.

        Returns:
            Decoded payload, or None for a not-found status

        Raises:
            BarcodeRateLimitError: HTTP 429
            BarcodeServiceError: any other unexpected status
        """
        session = await self._get_session()
        async with session.get(url) as response:
            if response.status in self.not_found_statuses:
                return None

            if response.status == 429:
                raise BarcodeRateLimitError("Rate limit exceeded", provider=self.provider_name)

            if response.status != 200:
                raise BarcodeServiceError(
                    f"HTTP {response.status}: {response.reason}",
                    provider=self.provider_name
                )

            return await response.json(content_type=None)

    async def resolve(self, identifier: str) -> SourceOutcome:
        """Call the provider once and tag what happened."""
        url = self.build_url(identifier)
        logger.debug("Querying barcode source", source=self.provider_name, identifier=identifier)

        try:
            payload = await asyncio.wait_for(self._fetch_json(url), timeout=self._timeout)
        except asyncio.TimeoutError:
            return self._transient(identifier, f"Request timeout after {self._timeout}s")
        except BarcodeServiceError as e:
            return self._transient(identifier, str(e))
        except aiohttp.ClientError as e:
            return self._transient(identifier, f"Network error: {e}")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return self._transient(identifier, f"Malformed payload: {e}")

        if payload is None:
            logger.info("Product not found", source=self.provider_name, identifier=identifier)
            return SourceOutcome.no_match(self.provider_name)

        if not isinstance(payload, dict):
            return self._transient(identifier, "Malformed payload: expected a JSON object")

        try:
            result = self.map_response(payload)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            return self._transient(identifier, f"Malformed payload: {e!r}")

        if result is None:
            logger.info("Product not found", source=self.provider_name, identifier=identifier)
            return SourceOutcome.no_match(self.provider_name)

        return SourceOutcome.found(self.provider_name, result)

    def _transient(self, identifier: str, cause: str) -> SourceOutcome:
        logger.warning(
            "Barcode source failed",
            source=self.provider_name,
            identifier=identifier,
            error=cause
        )
        return SourceOutcome.transient_error(self.provider_name, cause)
