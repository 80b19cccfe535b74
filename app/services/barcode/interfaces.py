"""
Interfaces pour les services de lookup de code-barres.
Contrats partagés par les adapters de sources, l'orchestrateur de fallback
et le service de lookup.

Architecture Pattern : Interface Segregation Principle (ISP)
Inspiration : Repository Pattern, Strategy Pattern
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from enum import Enum
import structlog

from app.services.outcomes import ErrorKind, error_response, success_response

logger = structlog.get_logger(__name__)


class BarcodeProvider(str, Enum):
    """Providers disponibles pour lookup de codes-barres."""
    UPCITEMDB = "upcitemdb"
    OPENFOODFACTS = "openfoodfacts"
    EANSEARCH = "eansearch"


class ConfidenceTier(str, Enum):
    """Coarse trust level a source assigns to every result it produces."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class LookupResult:
    """
    Product info resolved by exactly one source adapter.
    Immutable once produced; name is never empty.
    """
    name: str
    confidence_tier: ConfidenceTier
    source: str
    brand: Optional[str] = None
    category: Optional[str] = None
    model: Optional[str] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("LookupResult.name must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "model": self.model,
            "confidence_tier": self.confidence_tier.value,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LookupResult":
        return cls(
            name=data["name"],
            brand=data.get("brand"),
            category=data.get("category"),
            model=data.get("model"),
            confidence_tier=ConfidenceTier(data["confidence_tier"]),
            source=data["source"],
        )


class SourceStatus(str, Enum):
    """Why a source contributed (or did not contribute) a result."""
    FOUND = "found"
    NO_MATCH = "no_match"
    TRANSIENT_ERROR = "transient_error"


@dataclass(frozen=True)
class SourceOutcome:
    """Tagged result of one adapter call: Found(result) | NoMatch | TransientError(cause)."""
    source: str
    status: SourceStatus
    result: Optional[LookupResult] = None
    cause: Optional[str] = None

    @classmethod
    def found(cls, source: str, result: LookupResult) -> "SourceOutcome":
        return cls(source=source, status=SourceStatus.FOUND, result=result)

    @classmethod
    def no_match(cls, source: str) -> "SourceOutcome":
        return cls(source=source, status=SourceStatus.NO_MATCH)

    @classmethod
    def transient_error(cls, source: str, cause: str) -> "SourceOutcome":
        return cls(source=source, status=SourceStatus.TRANSIENT_ERROR, cause=cause)

    @property
    def is_found(self) -> bool:
        return self.status == SourceStatus.FOUND


@dataclass
class FallbackResult:
    """Answer of the fallback orchestrator: the winning result (or None) plus every attempt made."""
    result: Optional[LookupResult] = None
    attempts: List[SourceOutcome] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.result is not None

    @property
    def all_sources_unavailable(self) -> bool:
        """True when nothing matched and every attempted source failed transiently."""
        return (
            not self.found
            and bool(self.attempts)
            and all(a.status == SourceStatus.TRANSIENT_ERROR for a in self.attempts)
        )


@dataclass(frozen=True)
class LookupOutcome:
    """
    What the lookup service hands back to its caller.
    Success carries a full result; failure carries only an error kind.
    """
    success: bool
    result: Optional[LookupResult] = None
    was_cached: bool = False
    suggested_warranty: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def resolved(cls, result: LookupResult, was_cached: bool,
                 suggested_warranty: Optional[str] = None) -> "LookupOutcome":
        return cls(
            success=True,
            result=result,
            was_cached=was_cached,
            suggested_warranty=suggested_warranty
        )

    @classmethod
    def failed(cls, error_kind: ErrorKind) -> "LookupOutcome":
        return cls(success=False, error_kind=error_kind)

    def to_response(self) -> Dict[str, Any]:
        """JSON-ready envelope for the HTTP layer."""
        if not self.success:
            return error_response(self.error_kind)

        data = {
            "name": self.result.name,
            "brand": self.result.brand,
            "category": self.result.category,
            "model": self.result.model,
            "confidenceTier": self.result.confidence_tier.value,
            "source": self.result.source,
            "suggestedWarranty": self.suggested_warranty,
        }
        return success_response(data, cached=self.was_cached)


class IBarcodeSource(ABC):
    """
    Interface d'un adapter vers un provider externe de codes-barres.

    Responsabilités :
    - Appel au provider avec timeout borné
    - Normalisation de la réponse en LookupResult
    - Conversion de toute erreur ordinaire en NoMatch / TransientError
    """

    @abstractmethod
    async def resolve(self, identifier: str) -> SourceOutcome:
        """
        Resolve a normalized identifier.

        Args:
            identifier: Normalized product code

        Returns:
            SourceOutcome tagged FOUND, NO_MATCH or TRANSIENT_ERROR. Only
            cancellation propagates.
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Nom du provider utilisé."""
        pass

    @property
    @abstractmethod
    def confidence_tier(self) -> ConfidenceTier:
        """Tier attached to every result from this provider."""
        pass

    @property
    def timeout(self) -> float:
        """Per-call timeout in seconds."""
        return 5.0

    async def close(self):
        """Release network resources held by the adapter."""
        pass


class BarcodeServiceError(Exception):
    """Exception pour les erreurs de service de code-barres."""

    def __init__(self, message: str, provider: str = "", barcode: str = "", original_error: Exception = None):
        super().__init__(message)
        self.provider = provider
        self.barcode = barcode
        self.original_error = original_error


class BarcodeValidationError(BarcodeServiceError):
    """Exception pour les erreurs de validation de code-barres."""
    pass


class BarcodeRateLimitError(BarcodeServiceError):
    """Exception pour les limitations de rate limit."""
    pass
