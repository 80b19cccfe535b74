"""
Interfaces pour l'identification de produits par image.

Architecture Pattern : Strategy + Dependency Injection + Interface Segregation
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
import structlog

from app.services.outcomes import ErrorKind, error_response, success_response

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VisionDescription:
    """Structured product description returned by a vision adapter."""
    name: str
    confidence: float
    brand: Optional[str] = None
    category: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    estimated_year: Optional[int] = None

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")


@dataclass(frozen=True)
class IdentificationResult:
    """Accepted identification, enriched with a warranty suggestion."""
    name: str
    confidence_score: float
    suggested_warranty: str
    brand: Optional[str] = None
    category: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    estimated_year: Optional[int] = None

    @classmethod
    def from_description(cls, description: VisionDescription, suggested_warranty: str) -> "IdentificationResult":
        return cls(
            name=description.name,
            confidence_score=description.confidence,
            suggested_warranty=suggested_warranty,
            brand=description.brand,
            category=description.category,
            model=description.model,
            color=description.color,
            estimated_year=description.estimated_year
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "model": self.model,
            "color": self.color,
            "estimatedYear": self.estimated_year,
            "confidence": self.confidence_score,
            "suggestedWarranty": self.suggested_warranty,
        }


@dataclass(frozen=True)
class IdentificationOutcome:
    """Success with a full result, or failure with an error kind."""
    success: bool
    result: Optional[IdentificationResult] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def identified(cls, result: IdentificationResult) -> "IdentificationOutcome":
        return cls(success=True, result=result)

    @classmethod
    def failed(cls, error_kind: ErrorKind) -> "IdentificationOutcome":
        return cls(success=False, error_kind=error_kind)

    def to_response(self) -> Dict[str, Any]:
        if not self.success:
            return error_response(self.error_kind)
        return success_response(self.result.to_payload())


class IVisionAdapter(ABC):
    """Interface for vision-model providers following Strategy Pattern."""

    @abstractmethod
    async def describe(self, image_url: str) -> VisionDescription:
        """
        Describe the product visible in an image.

        Args:
            image_url: http(s) URL or data URL of the image

        Returns:
            VisionDescription with confidence in [0, 1]

        Raises:
            VisionServiceError: or one of its subclasses
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @property
    def timeout(self) -> float:
        """Upper bound for one describe() call, in seconds."""
        return 30.0

    async def close(self):
        pass


class IAnalyticsSink(ABC):
    """Write-only destination for identification attempt records."""

    @abstractmethod
    async def record(self, event: Dict[str, Any]) -> None:
        pass


class VisionServiceError(Exception):
    """Exception base pour les providers de vision."""

    def __init__(self, message: str, provider: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.error_code = error_code


class VisionQuotaError(VisionServiceError):
    """Rate limit or exhausted quota; retrying later should work."""

    @property
    def quota_exhausted(self) -> bool:
        return self.error_code == "insufficient_quota"


class VisionResponseError(VisionServiceError):
    """Empty or malformed model answer."""

    def __init__(self, message: str, provider: Optional[str] = None, empty: bool = False):
        super().__init__(message, provider=provider, error_code="no_response" if empty else "parse_error")
        self.empty = empty


class VisionImageError(VisionServiceError):
    """The provider could not fetch or decode the image."""
    pass
