"""
Identification de produits par image (modèle de vision).

Composants :
- IVisionAdapter : interface des providers de vision
- OpenAIVisionAdapter : implémentation via chat completions OpenAI
- ProductIdentificationService : validation, seuil de confiance, garantie suggérée
- DocumentStoreAnalyticsSink : enregistrement des tentatives sans attente
"""

from .interfaces import (
    IVisionAdapter,
    IAnalyticsSink,
    VisionDescription,
    IdentificationResult,
    IdentificationOutcome,
    VisionServiceError,
    VisionQuotaError,
    VisionResponseError,
    VisionImageError
)
from .image_input import validate_image, prepare_image_url
from .openai_vision import OpenAIVisionAdapter, parse_vision_content
from .analytics import DocumentStoreAnalyticsSink, build_identification_event
from .service import (
    MIN_IDENTIFICATION_CONFIDENCE,
    ProductIdentificationService,
    create_identification_service,
    get_identification_service,
    identify_product
)

__all__ = [
    # Interfaces
    "IVisionAdapter",
    "IAnalyticsSink",
    "VisionDescription",
    "IdentificationResult",
    "IdentificationOutcome",

    # Exceptions
    "VisionServiceError",
    "VisionQuotaError",
    "VisionResponseError",
    "VisionImageError",

    # Implementations
    "validate_image",
    "prepare_image_url",
    "OpenAIVisionAdapter",
    "parse_vision_content",
    "DocumentStoreAnalyticsSink",
    "build_identification_event",

    # Service
    "MIN_IDENTIFICATION_CONFIDENCE",
    "ProductIdentificationService",
    "create_identification_service",
    "get_identification_service",
    "identify_product"
]
