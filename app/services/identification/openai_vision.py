"""
OpenAI provider for image-based product identification.

Calls the chat completions endpoint with an image part and asks for a JSON
product description with a self-reported confidence.
"""

import json
import re
from typing import Any, Dict, Optional
import aiohttp
import structlog

from .interfaces import (
    IVisionAdapter, VisionDescription, VisionServiceError, VisionQuotaError,
    VisionResponseError, VisionImageError
)

logger = structlog.get_logger(__name__)


IDENTIFICATION_PROMPT = """Identify this product. Analyze the image carefully and return the following information in JSON format:
{
  "name": "Product name",
  "brand": "Brand name",
  "category": "Product category (e.g., Electronics, Appliances, Furniture)",
  "model": "Model number or name if visible",
  "color": "Product color",
  "estimatedYear": Year as number (e.g., 2023),
  "confidence": Confidence score between 0 and 1 (e.g., 0.95)
}

Important:
- Be specific with the product name (e.g., "MacBook Pro 14-inch" not just "Laptop")
- Only include fields if you can determine them from the image
- Confidence should reflect how certain you are about the identification
- If no product is clearly visible, set confidence to 0 and name to "No product detected"."""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_IMAGE_ERROR_CODES = {"invalid_image_url", "invalid_image", "image_parse_error", "invalid_image_format"}


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _optional_year(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_vision_content(content: Optional[str], provider: str = "openai") -> VisionDescription:
    """
    Extract the product description from the model's text answer.

    Raises:
        VisionResponseError: empty answer, no JSON object, missing name,
            non-numeric or out-of-range confidence
    """
    if not content or not content.strip():
        raise VisionResponseError("Empty model response", provider=provider, empty=True)

    match = _JSON_OBJECT.search(content)
    if not match:
        raise VisionResponseError("No JSON object in model response", provider=provider)

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise VisionResponseError(f"Invalid JSON in model response: {e}", provider=provider)

    if not isinstance(parsed, dict):
        raise VisionResponseError("Model response is not a JSON object", provider=provider)

    name = _optional_text(parsed.get("name"))
    confidence = parsed.get("confidence")
    if name is None or isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise VisionResponseError("Missing required fields in model response", provider=provider)

    if not 0.0 <= confidence <= 1.0:
        raise VisionResponseError(f"Confidence out of range: {confidence}", provider=provider)

    estimated_year = parsed.get("estimatedYear")
    if estimated_year is None:
        estimated_year = parsed.get("estimated_year")

    return VisionDescription(
        name=name,
        confidence=float(confidence),
        brand=_optional_text(parsed.get("brand")),
        category=_optional_text(parsed.get("category")),
        model=_optional_text(parsed.get("model")),
        color=_optional_text(parsed.get("color")),
        estimated_year=_optional_year(estimated_year)
    )


class OpenAIVisionAdapter(IVisionAdapter):
    """
    Vision adapter over the OpenAI chat completions API.

    Features:
    - Image by URL or data URL
    - Low temperature for stable answers
    - 429 -> VisionQuotaError (insufficient_quota or rate limit)
    """

    BASE_URL = "https://api.openai.com/v1"

    def __init__(self, api_key: Optional[str], model: str = "gpt-4o", timeout: float = 30.0,
                 max_tokens: int = 500, temperature: float = 0.2,
                 user_agent: str = "WarrantyLookup/1.0"):
        self.api_key = api_key
        self.model = model
        self._timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.user_agent = user_agent
        self.session: Optional[aiohttp.ClientSession] = None

        logger.info("Vision adapter initialized", model=model, timeout=timeout)

    @property
    def provider_name(self) -> str:
        return f"OpenAI-{self.model}"

    @property
    def timeout(self) -> float:
        return self._timeout

    async def describe(self, image_url: str) -> VisionDescription:
        if not self.api_key:
            raise VisionServiceError(
                "OpenAI API key not provided",
                provider=self.provider_name,
                error_code="missing_api_key"
            )

        response_data = await self._send_request(self._prepare_request(image_url))

        try:
            content = response_data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        return parse_vision_content(content, provider=self.provider_name)

    def _prepare_request(self, image_url: str) -> Dict[str, Any]:
        """Prépare la requête pour l'API OpenAI."""
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": IDENTIFICATION_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def _init_session(self):
        """Initialise la session HTTP."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": self.user_agent
        }

        timeout = aiohttp.ClientTimeout(total=self._timeout)
        self.session = aiohttp.ClientSession(headers=headers, timeout=timeout)

    async def _send_request(self, request_data: Dict[str, Any]) -> Dict[str, Any]:
        """Envoie la requête à l'API OpenAI."""
        if self.session is None or self.session.closed:
            await self._init_session()

        async with self.session.post(f"{self.BASE_URL}/chat/completions", json=request_data) as response:
            if response.status == 200:
                try:
                    return await response.json(content_type=None)
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    raise VisionResponseError(f"Undecodable API response: {e}", provider=self.provider_name)

            error_code = await self._error_code(response)

            if response.status == 429:
                raise VisionQuotaError(
                    f"Rate limit exceeded ({error_code or 'rate_limit_exceeded'})",
                    provider=self.provider_name,
                    error_code=error_code or "rate_limit_exceeded"
                )

            if error_code in _IMAGE_ERROR_CODES:
                raise VisionImageError(
                    "Provider rejected the image",
                    provider=self.provider_name,
                    error_code=error_code
                )

            raise VisionServiceError(
                f"API request failed: {response.status}",
                provider=self.provider_name,
                error_code=error_code or f"HTTP_{response.status}"
            )

    @staticmethod
    async def _error_code(response: aiohttp.ClientResponse) -> Optional[str]:
        """OpenAI error code from an error body, if any."""
        try:
            body = await response.json(content_type=None)
        except (json.JSONDecodeError, UnicodeDecodeError, aiohttp.ClientError):
            return None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return body["error"].get("code")
        return None

    async def close(self):
        """Ferme la session HTTP."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None
