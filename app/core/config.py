"""
Core configuration management using Pydantic Settings.
Follows 12-factor app principles for environment-based configuration.
"""

from typing import Annotated, List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


KNOWN_BARCODE_SOURCES = ("upcitemdb", "openfoodfacts", "eansearch")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application
    app_name: str = "Warranty Product Lookup"
    version: str = "1.0.0"
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Document store (cache + analytics)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Barcode lookup
    barcode_source_order: Annotated[List[str], NoDecode] = Field(default=list(KNOWN_BARCODE_SOURCES))
    barcode_source_timeout: float = Field(default=5.0)
    barcode_cache_ttl_days: int = Field(default=30)
    http_user_agent: str = Field(default="WarrantyLookup/1.0")

    # AI identification
    openai_api_key: Optional[str] = Field(default=None)
    vision_model: str = Field(default="gpt-4o")
    vision_timeout: float = Field(default=30.0)
    vision_max_tokens: int = Field(default=500)
    vision_temperature: float = Field(default=0.2)
    min_identification_confidence: float = Field(default=0.7)

    @field_validator("barcode_source_order", mode="before")
    @classmethod
    def parse_source_order(cls, v):
        """Parse the source priority list from a comma string or list."""
        if isinstance(v, str):
            v = [source.strip() for source in v.split(",") if source.strip()]
        unknown = [source for source in v if source not in KNOWN_BARCODE_SOURCES]
        if unknown:
            raise ValueError(f"Unknown barcode sources: {unknown}")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment values."""
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v

    @field_validator("min_identification_confidence")
    @classmethod
    def validate_confidence_threshold(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError("Confidence threshold must be within [0, 1]")
        return v


# Global settings instance
settings = Settings()