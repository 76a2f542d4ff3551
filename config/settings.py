"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # BATCHING
    # ===================
    catalog_batch_size: int = Field(
        default=500,
        ge=1,
        le=1000,
        description="Max catalog ids per lookup during enrichment"
    )
    item_insert_batch_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Line items inserted per request during ingestion"
    )
    product_page_size: int = Field(
        default=1000,
        ge=100,
        le=10000,
        description="Page size for the full active-product scan"
    )
    lookup_chunk_size: int = Field(
        default=200,
        ge=1,
        le=1000,
        description="Max codes/SKUs per IN() lookup"
    )

    # ===================
    # MATCHING
    # ===================
    fuzzy_match_threshold: int = Field(
        default=40,
        ge=40,
        le=95,
        description="Minimum spec score accepted as a fuzzy match"
    )
    suggestion_min_score: int = Field(
        default=30,
        ge=0,
        le=95,
        description="Minimum spec score shown in match builder suggestions"
    )
    suggestion_limit: int = Field(
        default=15,
        ge=1,
        le=100,
        description="Max suggestions returned by the match builder"
    )

    # ===================
    # PRICING
    # ===================
    default_markup_percent: float = Field(
        default=50.0,
        ge=0,
        le=500,
        description="Markup applied to product unit price in comparisons"
    )
    annualization_factor: int = Field(
        default=12,
        ge=1,
        le=52,
        description="Report periods per year (12 = monthly usage report)"
    )
    proposal_top_items: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Highest-savings items listed in a proposal"
    )
    company_name: str = Field(
        default="Our Team",
        description="Sender name used in proposal emails"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Frontend origins allowed by CORS"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
