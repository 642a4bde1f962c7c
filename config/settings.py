"""
Application settings loaded from environment variables.

Uses pydantic-settings; values come from the process environment or a
.env file next to the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from enum import Enum


class IdentityPolicy(str, Enum):
    """How the catalog importer treats rows without barcode and SKU."""
    ALLOW_ANONYMOUS = "allow_anonymous"
    REQUIRE_IDENTIFIER = "require_identifier"


class Settings(BaseSettings):
    """
    POS backend settings.

    Only the Supabase URL and key are required.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_key: str = Field(..., description="Supabase anon/public key")

    # ===================
    # CATALOG IMPORT
    # ===================
    import_identity_policy: IdentityPolicy = Field(
        default=IdentityPolicy.ALLOW_ANONYMOUS,
        description="allow_anonymous: rows without barcode/SKU are always created; "
                    "require_identifier: such rows fail validation"
    )
    import_max_workers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Product groups reconciled concurrently (1 = sequential)"
    )

    # ===================
    # INVOICE PROCESSING
    # ===================
    invoice_tax_rate: float = Field(
        default=0.16,
        ge=0,
        le=1,
        description="Tax added to invoice unit prices to get cost (0.16 = IVA 16%)"
    )
    invoice_markup: float = Field(
        default=0.35,
        ge=0,
        le=5,
        description="Markup applied on cost to get selling price"
    )
    invoice_suppliers: list[str] = Field(
        default=["HABROS BICICLETAS"],
        description="Known supplier names searched for in invoice text"
    )

    # ===================
    # API
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$"
    )
    debug: bool = True
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"
    )
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1000, le=65535)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Frontend origins allowed by CORS"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    Call get_settings.cache_clear() to reload.

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
