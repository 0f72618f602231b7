"""Application configuration schema and validation."""

from typing import Literal, Optional

from pydantic import Field, PostgresDsn, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Application environment",
    )
    db_dsn: Optional[PostgresDsn] = Field(
        default=None,
        description="PostgreSQL connection string for the data backend",
    )
    db_pool_min: int = Field(
        default=1,
        ge=1,
        description="Minimum database connection pool size",
    )
    db_pool_max: int = Field(
        default=5,
        ge=1,
        description="Maximum database connection pool size",
    )
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key",
    )
    stripe_price_professional_monthly: str = Field(
        default="",
        description="Stripe price ID for the professional monthly plan",
    )
    stripe_price_professional_yearly: str = Field(
        default="",
        description="Stripe price ID for the professional yearly plan",
    )
    stripe_price_enterprise_monthly: str = Field(
        default="",
        description="Stripe price ID for the enterprise monthly plan",
    )
    stripe_price_enterprise_yearly: str = Field(
        default="",
        description="Stripe price ID for the enterprise yearly plan",
    )
    app_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used for checkout redirects",
    )
    supabase_url: str = Field(
        default="",
        description="Supabase project URL (auth endpoints)",
    )
    supabase_anon_key: SecretStr = Field(
        default=SecretStr(""),
        description="Supabase anon key for password sign-in",
    )
    supabase_service_role_key: SecretStr = Field(
        default=SecretStr(""),
        description="Supabase service-role key for admin user lookups",
    )
    business_id: str = Field(
        default="",
        description="Legacy fallback business ID when no ownership row exists",
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="HTTP server bind address",
    )
    server_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="HTTP server port",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("db_pool_max")
    @classmethod
    def validate_pool_max(cls, v: int, info) -> int:
        """Ensure pool_max >= pool_min."""
        if "db_pool_min" in info.data and v < info.data["db_pool_min"]:
            raise ValueError("db_pool_max must be >= db_pool_min")
        return v

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize app_url so paths can be appended directly."""
        return v.rstrip("/")

    @property
    def secure_cookies(self) -> bool:
        """Cookies carry the Secure flag in production only."""
        return self.env == "prod"

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key.get_secret_value())

    @property
    def supabase_configured(self) -> bool:
        return bool(
            self.supabase_url and self.supabase_service_role_key.get_secret_value()
        )


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the singleton AppConfig instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config
