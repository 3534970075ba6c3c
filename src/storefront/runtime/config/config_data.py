"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:3001"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class RateLimitPreset(BaseModel):
    """A named request quota."""

    requests: int = Field(description="Number of requests allowed per window")
    window_ms: int = Field(description="Time window in milliseconds")


def _default_presets() -> dict[str, RateLimitPreset]:
    minute = 60 * 1000
    return {
        "standard": RateLimitPreset(requests=100, window_ms=15 * minute),
        "auth": RateLimitPreset(requests=5, window_ms=15 * minute),
        "contact": RateLimitPreset(requests=3, window_ms=60 * minute),
        "orders": RateLimitPreset(requests=10, window_ms=60 * minute),
        "admin": RateLimitPreset(requests=200, window_ms=15 * minute),
        "public": RateLimitPreset(requests=300, window_ms=15 * minute),
    }


class RateLimiterConfig(BaseModel):
    """Rate limiter configuration model."""

    requests: int = Field(
        default=100, description="Number of requests allowed per window"
    )
    window_ms: int = Field(default=60000, description="Time window in milliseconds")
    enabled: bool = Field(default=True, description="Enable rate limiting")
    per_endpoint: bool = Field(
        default=True, description="Apply rate limiting per endpoint"
    )
    per_method: bool = Field(
        default=True, description="Apply rate limiting per HTTP method"
    )
    presets: dict[str, RateLimitPreset] = Field(
        default_factory=_default_presets,
        description="Named quotas used by individual routers",
    )


class RedisConfig(BaseModel):
    """Redis configuration model."""

    url: str | None = Field(default=None, description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    decode_responses: bool = Field(
        default=True, description="Decode Redis responses to strings"
    )

    @computed_field
    @property
    def connection_string(self) -> str | None:
        """Construct the Redis connection string with password if provided."""
        if self.url and self.password:
            if "@" in self.url:
                # URL already has auth info
                return self.url
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url


class JWTConfig(BaseModel):
    """JWT issuing and validation configuration."""

    allowed_algorithms: list[str] = Field(
        default_factory=lambda: ["HS256"],
        description="JWT algorithms allowed for token validation",
    )
    gen_issuer: str = Field(
        default="storefront-api", description="Issuer name to use when generating tokens"
    )
    audiences: list[str] = Field(
        default_factory=lambda: ["storefront"],
        description="JWT audiences that this API accepts",
    )
    access_token_ttl_seconds: int = Field(
        default=7 * 24 * 3600, description="Lifetime of issued access tokens"
    )
    clock_skew: int = Field(default=60, description="Clock skew tolerance in seconds")
    password_reset_audience: str = Field(
        default="storefront-password-reset",
        description="Audience of password reset tokens; never accepted as an access token",
    )
    password_reset_ttl_seconds: int = Field(
        default=30 * 60, description="Lifetime of password reset tokens"
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default="logs/app.log", description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./storefront.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    auto_create: bool = Field(
        default=True, description="Create missing tables when the API starts"
    )
    password_file: str | None = Field(
        default=None,
        description="Path to file containing database password",
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string, injecting a file-held password."""
        from sqlalchemy.engine import make_url

        base_url = make_url(self.url)
        if base_url.password or not self.password_file:
            return base_url.render_as_string(hide_password=False)

        try:
            with open(self.password_file) as f:
                password = f.read().strip()
        except OSError as e:
            raise ValueError("Failed to read database password from file.") from e

        logger.debug("Using database password from {}", self.password_file)
        return base_url.set(password=password).render_as_string(hide_password=False)


class AppConfig(BaseModel):
    """Application configuration model."""

    name: str = Field(default="storefront-api", description="Service name")
    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    session_signing_secret: str | None = Field(
        default="dev-secret-key-change-me", description="Secret for signing access tokens"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class StoreConfig(BaseModel):
    """Storefront identity, pricing and catalog rules."""

    name: str = Field(default="TickTee Style", description="Store name used in emails")
    site_url: str = Field(default="https://tickteestyle.com")
    support_email: str = Field(default="support@tickteestyle.com")
    support_phone: str = Field(default="+923150374729")
    currency_symbol: str = Field(default="Rs.")
    tax_rate: float = Field(default=0.10, description="Tax applied to the subtotal")
    shipping_fee: float = Field(default=200, description="Standard shipping fee")
    free_shipping_threshold: float = Field(
        default=5000, description="Subtotal at or above which shipping is free"
    )
    cod_fee: float = Field(default=200, description="Cash on delivery surcharge")
    low_stock_threshold: int = Field(default=10)
    categories: list[str] = Field(
        default_factory=lambda: [
            "Men's Watches",
            "Women's Watches",
            "Luxury Collection",
            "Sports Watches",
        ]
    )


class BankAccountConfig(BaseModel):
    """Bank account customers transfer to."""

    bank: str = Field(default="HBL")
    account_title: str = Field(default="TickTee Style")
    account_number: str = Field(default="1234567890")
    iban: str = Field(default="PK12HABB1234567890")


class PaymentConfig(BaseModel):
    """Manual payment method settings."""

    mobile_wallet_number: str = Field(default="03150374729")
    bank_account: BankAccountConfig = Field(default_factory=BankAccountConfig)


class EmailConfig(BaseModel):
    """Outbound email provider configuration."""

    enabled: bool = Field(default=True, description="Send emails at all")
    api_url: str | None = Field(default=None, description="HTTP email provider endpoint")
    api_key: str | None = Field(default=None, description="Email provider secret")
    sender: str = Field(default="no-reply@tickteestyle.com")
    timeout_seconds: float = Field(default=10.0)
    max_attempts: int = Field(default=3, description="Attempts for 429 and 5xx responses")
    backoff_seconds: float = Field(
        default=0.5, description="First retry delay; doubles on each further attempt"
    )
    max_backoff_seconds: float = Field(default=8.0)


class StorageConfig(BaseModel):
    """Local object storage configuration."""

    root: str = Field(default="media", description="Directory holding all buckets")
    public_base_url: str = Field(
        default="http://localhost:8000/media",
        description="URL prefix under which stored objects are addressed",
    )
    private_base_url: str = Field(
        default="http://localhost:8000/api/admin/files",
        description="URL prefix for objects in private buckets, served to admins only",
    )
    max_upload_bytes: int = Field(default=5 * 1024 * 1024)


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    rate_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Rate limiter configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="JWT configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    store: StoreConfig = Field(
        default_factory=StoreConfig, description="Store and pricing configuration"
    )
    payment: PaymentConfig = Field(
        default_factory=PaymentConfig, description="Payment method configuration"
    )
    email: EmailConfig = Field(
        default_factory=EmailConfig, description="Email configuration"
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig, description="Object storage configuration"
    )
