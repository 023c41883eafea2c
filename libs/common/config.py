from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "test", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    APP_BASE_URL: str = "http://localhost:3000"
    API_BASE_URL: str = "http://localhost:8000"
    CURRENCY: str = "PKR"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Redis (arq queue, rate limit storage)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Auth
    # Tokens are issued by the identity provider; we only verify them.
    JWT_SECRET: str = "test-jwt-secret"
    JWT_ALGORITHM: str = "HS256"
    AUTH_COOKIE_NAME: str = "accessToken"
    ADMIN_ROLE: str = "admin"

    # PayFast
    # Defaults are the public sandbox merchant credentials.
    PAYFAST_MERCHANT_ID: str = "10000100"
    PAYFAST_MERCHANT_KEY: str = "46f0cd694581a"
    PAYFAST_PASSPHRASE: str = ""
    PAYFAST_MODE: Literal["sandbox", "live"] = "sandbox"
    PAYFAST_AMOUNT_TOLERANCE: float = 0.01
    PAYFAST_VALIDATE_WITH_GATEWAY: bool = False
    PAYFAST_HTTP_TIMEOUT_SECONDS: float = 10.0

    # Analytics
    ANALYTICS_CACHE_TTL_SECONDS: int = 300
    ANALYTICS_REFRESH_BACKEND: Literal["arq", "inline"] = "arq"
    ANALYTICS_REFRESH_MAX_TRIES: int = 3
    IP_HASH_SALT: str = ""

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Object storage for QR images
    STORAGE_BACKEND: Literal["supabase", "s3"] = "supabase"
    QR_BUCKET: str = "tapcard-qr"
    SUPABASE_URL: str = "http://localhost"
    SUPABASE_SERVICE_ROLE_KEY: str = "test-service-role-key"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @property
    def payfast_process_url(self) -> str:
        if self.PAYFAST_MODE == "live":
            return "https://www.payfast.co.za/eng/process"
        return "https://sandbox.payfast.co.za/eng/process"

    @property
    def payfast_validate_url(self) -> str:
        if self.PAYFAST_MODE == "live":
            return "https://www.payfast.co.za/eng/query/validate"
        return "https://sandbox.payfast.co.za/eng/query/validate"


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
