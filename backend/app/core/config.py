"""
Core configuration for Invitely application.
Loads settings from environment variables.
"""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    APP_NAME: str = "Invitely"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    APP_URL: str = "http://localhost:3000"  # Fallback origin for guest links

    # Database (key-value document table)
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    KV_TABLE_NAME: str = "kv_store"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Document locks
    LOCK_BACKEND: str = "local"  # "local" or "redis"
    LOCK_TIMEOUT_SECONDS: float = 10.0
    LOCK_WAIT_SECONDS: float = 5.0

    # JWT (sender identity)
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Storage Provider
    STORAGE_PROVIDER: str = "s3"  # "s3" or "memory"

    # S3 Compatible (R2, AWS, MinIO)
    S3_ENDPOINT_URL: str = ""
    S3_ACCESS_KEY_ID: str = ""
    S3_SECRET_ACCESS_KEY: str = ""
    S3_BUCKET_NAME: str = ""
    S3_REGION_NAME: str = "auto"

    # Gallery
    SIGNED_URL_TTL_SECONDS: int = 60 * 60 * 24 * 365  # 1 year
    MAX_FILE_SIZE_MB: int = 10

    # Guests
    GUEST_TOKEN_BYTES: int = 32

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def max_file_size_bytes(self) -> int:
        """Convert max file size to bytes."""
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
