"""Configuration settings for the anonymous voice backend."""

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3001"))

    # Object storage (S3-compatible)
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "")
    STORAGE_REGION: str = os.getenv("STORAGE_REGION", "us-east-1")
    STORAGE_ENDPOINT_URL: str = os.getenv("STORAGE_ENDPOINT_URL", "")
    STORAGE_PUBLIC_BASE_URL: str = os.getenv("STORAGE_PUBLIC_BASE_URL", "")
    STORAGE_FOLDER: str = os.getenv("STORAGE_FOLDER", "anonymous-voices")
    STORAGE_TIMEOUT_SECONDS: int = int(os.getenv("STORAGE_TIMEOUT_SECONDS", "30"))
    STORAGE_MAX_RETRIES: int = int(os.getenv("STORAGE_MAX_RETRIES", "2"))
    AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID", "")
    AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY", "")

    # Upload
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
    UPLOAD_STAGING_DIR: str = os.getenv("UPLOAD_STAGING_DIR", "")
    UPLOAD_RATE_LIMIT: str = os.getenv("UPLOAD_RATE_LIMIT", "20/minute")

    # Application
    CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    @property
    def log_level(self) -> int:
        return logging.DEBUG if self.DEBUG else logging.INFO

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        warnings = []
        if not self.STORAGE_BUCKET:
            warnings.append("STORAGE_BUCKET is not set - uploads will fail until storage is configured")
        if not self.AWS_ACCESS_KEY_ID or not self.AWS_SECRET_ACCESS_KEY:
            warnings.append(
                "AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY not set - relying on the default boto3 credential chain"
            )
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
