"""
Application configuration using Pydantic Settings.
All environment variables are loaded here with sensible defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = "dev"
    log_level: str = "INFO"

    # S3-compatible object storage (AWS S3, Cloudflare R2, MinIO)
    # Credentials fall back to the boto3 default chain when keys are unset
    storage_endpoint: Optional[str] = None  # e.g., https://<account_id>.r2.cloudflarestorage.com
    storage_access_key: Optional[str] = None
    storage_secret_key: Optional[str] = None
    storage_region: Optional[str] = None
    storage_container: str = "photos"  # Bucket name
    storage_public_base_url: Optional[str] = None  # URL prefix used in upload responses

    # Uploads
    max_upload_bytes: int = 20 * 1024 * 1024  # 20 MiB decoded payload

    # Access gate
    trust_forwarded_for: bool = True  # Read caller address from first X-Forwarded-For hop

    # Static files served at "/" when the directory exists
    static_dir: Optional[str] = "public"

    # Analysis stubs (no real processing)
    cv_stub_latency_ms: int = 100
    di_stub_latency_ms: int = 120

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
