"""Service settings read from SIGNATURE_* environment variables or a .env file."""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SIGNATURE_", env_file=".env", extra="ignore"
    )

    # Rendering (LibreOffice); discovered on PATH when unset
    soffice_path: Optional[str] = None
    conversion_timeout_seconds: float = 30.0

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024
    default_signature_width: float = 150.0
    default_signature_height: float = 50.0

    # Eviction of pending documents; disabled when unset
    record_ttl_seconds: Optional[float] = None

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"


settings = Settings()
