"""
Application configuration using Pydantic settings.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "TaxTrack"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Import paths
    import_inbox_path: str = "./data/imports/inbox"
    import_processed_path: str = "./data/imports/processed"
    import_failed_path: str = "./data/imports/failed"

    # Tags marking rows that came from an offline statement file rather than
    # a live feed or manual entry
    bulk_import_tags: List[str] = ["import:csv", "import:ofx"]

    # Tax
    class4_main_rate: Optional[Decimal] = None  # Overrides the rate table, e.g. 0.09

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_prefix="TAXTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
