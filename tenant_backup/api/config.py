"""Configuration for FastAPI application."""

from pydantic_settings import BaseSettings
from pydantic import field_validator, Field
from typing import List, Optional, Union
import json


class Settings(BaseSettings):
    # API Configuration
    api_prefix: str = "/api/v1"
    api_title: str = "tenant-backup API"
    api_version: str = "1.0.0"
    allowed_origins: Union[str, List[str]] = ["*"]

    @field_validator('allowed_origins', mode='before')
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parse allowed_origins from string or list."""
        if isinstance(v, str):
            # If it's a JSON array string, parse it
            if v.startswith('['):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return [v]
            # Single origin string
            return [v]
        return v

    # Overrides applied on top of BackupConfig.from_env()
    database_path: Optional[str] = None
    backup_root: Optional[str] = None
    staging_dir: Optional[str] = None

    storage_url: Optional[str] = None
    storage_key: Optional[str] = None
    storage_secret: Optional[str] = None
    storage_container: Optional[str] = None

    # Per-owner quota reported by the usage endpoint
    storage_limit_bytes: int = Field(default=15 * 1024 * 1024 * 1024, gt=0, description="Storage limit per owner (15 GiB)")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables


settings = Settings()
