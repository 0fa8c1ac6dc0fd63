"""Configuration for FastAPI application."""

import json
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API Configuration
    api_prefix: str = "/api/v1"
    api_title: str = "storekeeper API"
    api_version: str = "1.0.0"
    allowed_origins: Union[str, List[str]] = ["*"]

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parse allowed_origins from string or list."""
        if isinstance(v, str):
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return [v]
            return [v]
        return v

    # Backends
    store_backend: str = "memory"
    blob_backend: str = "none"
    redis_url: Optional[str] = None
    redis_password: Optional[str] = None

    # Limits
    max_upload_bytes: int = Field(default=100 * 1024 * 1024, description="Largest accepted backup upload")


settings = Settings()
