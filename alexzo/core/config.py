"""
Application Configuration using Pydantic Settings

Centralized configuration for the Alexzo API service.
Environment variables override defaults defined here.
"""

import json
from typing import Annotated, List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    An empty upstream/backend setting means that collaborator is not
    configured; routes that need it answer 503 instead of failing at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Application
    APP_NAME: str = "Alexzo API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # CORS (comma-separated in the environment)
    CORS_ORIGINS: Annotated[List[str], NoDecode] = [
        "https://alexzo.vercel.app",
        "http://localhost:5000"
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # API keys
    API_KEY_PREFIX: str = "alexzo_"
    API_KEY_SUFFIX_LENGTH: int = Field(default=26, ge=16, le=64)
    KEY_STORE_BACKEND: str = Field(
        default="redis",
        description="Document store for issued keys: 'redis' or 'memory'"
    )
    REDIS_URL: str = "redis://localhost:6379/0"
    USAGE_LOG_MAX_ENTRIES: int = 10000

    # Search rate limiting
    SEARCH_RATE_LIMIT: int = Field(default=15, ge=1)
    SEARCH_RATE_WINDOW_SECONDS: float = Field(default=60.0, gt=0)
    SEARCH_RATE_PRUNE_INTERVAL_SECONDS: float = Field(default=300.0, gt=0)

    # Upstreams
    SEARCH_UPSTREAM_URL: str = "https://whoogle-bbso.onrender.com"
    IMAGE_UPSTREAM_URL: str = "https://image.pollinations.ai/prompt"
    IMAGE_MODEL: str = "flux"
    UPSTREAM_TIMEOUT_SECONDS: float = 30.0

    # Identity provider (Firebase ID tokens)
    FIREBASE_PROJECT_ID: Optional[str] = Field(
        default=None,
        description="Firebase project id; audience of accepted ID tokens"
    )
    FIREBASE_JWKS_URL: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/"
        "securetoken@system.gserviceaccount.com"
    )

    # Relational store for lead capture
    DATABASE_URL: str = "sqlite+aiosqlite:///./alexzo.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from a JSON list, comma-separated string or list."""
        if isinstance(v, str) and v.strip().startswith("["):
            return json.loads(v)
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("KEY_STORE_BACKEND")
    @classmethod
    def validate_key_store_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("redis", "memory"):
            raise ValueError("KEY_STORE_BACKEND must be 'redis' or 'memory'")
        return v


def get_settings() -> Settings:
    return Settings()
