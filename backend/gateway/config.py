"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting has a working default; nothing is required to boot
    - get_settings() is cached (lru_cache) — single instance per execution context
    - "development" is the only environment that exposes error diagnostics

Design Decisions:
    - NODE_ENV accepted alongside ENVIRONMENT so existing deployments keep
      their variables
    - cors_origins accepts a JSON list or a comma-separated string
"""

import json
from functools import lru_cache
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from gateway.core.origin_policy import DEFAULT_ALLOWED_ORIGINS

FIFTY_MEGABYTES = 50 * 1024 * 1024


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, populate_by_name=True,
    )

    # Runtime
    environment: str = Field(
        "production",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
    )
    app_version: str = "1.0.0"
    service_message: str = "Fal Platform Backend is running"

    # CORS
    cors_origins: Annotated[list[str], NoDecode] = list(DEFAULT_ALLOWED_ORIGINS)
    cors_permissive_fallback: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v):
        """Accept "a,b,c" as well as a JSON list."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    # Request bodies
    body_limit_bytes: int = FIFTY_MEGABYTES

    # Route groups
    route_package: str = "routes"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
