"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    scaling_tolerance: float = 0.01
    scaling_max_iterations: int = 200
    scaling_last_meal_max_iterations: int = 300
    scaling_damping: float = 0.3
    exact_last_meal: bool = True
    adherence_threshold: float = 70.0
    catalog_ttl_seconds: int = 3600
    advanced_targets: bool = False
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
