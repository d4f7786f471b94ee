"""Settings for larder, read from the environment or a .env file."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    environment: str = "development"
    log_level: str = "info"
    api_key: Optional[str] = None  # Shared X-API-Key; unset disables the check

    # Supabase (service role: row ownership is enforced in the services)
    supabase_url: str
    supabase_service_role_key: str

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_plan_model: str = "gpt-4o"
    ai_timeout_seconds: float = Field(60, gt=0)

    # Read-merge-write cycles per list/pantry mutation
    persistence_max_attempts: int = Field(5, ge=1)

    # Open Food Facts asks clients to identify themselves
    off_user_agent: str = "larder/0.1.0 (shopping list backend)"
    feature_barcode_lookup: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
