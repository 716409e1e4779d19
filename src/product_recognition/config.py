"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    encryption_key: str = "default-dev-key-32-bytes-long-!!"
    app_api_key: str | None = None
    admin_password: str = "admin"
    pinned_provider_id: str | None = "glm-4v"
    pinned_provider_name: str = "GLM-4V-Flash"
    pinned_provider_base_url: str = "https://open.bigmodel.cn/api/paas/v4"
    pinned_provider_model: str = "glm-4v-flash"
    pinned_provider_api_key: str | None = None
    pinned_provider_max_tokens: int = 1000
    pinned_provider_temperature: float = 0.1
    force_builtin_prompt: bool = True
    provider_timeout_seconds: float = 30.0
    default_max_tokens: int = 1000
    default_temperature: float = 0.1
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def supabase_enabled(self) -> bool:
        """Return True when both Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)
