"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from product_recognition.adapters.openai_completion_client import (
    OpenAICompletionClient,
)
from product_recognition.adapters.supabase_attempt_log_repository import (
    SupabaseAttemptLogRepository,
)
from product_recognition.adapters.supabase_provider_repository import (
    SupabaseProviderRepository,
)
from product_recognition.adapters.supabase_settings_repository import (
    SupabaseSettingsRepository,
)
from product_recognition.config import Settings
from product_recognition.domain.providers import ProviderConfig
from product_recognition.services.admin import ProviderAdminService
from product_recognition.services.attempt_log import AttemptLogService
from product_recognition.services.credentials import CredentialCodec
from product_recognition.services.providers import ProviderRegistry
from product_recognition.services.recognition import ProviderManager


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    registry: ProviderRegistry
    provider_manager: ProviderManager
    admin_service: ProviderAdminService | None
    close_resources: Callable[[], Awaitable[None]]


def pinned_provider_from(settings: Settings) -> ProviderConfig | None:
    """Build the always-first provider from settings, or None when disabled."""
    if not settings.pinned_provider_id:
        return None
    return ProviderConfig(
        id=settings.pinned_provider_id,
        name=settings.pinned_provider_name,
        priority=0,
        enabled=True,
        base_url=settings.pinned_provider_base_url,
        model=settings.pinned_provider_model,
        api_key=settings.pinned_provider_api_key,
        max_tokens=settings.pinned_provider_max_tokens,
        temperature=settings.pinned_provider_temperature,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    codec = CredentialCodec.from_secret(resolved_settings.encryption_key)
    provider_repository = None
    settings_repository = None
    attempt_log_repository = None
    if resolved_settings.supabase_enabled:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        provider_repository = SupabaseProviderRepository(supabase_client)
        settings_repository = SupabaseSettingsRepository(supabase_client)
        attempt_log_repository = SupabaseAttemptLogRepository(supabase_client)

    registry = ProviderRegistry(
        codec=codec,
        provider_repository=provider_repository,
        settings_repository=settings_repository,
        pinned_provider=pinned_provider_from(resolved_settings),
        force_builtin_prompt=resolved_settings.force_builtin_prompt,
        default_max_tokens=resolved_settings.default_max_tokens,
        default_temperature=resolved_settings.default_temperature,
    )
    completion_client = OpenAICompletionClient.create(
        timeout_seconds=resolved_settings.provider_timeout_seconds
    )
    attempt_log = AttemptLogService(attempt_log_repository)
    provider_manager = ProviderManager(
        registry=registry,
        client=completion_client,
        attempt_log=attempt_log,
        timeout_seconds=resolved_settings.provider_timeout_seconds,
    )
    admin_service = None
    if provider_repository is not None and settings_repository is not None:
        admin_service = ProviderAdminService(
            provider_repository=provider_repository,
            settings_repository=settings_repository,
            codec=codec,
            model_lister=completion_client,
            registry=registry,
        )

    async def close_resources() -> None:
        await attempt_log.drain()
        await completion_client.close()

    return AppContainer(
        settings=resolved_settings,
        registry=registry,
        provider_manager=provider_manager,
        admin_service=admin_service,
        close_resources=close_resources,
    )
