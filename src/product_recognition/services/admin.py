"""Admin service for provider records and settings."""

import logging
from dataclasses import dataclass
from typing import Protocol

from product_recognition.domain.errors import CredentialError
from product_recognition.domain.providers import ProviderRecord
from product_recognition.services.credentials import CredentialCodec
from product_recognition.services.providers import (
    ProviderRegistry,
    ProviderRepository,
    SettingsRepository,
)

DEFAULT_PRIORITY = 10
MODEL_KEYWORDS = ("vision", "gpt-4o", "claude-3", "gemini", "grok")

_logger = logging.getLogger(__name__)


class ModelLister(Protocol):
    """Interface for listing the models a provider exposes."""

    async def list_models(self, base_url: str, api_key: str) -> list[str]:
        """Return model ids available at a base URL."""


@dataclass
class ProviderAdminService:
    """Service behind the admin endpoints."""

    provider_repository: ProviderRepository
    settings_repository: SettingsRepository
    codec: CredentialCodec
    model_lister: ModelLister
    registry: ProviderRegistry

    def list_providers(self) -> list[dict[str, object]]:
        """Return stored providers without their credentials."""
        return [
            _serialize_provider(record)
            for record in self.provider_repository.list_providers()
        ]

    def create_provider(  # noqa: PLR0913
        self,
        *,
        name: str,
        provider_id: str,
        base_url: str,
        model: str,
        api_key: str,
        priority: int | None = None,
    ) -> dict[str, object]:
        """Store a new enabled provider with an encrypted key."""
        record = self.provider_repository.create_provider(
            {
                "name": name,
                "provider_id": provider_id,
                "base_url": base_url.rstrip("/"),
                "model": model,
                "api_key_encrypted": self.codec.encrypt(api_key),
                "priority": DEFAULT_PRIORITY if priority is None else priority,
                "enabled": True,
            }
        )
        _logger.info("Created provider %s", provider_id)
        return _serialize_provider(record)

    def delete_provider(self, record_id: str) -> None:
        """Delete a provider record."""
        self.provider_repository.delete_provider(record_id)
        _logger.info("Deleted provider record %s", record_id)

    async def detect_model(self, record_id: str) -> dict[str, object]:
        """Pick the best vision-capable model a provider offers and store it."""
        record = self.provider_repository.get_provider(record_id)
        if record is None:
            raise LookupError("Provider not found")
        api_key = self.codec.decrypt(record.api_key_encrypted)
        if not api_key:
            raise CredentialError("Could not decrypt API key")
        _logger.info("Fetching models for provider %s", record.provider_id)
        models = await self.model_lister.list_models(record.base_url, api_key)
        selected = select_model(models)
        if selected is None:
            raise ValueError("No suitable models found")
        self.provider_repository.update_model(record_id, selected)
        return {
            "success": True,
            "models": models,
            "selected_model": selected,
            "message": f"Updated model to {selected}",
        }

    def list_settings(self) -> dict[str, str]:
        """Return all stored settings."""
        return self.settings_repository.list_settings()

    def set_setting(self, key: str, value: str) -> dict[str, object]:
        """Create or update a stored setting."""
        return self.settings_repository.set_setting(key, value)

    def reload_providers(self) -> list[str]:
        """Reload the fallback chain and return its provider ids in order."""
        return [provider.id for provider in self.registry.load()]


def select_model(models: list[str]) -> str | None:
    """Return the first model matching the keyword preference, else the first."""
    for keyword in MODEL_KEYWORDS:
        for model in models:
            if keyword in model.lower():
                return model
    return models[0] if models else None


def _serialize_provider(record: ProviderRecord) -> dict[str, object]:
    return {
        "id": record.id,
        "name": record.name,
        "provider_id": record.provider_id,
        "base_url": record.base_url,
        "model": record.model,
        "priority": record.priority,
        "enabled": record.enabled,
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }
