"""Provider registry: loads, decrypts and orders the fallback chain."""

import logging
from dataclasses import dataclass, field, replace
from typing import Protocol

from product_recognition.domain.providers import ProviderConfig, ProviderRecord
from product_recognition.services.credentials import CredentialCodec

SYSTEM_PROMPT_KEY = "system_prompt"

_logger = logging.getLogger(__name__)


class ProviderRepository(Protocol):
    """Persistence interface for provider records."""

    def list_enabled_providers(self) -> list[ProviderRecord]:
        """Return enabled providers ordered by ascending priority."""

    def list_providers(self) -> list[ProviderRecord]:
        """Return every provider ordered by ascending priority."""

    def get_provider(self, record_id: str) -> ProviderRecord | None:
        """Return a provider by row id."""

    def create_provider(self, payload: dict[str, object]) -> ProviderRecord:
        """Insert a provider row."""

    def delete_provider(self, record_id: str) -> None:
        """Delete a provider row."""

    def update_model(self, record_id: str, model: str) -> None:
        """Change the model identifier of a provider row."""


class SettingsRepository(Protocol):
    """Persistence interface for the key-value settings table."""

    def get_setting(self, key: str) -> str | None:
        """Return a setting value if present."""

    def list_settings(self) -> dict[str, str]:
        """Return all settings."""

    def set_setting(self, key: str, value: str) -> dict[str, object]:
        """Create or update a setting."""


@dataclass
class ProviderRegistry:
    """Owns the cached fallback chain for the process.

    The pinned provider, when configured, always occupies position 0. If a
    stored record shares its id, that record is moved to the front and its
    stored priority is ignored; otherwise the configured pinned provider is
    used. When ``force_builtin_prompt`` is set the stored system prompt is
    loaded but never exposed, so the locale templates always apply.
    """

    codec: CredentialCodec
    provider_repository: ProviderRepository | None = None
    settings_repository: SettingsRepository | None = None
    pinned_provider: ProviderConfig | None = None
    force_builtin_prompt: bool = True
    default_max_tokens: int = 1000
    default_temperature: float = 0.1
    _providers: list[ProviderConfig] = field(default_factory=list, repr=False)
    _stored_prompt: str | None = field(default=None, repr=False)

    @property
    def providers(self) -> list[ProviderConfig]:
        """Return the cached chain in trial order."""
        return list(self._providers)

    @property
    def prompt_override(self) -> str | None:
        """Return the stored system prompt unless built-in templates are forced."""
        if self.force_builtin_prompt:
            return None
        return self._stored_prompt

    def ensure_loaded(self) -> list[ProviderConfig]:
        """Load the chain if the cache is empty; safe to call redundantly."""
        if not self._providers:
            self.load()
        return self.providers

    def load(self) -> list[ProviderConfig]:
        """Reload providers and the prompt override from storage."""
        providers = self._load_stored_providers()
        self._stored_prompt = self._load_stored_prompt()
        if self.pinned_provider is not None:
            providers = _pin_first(providers, self.pinned_provider)
            _logger.info("Pinned provider %s to the front", self.pinned_provider.id)
        if self._stored_prompt and self.force_builtin_prompt:
            _logger.info("Stored system prompt ignored; built-in templates are forced")
        self._providers = providers
        return self.providers

    def _load_stored_providers(self) -> list[ProviderConfig]:
        if self.provider_repository is None:
            _logger.warning("Provider store not configured; using local configuration")
            return []
        try:
            records = self.provider_repository.list_enabled_providers()
        except Exception:
            _logger.exception("Failed to load providers from store")
            return []
        providers = [self._to_config(record) for record in records]
        providers.sort(key=lambda provider: provider.priority)
        _logger.info("Loaded %s enabled providers from store", len(providers))
        return providers

    def _load_stored_prompt(self) -> str | None:
        if self.settings_repository is None:
            return None
        try:
            return self.settings_repository.get_setting(SYSTEM_PROMPT_KEY)
        except Exception:
            _logger.exception("Failed to load system prompt setting")
            return None

    def _to_config(self, record: ProviderRecord) -> ProviderConfig:
        return ProviderConfig(
            id=record.provider_id,
            name=record.name,
            priority=record.priority,
            enabled=record.enabled,
            base_url=record.base_url,
            model=record.model,
            api_key=self.codec.decrypt(record.api_key_encrypted) or None,
            max_tokens=record.max_tokens or self.default_max_tokens,
            temperature=(
                record.temperature
                if record.temperature is not None
                else self.default_temperature
            ),
        )


def _pin_first(
    providers: list[ProviderConfig], pinned: ProviderConfig
) -> list[ProviderConfig]:
    stored = next((p for p in providers if p.id == pinned.id), None)
    rest = [p for p in providers if p.id != pinned.id]
    head = pinned
    if stored is not None and (stored.has_credential or not pinned.has_credential):
        head = stored
    return [replace(head, priority=0), *rest]
