"""Provider domain models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ProviderConfig:
    """Runtime view of a provider with its decrypted credential."""

    id: str
    name: str
    priority: int
    enabled: bool
    base_url: str
    model: str
    api_key: str | None
    max_tokens: int
    temperature: float

    @property
    def has_credential(self) -> bool:
        """Return True when the provider can be dispatched."""
        return bool(self.api_key)


@dataclass(frozen=True)
class ProviderRecord:
    """Persisted provider row as stored in the provider table."""

    id: str
    provider_id: str
    name: str
    base_url: str
    model: str
    api_key_encrypted: str | None
    priority: int
    enabled: bool
    max_tokens: int | None = None
    temperature: float | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class AttemptLog:
    """Audit entry for one provider attempt."""

    provider_id: str
    success: bool
    error_message: str | None
    response_time_ms: int
