"""Request payload models for the HTTP API."""

from pydantic import BaseModel


class RecognizeRequest(BaseModel):
    """Recognition request body."""

    image: str | None = None
    locale: str | None = None


class ProviderCreateRequest(BaseModel):
    """Admin payload for a new provider."""

    name: str
    provider_id: str
    base_url: str
    model: str
    api_key: str
    priority: int | None = None


class SettingUpdateRequest(BaseModel):
    """Admin payload for a settings value."""

    value: str
