"""Supabase repository for AI provider records."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from product_recognition.domain.providers import ProviderRecord
from product_recognition.services.providers import ProviderRepository

_TABLE = "ai_providers"


@dataclass
class SupabaseProviderRepository(ProviderRepository):
    """Supabase implementation for provider records."""

    client: Client

    def list_enabled_providers(self) -> list[ProviderRecord]:
        """Return enabled providers ordered by ascending priority."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("enabled", True)
            .order("priority")
            .execute()
        )
        return [_to_record(row) for row in response.data or []]

    def list_providers(self) -> list[ProviderRecord]:
        """Return every provider ordered by ascending priority."""
        response = self.client.table(_TABLE).select("*").order("priority").execute()
        return [_to_record(row) for row in response.data or []]

    def get_provider(self, record_id: str) -> ProviderRecord | None:
        """Return a provider by row id."""
        response = (
            self.client.table(_TABLE).select("*").eq("id", record_id).limit(1).execute()
        )
        if not response.data:
            return None
        return _to_record(response.data[0])

    def create_provider(self, payload: dict[str, object]) -> ProviderRecord:
        """Insert a provider row."""
        response = self.client.table(_TABLE).insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create provider")
        return _to_record(response.data[0])

    def delete_provider(self, record_id: str) -> None:
        """Delete a provider row."""
        self.client.table(_TABLE).delete().eq("id", record_id).execute()

    def update_model(self, record_id: str, model: str) -> None:
        """Change the model identifier of a provider row."""
        self.client.table(_TABLE).update({"model": model}).eq("id", record_id).execute()


def _to_record(row: dict[str, object]) -> ProviderRecord:
    created = row.get("created_at")
    return ProviderRecord(
        id=str(row["id"]),
        provider_id=str(row["provider_id"]),
        name=str(row.get("name") or row["provider_id"]),
        base_url=str(row["base_url"]),
        model=str(row["model"]),
        api_key_encrypted=row.get("api_key_encrypted"),
        priority=int(row.get("priority") or 0),
        enabled=bool(row.get("enabled", True)),
        max_tokens=row.get("max_tokens"),
        temperature=row.get("temperature"),
        created_at=(
            datetime.fromisoformat(created)
            if isinstance(created, str) and created
            else None
        ),
    )
