"""Supabase repository for the AI settings key-value table."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from product_recognition.services.providers import SettingsRepository

_TABLE = "ai_settings"


@dataclass
class SupabaseSettingsRepository(SettingsRepository):
    """Supabase implementation for settings."""

    client: Client

    def get_setting(self, key: str) -> str | None:
        """Return the stored value for a key."""
        response = (
            self.client.table(_TABLE)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    def list_settings(self) -> dict[str, str]:
        """Return all settings as a mapping."""
        response = self.client.table(_TABLE).select("*").execute()
        return {row["key"]: row["value"] for row in response.data or []}

    def set_setting(self, key: str, value: str) -> dict[str, object]:
        """Create or update a setting."""
        response = (
            self.client.table(_TABLE)
            .upsert(
                {
                    "key": key,
                    "value": value,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .execute()
        )
        return response.data[0] if response.data else {"key": key, "value": value}
