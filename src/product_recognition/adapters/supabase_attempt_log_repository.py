"""Supabase repository for provider attempt logs."""

from dataclasses import dataclass

from supabase import Client

from product_recognition.domain.providers import AttemptLog
from product_recognition.services.attempt_log import AttemptLogRepository


@dataclass
class SupabaseAttemptLogRepository(AttemptLogRepository):
    """Supabase-backed attempt log repository."""

    client: Client

    def create_attempt(self, attempt: AttemptLog) -> None:
        """Create an attempt log row."""
        self.client.table("ai_provider_logs").insert(
            {
                "provider_id": attempt.provider_id,
                "success": attempt.success,
                "error_message": attempt.error_message,
                "response_time_ms": attempt.response_time_ms,
            }
        ).execute()
