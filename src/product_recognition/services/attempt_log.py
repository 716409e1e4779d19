"""Best-effort audit logging of provider attempts."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from product_recognition.domain.providers import AttemptLog

_logger = logging.getLogger(__name__)


class AttemptLogRepository(Protocol):
    """Persistence interface for provider attempt logs."""

    def create_attempt(self, attempt: AttemptLog) -> None:
        """Append an attempt log row."""


@dataclass
class AttemptLogService:
    """Schedules attempt log writes without blocking the caller."""

    repository: AttemptLogRepository | None
    _pending: set[asyncio.Task[None]] = field(default_factory=set, repr=False)

    def record(self, attempt: AttemptLog) -> None:
        """Schedule a write of the attempt; failures are logged and dropped."""
        if self.repository is None:
            return
        task = asyncio.get_running_loop().create_task(self._write(attempt))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        if self._pending:
            await asyncio.gather(*self._pending)

    async def _write(self, attempt: AttemptLog) -> None:
        try:
            await asyncio.to_thread(self.repository.create_attempt, attempt)
        except Exception as exc:
            _logger.warning(
                "Failed to log attempt for %s: %s", attempt.provider_id, exc
            )
