"""Provider fallback orchestration for product recognition."""

import asyncio
import base64
import binascii
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from product_recognition.domain.errors import (
    AllProvidersFailedError,
    ImageValidationError,
    ProviderError,
    TransportError,
)
from product_recognition.domain.providers import AttemptLog, ProviderConfig
from product_recognition.domain.recognition import NormalizedResponse, RecognitionResult
from product_recognition.services.attempt_log import AttemptLogService
from product_recognition.services.normalizer import ResponseNormalizer
from product_recognition.services.prompts import template_for
from product_recognition.services.providers import ProviderRegistry

_logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Interface for OpenAI-compatible chat completion endpoints."""

    async def complete(
        self, provider: ProviderConfig, messages: list[dict[str, object]]
    ) -> str:
        """Return the assistant text for a chat request.

        Raises TransportError or UpstreamFormatError.
        """


@dataclass
class ProviderManager:
    """Tries providers in registry order until one yields parseable items."""

    registry: ProviderRegistry
    client: CompletionClient
    attempt_log: AttemptLogService
    normalizer: ResponseNormalizer = field(default_factory=ResponseNormalizer)
    timeout_seconds: float = 30.0

    async def recognize_with_fallback(
        self, image_base64: str | None, locale: str | None = None
    ) -> RecognitionResult:
        """Recognize products in a base64 image.

        Providers without a usable credential are skipped silently. The first
        provider whose answer normalizes wins and no later provider is called.
        Raises ImageValidationError before any call when the image is
        malformed, and AllProvidersFailedError when the chain is exhausted.
        """
        image_data_url = to_data_url(image_base64)
        errors: dict[str, str] = {}
        attempted: list[str] = []

        for provider in self.registry.ensure_loaded():
            if not provider.has_credential:
                _logger.info("Skipping %s: no API key configured", provider.id)
                continue
            attempted.append(provider.id)
            _logger.info("Trying provider: %s", provider.id)
            started = time.perf_counter()
            try:
                response = await self._attempt(provider, image_data_url, locale)
            except ProviderError as exc:
                elapsed_ms = _elapsed_ms(started)
                _logger.warning("%s failed: %s", provider.id, exc.message)
                errors[provider.id] = exc.message
                self.attempt_log.record(
                    AttemptLog(provider.id, False, exc.message, elapsed_ms)
                )
                continue

            self.attempt_log.record(
                AttemptLog(provider.id, True, None, _elapsed_ms(started))
            )
            _logger.info("Success with %s", provider.id)
            return RecognitionResult(
                items=response.items,
                confidence=response.confidence,
                provider=provider.id,
                attempted_providers=attempted,
                processed_at=datetime.now(tz=UTC),
            )

        _logger.error("All providers failed: %s", attempted)
        raise AllProvidersFailedError(
            "All AI providers failed to recognize the image",
            details=errors,
            attempted_providers=attempted,
        )

    async def _attempt(
        self, provider: ProviderConfig, image_data_url: str, locale: str | None
    ) -> NormalizedResponse:
        messages = self.build_messages(image_data_url, locale)
        try:
            content = await asyncio.wait_for(
                self.client.complete(provider, messages),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            raise TransportError(
                f"Timed out after {self.timeout_seconds:g}s"
            ) from exc
        return self.normalizer.normalize(content, locale)

    def build_messages(
        self, image_data_url: str, locale: str | None
    ) -> list[dict[str, object]]:
        """Build the system and user turns for a recognition request."""
        template = template_for(locale)
        system = self.registry.prompt_override or template.system
        return [
            {"role": "system", "content": system},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": template.user},
                    {"type": "image_url", "image_url": {"url": image_data_url}},
                ],
            },
        ]


def to_data_url(image_base64: str | None) -> str:
    """Validate a base64 image and wrap it in a data URL."""
    if not image_base64:
        raise ImageValidationError("Image field is required", code="MISSING_IMAGE")
    try:
        image_bytes = base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageValidationError("Image must be base64 encoded") from exc
    if not image_bytes:
        raise ImageValidationError("Image must be base64 encoded")
    return f"data:{_detect_mime_type(image_bytes)};base64,{image_base64}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
