"""OpenAI-compatible chat completions client for vision providers."""

from dataclasses import dataclass, field

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI

from product_recognition.domain.errors import TransportError, UpstreamFormatError
from product_recognition.domain.providers import ProviderConfig
from product_recognition.services.recognition import CompletionClient


@dataclass
class OpenAICompletionClient(CompletionClient):
    """Completion client that talks to any OpenAI-compatible base URL."""

    http_client: httpx.AsyncClient
    timeout_seconds: float = 30.0
    _clients: dict[tuple[str, str], AsyncOpenAI] = field(
        default_factory=dict, repr=False
    )

    @classmethod
    def create(cls, timeout_seconds: float = 30.0) -> "OpenAICompletionClient":
        """Create a completion client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(), timeout_seconds=timeout_seconds)

    async def complete(
        self, provider: ProviderConfig, messages: list[dict[str, object]]
    ) -> str:
        """Call ``/chat/completions`` and return the assistant content."""
        client = self._client_for(provider.base_url, provider.api_key or "")
        try:
            response = await client.chat.completions.create(
                model=provider.model,
                messages=messages,
                max_tokens=provider.max_tokens,
                temperature=provider.temperature,
            )
        except APIStatusError as exc:
            raise TransportError(
                f"API Error ({exc.status_code}): {exc.response.text}"
            ) from exc
        except APIError as exc:
            raise TransportError(str(exc)) from exc
        if not response.choices:
            raise UpstreamFormatError("Invalid API response format")
        content = response.choices[0].message.content
        if not content:
            raise UpstreamFormatError("Provider returned an empty response")
        return content

    async def list_models(self, base_url: str, api_key: str) -> list[str]:
        """Return the model ids a provider exposes under ``/models``."""
        client = self._client_for(base_url, api_key)
        try:
            page = await client.models.list()
        except APIStatusError as exc:
            raise TransportError(
                f"API Error ({exc.status_code}): {exc.response.text}"
            ) from exc
        except APIError as exc:
            raise TransportError(str(exc)) from exc
        return [model.id for model in page.data]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _client_for(self, base_url: str, api_key: str) -> AsyncOpenAI:
        key = (base_url, api_key)
        if key not in self._clients:
            self._clients[key] = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                http_client=self.http_client,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        return self._clients[key]
