"""Shared test fixtures."""

from dataclasses import dataclass, field
from uuid import uuid4

import pytest

from product_recognition.config import Settings
from product_recognition.containers import AppContainer, pinned_provider_from
from product_recognition.domain.providers import (
    AttemptLog,
    ProviderConfig,
    ProviderRecord,
)
from product_recognition.services.admin import ModelLister, ProviderAdminService
from product_recognition.services.attempt_log import (
    AttemptLogRepository,
    AttemptLogService,
)
from product_recognition.services.credentials import CredentialCodec
from product_recognition.services.providers import (
    ProviderRegistry,
    ProviderRepository,
    SettingsRepository,
)
from product_recognition.services.recognition import CompletionClient, ProviderManager

TEST_KEY = "0123456789abcdef0123456789abcdef"
IMAGE_BASE64 = "aGVsbG8="
VALID_CONTENT = (
    '{"items": [{"name": "Coke", "category": "Beverage", "quantity": 2},'
    ' {"name": "Sprite", "category": "Beverage", "quantity": 1}]}'
)


def make_record(  # noqa: PLR0913
    codec: CredentialCodec,
    provider_id: str,
    priority: int,
    api_key: str | None = "secret",
    enabled: bool = True,
    encrypted: str | None = None,
) -> ProviderRecord:
    """Build a stored provider record with an encrypted key."""
    if encrypted is None and api_key is not None:
        encrypted = codec.encrypt(api_key)
    return ProviderRecord(
        id=str(uuid4()),
        provider_id=provider_id,
        name=provider_id.upper(),
        base_url=f"https://{provider_id}.example/v1",
        model=f"{provider_id}-vision",
        api_key_encrypted=encrypted,
        priority=priority,
        enabled=enabled,
    )


def make_provider(provider_id: str, priority: int, api_key: str | None = "k"):
    """Build a runtime provider config."""
    return ProviderConfig(
        id=provider_id,
        name=provider_id,
        priority=priority,
        enabled=True,
        base_url=f"https://{provider_id}.example/v1",
        model="vision",
        api_key=api_key,
        max_tokens=1000,
        temperature=0.1,
    )


@dataclass
class InMemoryProviderRepository(ProviderRepository):
    """In-memory provider repository for tests."""

    records: list[ProviderRecord] = field(default_factory=list)
    fail: bool = False
    list_calls: int = 0

    def list_enabled_providers(self) -> list[ProviderRecord]:
        self.list_calls += 1
        if self.fail:
            raise RuntimeError("store unavailable")
        enabled = [record for record in self.records if record.enabled]
        return sorted(enabled, key=lambda record: record.priority)

    def list_providers(self) -> list[ProviderRecord]:
        return sorted(self.records, key=lambda record: record.priority)

    def get_provider(self, record_id: str) -> ProviderRecord | None:
        return next((r for r in self.records if r.id == record_id), None)

    def create_provider(self, payload: dict[str, object]) -> ProviderRecord:
        record = ProviderRecord(id=str(uuid4()), **payload)
        self.records.append(record)
        return record

    def delete_provider(self, record_id: str) -> None:
        self.records = [r for r in self.records if r.id != record_id]

    def update_model(self, record_id: str, model: str) -> None:
        self.records = [
            ProviderRecord(
                id=r.id,
                provider_id=r.provider_id,
                name=r.name,
                base_url=r.base_url,
                model=model if r.id == record_id else r.model,
                api_key_encrypted=r.api_key_encrypted,
                priority=r.priority,
                enabled=r.enabled,
            )
            for r in self.records
        ]


@dataclass
class InMemorySettingsRepository(SettingsRepository):
    """In-memory settings repository for tests."""

    values: dict[str, str] = field(default_factory=dict)

    def get_setting(self, key: str) -> str | None:
        return self.values.get(key)

    def list_settings(self) -> dict[str, str]:
        return dict(self.values)

    def set_setting(self, key: str, value: str) -> dict[str, object]:
        self.values[key] = value
        return {"key": key, "value": value}


@dataclass
class InMemoryAttemptLogRepository(AttemptLogRepository):
    """In-memory attempt log repository for tests."""

    attempts: list[AttemptLog] = field(default_factory=list)

    def create_attempt(self, attempt: AttemptLog) -> None:
        self.attempts.append(attempt)


class FailingAttemptLogRepository(AttemptLogRepository):
    """Attempt log repository whose writes always fail."""

    def create_attempt(self, attempt: AttemptLog) -> None:
        raise RuntimeError("log table missing")


@dataclass
class FakeCompletionClient(CompletionClient):
    """Fake completion client returning scripted answers per provider."""

    responses: dict[str, str | Exception] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    messages: list[list[dict[str, object]]] = field(default_factory=list)

    async def complete(
        self, provider: ProviderConfig, messages: list[dict[str, object]]
    ) -> str:
        self.calls.append(provider.id)
        self.messages.append(messages)
        response = self.responses.get(provider.id, VALID_CONTENT)
        if isinstance(response, Exception):
            raise response
        return response


@dataclass
class FakeModelLister(ModelLister):
    """Fake model lister with a fixed model list."""

    models: list[str] = field(
        default_factory=lambda: ["text-only", "gpt-4o-mini", "qwen-vision-max"]
    )
    seen_keys: list[str] = field(default_factory=list)

    async def list_models(self, base_url: str, api_key: str) -> list[str]:
        self.seen_keys.append(api_key)
        return self.models


@pytest.fixture
def settings() -> Settings:
    return Settings(
        encryption_key=TEST_KEY,
        app_api_key="app-key",
        admin_password="admin-secret",
        pinned_provider_id="glm-4v",
        pinned_provider_api_key="pinned-key",
        provider_timeout_seconds=5.0,
    )


@pytest.fixture
def codec() -> CredentialCodec:
    return CredentialCodec.from_secret(TEST_KEY)


@pytest.fixture
def provider_repository(codec: CredentialCodec) -> InMemoryProviderRepository:
    return InMemoryProviderRepository(
        records=[
            make_record(codec, "openai", priority=2),
            make_record(codec, "qwen", priority=1),
        ]
    )


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def attempt_repository() -> InMemoryAttemptLogRepository:
    return InMemoryAttemptLogRepository()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    codec: CredentialCodec,
    provider_repository: InMemoryProviderRepository,
    completion_client: FakeCompletionClient,
    attempt_repository: InMemoryAttemptLogRepository,
) -> AppContainer:
    settings_repository = InMemorySettingsRepository()
    registry = ProviderRegistry(
        codec=codec,
        provider_repository=provider_repository,
        settings_repository=settings_repository,
        pinned_provider=pinned_provider_from(settings),
        force_builtin_prompt=settings.force_builtin_prompt,
    )
    attempt_log = AttemptLogService(attempt_repository)
    provider_manager = ProviderManager(
        registry=registry,
        client=completion_client,
        attempt_log=attempt_log,
        timeout_seconds=settings.provider_timeout_seconds,
    )
    admin_service = ProviderAdminService(
        provider_repository=provider_repository,
        settings_repository=settings_repository,
        codec=codec,
        model_lister=FakeModelLister(),
        registry=registry,
    )

    async def close_resources() -> None:
        await attempt_log.drain()

    return AppContainer(
        settings=settings,
        registry=registry,
        provider_manager=provider_manager,
        admin_service=admin_service,
        close_resources=close_resources,
    )
