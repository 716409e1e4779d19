"""Tests for the provider fallback manager."""

import asyncio

import pytest

from product_recognition.domain.errors import (
    AllProvidersFailedError,
    ImageValidationError,
    TransportError,
    UpstreamFormatError,
)
from product_recognition.domain.providers import ProviderConfig
from product_recognition.services.attempt_log import AttemptLogService
from product_recognition.services.credentials import CredentialCodec
from product_recognition.services.providers import SYSTEM_PROMPT_KEY, ProviderRegistry
from product_recognition.services.recognition import ProviderManager, to_data_url
from tests.conftest import (
    IMAGE_BASE64,
    FailingAttemptLogRepository,
    FakeCompletionClient,
    InMemoryAttemptLogRepository,
    InMemoryProviderRepository,
    InMemorySettingsRepository,
    make_provider,
    make_record,
)


class SlowCompletionClient(FakeCompletionClient):
    async def complete(
        self, provider: ProviderConfig, messages: list[dict[str, object]]
    ) -> str:
        if provider.id == "slow":
            self.calls.append(provider.id)
            await asyncio.sleep(10)
        return await super().complete(provider, messages)


def _manager(  # noqa: PLR0913
    codec: CredentialCodec,
    repository: InMemoryProviderRepository,
    client: FakeCompletionClient,
    attempts: InMemoryAttemptLogRepository | None = None,
    pinned: ProviderConfig | None = None,
    settings: InMemorySettingsRepository | None = None,
    timeout_seconds: float = 5.0,
) -> ProviderManager:
    registry = ProviderRegistry(
        codec=codec,
        provider_repository=repository,
        settings_repository=settings,
        pinned_provider=pinned,
    )
    return ProviderManager(
        registry=registry,
        client=client,
        attempt_log=AttemptLogService(attempts or InMemoryAttemptLogRepository()),
        timeout_seconds=timeout_seconds,
    )


async def _recognize(manager: ProviderManager, locale: str | None = None):
    try:
        return await manager.recognize_with_fallback(IMAGE_BASE64, locale)
    finally:
        await manager.attempt_log.drain()


def _repository(codec: CredentialCodec) -> InMemoryProviderRepository:
    return InMemoryProviderRepository(
        records=[
            make_record(codec, "third", priority=3),
            make_record(codec, "first", priority=1),
            make_record(codec, "second", priority=2),
        ]
    )


def test_first_success_short_circuits(codec: CredentialCodec) -> None:
    client = FakeCompletionClient()
    manager = _manager(codec, _repository(codec), client)

    result = asyncio.run(_recognize(manager))

    assert client.calls == ["first"]
    assert result.provider == "first"
    assert result.attempted_providers == ["first"]
    assert [item.quantity for item in result.items] == [2, 1]
    assert result.confidence == 0.85


def test_pinned_provider_tried_before_lower_priorities(codec: CredentialCodec) -> None:
    client = FakeCompletionClient(responses={"pinned": TransportError("down")})
    manager = _manager(
        codec,
        _repository(codec),
        client,
        pinned=make_provider("pinned", priority=100),
    )

    result = asyncio.run(_recognize(manager))

    assert client.calls == ["pinned", "first"]
    assert result.attempted_providers == ["pinned", "first"]
    assert result.provider == "first"


def test_falls_back_on_transport_and_format_errors(codec: CredentialCodec) -> None:
    attempts = InMemoryAttemptLogRepository()
    client = FakeCompletionClient(
        responses={
            "first": TransportError("API Error (500): boom"),
            "second": "I could not find any JSON, sorry.",
        }
    )
    manager = _manager(codec, _repository(codec), client, attempts)

    result = asyncio.run(_recognize(manager))

    assert client.calls == ["first", "second", "third"]
    assert result.provider == "third"
    assert result.attempted_providers == ["first", "second", "third"]
    assert [(a.provider_id, a.success) for a in attempts.attempts] == [
        ("first", False),
        ("second", False),
        ("third", True),
    ]
    assert attempts.attempts[0].error_message == "API Error (500): boom"


def test_all_failed_reports_every_attempt(codec: CredentialCodec) -> None:
    client = FakeCompletionClient(
        responses={
            "first": TransportError("timeout"),
            "second": UpstreamFormatError("Invalid API response format"),
            "third": "no json",
        }
    )
    repository = _repository(codec)
    repository.records.append(make_record(codec, "nokey", priority=4, api_key=None))
    manager = _manager(codec, repository, client)

    with pytest.raises(AllProvidersFailedError) as exc_info:
        asyncio.run(_recognize(manager))

    error = exc_info.value
    assert error.code == "ALL_PROVIDERS_FAILED"
    assert error.attempted_providers == ["first", "second", "third"]
    assert set(error.details) == {"first", "second", "third"}
    assert error.details["first"] == "timeout"
    assert error.details["second"] == "Invalid API response format"


def test_provider_without_credential_is_skipped(codec: CredentialCodec) -> None:
    attempts = InMemoryAttemptLogRepository()
    repository = InMemoryProviderRepository(
        records=[
            make_record(codec, "broken", priority=1, encrypted="garbage"),
            make_record(codec, "good", priority=2),
        ]
    )
    client = FakeCompletionClient()
    manager = _manager(codec, repository, client, attempts)

    result = asyncio.run(_recognize(manager))

    assert client.calls == ["good"]
    assert result.attempted_providers == ["good"]
    assert [a.provider_id for a in attempts.attempts] == ["good"]


def test_no_usable_providers_fails_with_empty_attempts(codec: CredentialCodec) -> None:
    repository = InMemoryProviderRepository(
        records=[make_record(codec, "broken", priority=1, api_key=None)]
    )
    client = FakeCompletionClient()
    manager = _manager(codec, repository, client)

    with pytest.raises(AllProvidersFailedError) as exc_info:
        asyncio.run(_recognize(manager))

    assert exc_info.value.attempted_providers == []
    assert exc_info.value.details == {}
    assert client.calls == []


def test_slow_provider_times_out_and_falls_back(codec: CredentialCodec) -> None:
    repository = InMemoryProviderRepository(
        records=[
            make_record(codec, "slow", priority=1),
            make_record(codec, "fast", priority=2),
        ]
    )
    client = SlowCompletionClient()
    manager = _manager(codec, repository, client, timeout_seconds=0.05)

    result = asyncio.run(_recognize(manager))

    assert result.provider == "fast"
    assert result.attempted_providers == ["slow", "fast"]


def test_audit_failures_do_not_affect_result(codec: CredentialCodec) -> None:
    registry = ProviderRegistry(codec=codec, provider_repository=_repository(codec))
    manager = ProviderManager(
        registry=registry,
        client=FakeCompletionClient(),
        attempt_log=AttemptLogService(FailingAttemptLogRepository()),
    )

    result = asyncio.run(_recognize(manager))

    assert result.provider == "first"


@pytest.mark.parametrize(
    ("image", "code"),
    [
        (None, "MISSING_IMAGE"),
        ("", "MISSING_IMAGE"),
        ("not base64!", "INVALID_IMAGE_FORMAT"),
    ],
)
def test_invalid_image_rejected_before_any_call(
    codec: CredentialCodec, image: str | None, code: str
) -> None:
    client = FakeCompletionClient()
    manager = _manager(codec, _repository(codec), client)

    with pytest.raises(ImageValidationError) as exc_info:
        asyncio.run(manager.recognize_with_fallback(image))

    assert exc_info.value.code == code
    assert client.calls == []


def test_messages_use_locale_template_and_data_url(codec: CredentialCodec) -> None:
    client = FakeCompletionClient()
    manager = _manager(codec, _repository(codec), client)

    asyncio.run(_recognize(manager, locale="en-US"))

    system, user = client.messages[0]
    assert system["role"] == "system"
    assert "product recognition assistant" in system["content"]
    assert user["content"][0]["text"] == "Please identify the products in this image."
    assert user["content"][1]["image_url"]["url"] == (
        f"data:image/jpeg;base64,{IMAGE_BASE64}"
    )


def test_stored_prompt_sent_when_builtin_not_forced(codec: CredentialCodec) -> None:
    client = FakeCompletionClient()
    registry = ProviderRegistry(
        codec=codec,
        provider_repository=_repository(codec),
        settings_repository=InMemorySettingsRepository(
            values={SYSTEM_PROMPT_KEY: "Custom instructions"}
        ),
        force_builtin_prompt=False,
    )
    manager = ProviderManager(
        registry=registry,
        client=client,
        attempt_log=AttemptLogService(None),
    )

    asyncio.run(_recognize(manager))

    assert client.messages[0][0]["content"] == "Custom instructions"


def test_to_data_url_detects_png() -> None:
    png = "iVBORw0KGgoAAAANSUhEUg=="

    assert to_data_url(png).startswith("data:image/png;base64,")
