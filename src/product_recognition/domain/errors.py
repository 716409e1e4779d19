"""Recognition error hierarchy."""


class RecognitionError(Exception):
    """Base error raised by the recognition core."""

    code = "RECOGNITION_FAILED"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ImageValidationError(RecognitionError):
    """The image payload was rejected before any provider was contacted."""

    code = "INVALID_IMAGE_FORMAT"


class CredentialError(RecognitionError):
    """Encryption key material is unusable."""

    code = "CREDENTIAL_ERROR"


class ProviderError(RecognitionError):
    """A single provider attempt failed; the fallback chain continues."""

    code = "PROVIDER_FAILED"


class TransportError(ProviderError):
    """Network, timeout or non-success HTTP status from a provider."""

    code = "TRANSPORT_ERROR"


class UpstreamFormatError(ProviderError):
    """Provider answered but the content could not be parsed into items."""

    code = "UPSTREAM_FORMAT_ERROR"


class AllProvidersFailedError(RecognitionError):
    """Every provider with a usable credential failed."""

    code = "ALL_PROVIDERS_FAILED"

    def __init__(
        self,
        message: str,
        details: dict[str, str],
        attempted_providers: list[str],
    ) -> None:
        super().__init__(message)
        self.details = details
        self.attempted_providers = attempted_providers
