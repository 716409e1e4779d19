"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from product_recognition.api.admin import router as admin_router
from product_recognition.api.models import RecognizeRequest
from product_recognition.app_logging import configure_logging
from product_recognition.containers import AppContainer
from product_recognition.domain.errors import (
    AllProvidersFailedError,
    ImageValidationError,
)
from product_recognition.domain.recognition import RecognitionResult

_logger = logging.getLogger(__name__)


def _get_app_api_key(request: Request) -> str | None:
    container: AppContainer = request.app.state.container
    return container.settings.app_api_key


async def require_app_key(
    x_api_key: str | None = Header(default=None),
    app_api_key: str | None = Depends(_get_app_api_key),
) -> None:
    """Ensure recognition requests carry the configured app key."""
    if not app_api_key:
        _logger.warning("APP_API_KEY not set; accepting unauthenticated request")
        return
    if not x_api_key or x_api_key != app_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing App API Key",
        )


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.registry.load()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok", "timestamp": datetime.now(tz=UTC).isoformat()}

    @app.post("/api/v1/recognize", dependencies=[Depends(require_app_key)])
    async def recognize(
        payload: RecognizeRequest,
        request: Request,
        accept_language: str | None = Header(default=None),
    ) -> JSONResponse:
        """Recognize products in a base64 image via the provider chain."""
        state_container: AppContainer = request.app.state.container
        locale = payload.locale or _first_language(accept_language)
        try:
            result = await state_container.provider_manager.recognize_with_fallback(
                payload.image, locale
            )
        except ImageValidationError as exc:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "success": False,
                    "error": {"code": exc.code, "message": exc.message},
                },
            )
        except AllProvidersFailedError as exc:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "success": False,
                    "error": {
                        "code": exc.code,
                        "message": exc.message,
                        "details": exc.details,
                        "attemptedProviders": exc.attempted_providers,
                    },
                },
            )
        return JSONResponse(content=_format_result(result))

    return app


def _format_result(result: RecognitionResult) -> dict[str, object]:
    return {
        "success": True,
        "data": {
            "items": [
                item.model_dump(mode="json", by_alias=True) for item in result.items
            ],
            "confidence": result.confidence,
            "provider": result.provider,
        },
        "metadata": {
            "attemptedProviders": result.attempted_providers,
            "processedAt": result.processed_at.isoformat(),
        },
    }


def _first_language(accept_language: str | None) -> str | None:
    if not accept_language:
        return None
    first = accept_language.split(",", 1)[0].split(";", 1)[0].strip()
    return first or None
