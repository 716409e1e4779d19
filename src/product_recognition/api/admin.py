"""Admin API endpoints with bearer password auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from product_recognition.api.models import (
    ProviderCreateRequest,
    SettingUpdateRequest,
)
from product_recognition.domain.errors import CredentialError, TransportError

if TYPE_CHECKING:
    from product_recognition.containers import AppContainer
    from product_recognition.services.admin import ProviderAdminService

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _get_admin_password(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_password


async def require_admin(
    authorization: str | None = Header(default=None),
    admin_password: str = Depends(_get_admin_password),
) -> None:
    """Ensure requests carry the admin password as a bearer token."""
    if authorization != f"Bearer {admin_password}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _admin_service(request: Request) -> ProviderAdminService:
    container: AppContainer = request.app.state.container
    if container.admin_service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase not configured",
        )
    return container.admin_service


@router.post("/login", dependencies=[Depends(require_admin)])
async def login() -> dict[str, object]:
    """Confirm the admin password."""
    return {"success": True}


@router.get("/providers", dependencies=[Depends(require_admin)])
async def list_providers(request: Request) -> list[dict[str, object]]:
    """Return stored providers without credentials."""
    return _admin_service(request).list_providers()


@router.post("/providers", dependencies=[Depends(require_admin)])
async def create_provider(
    payload: ProviderCreateRequest, request: Request
) -> dict[str, object]:
    """Store a new provider with an encrypted key."""
    return _admin_service(request).create_provider(
        name=payload.name,
        provider_id=payload.provider_id,
        base_url=payload.base_url,
        model=payload.model,
        api_key=payload.api_key,
        priority=payload.priority,
    )


@router.post("/providers/reload", dependencies=[Depends(require_admin)])
async def reload_providers(request: Request) -> dict[str, object]:
    """Reload the cached fallback chain from storage."""
    return {"success": True, "providers": _admin_service(request).reload_providers()}


@router.delete("/providers/{record_id}", dependencies=[Depends(require_admin)])
async def delete_provider(record_id: str, request: Request) -> dict[str, object]:
    """Delete a stored provider."""
    _admin_service(request).delete_provider(record_id)
    return {"success": True}


@router.post(
    "/providers/{record_id}/detect-models", dependencies=[Depends(require_admin)]
)
async def detect_models(record_id: str, request: Request) -> dict[str, object]:
    """Select and store the best model the provider exposes."""
    service = _admin_service(request)
    try:
        return await service.detect_model(record_id)
    except LookupError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    except CredentialError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message
        ) from exc
    except TransportError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Provider API error: {exc.message}",
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc


@router.get("/settings", dependencies=[Depends(require_admin)])
async def list_settings(request: Request) -> dict[str, str]:
    """Return all stored settings."""
    return _admin_service(request).list_settings()


@router.put("/settings/{key}", dependencies=[Depends(require_admin)])
async def update_setting(
    key: str, payload: SettingUpdateRequest, request: Request
) -> dict[str, object]:
    """Create or update a stored setting."""
    return _admin_service(request).set_setting(key, payload.value)
