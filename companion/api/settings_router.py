"""User settings API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from companion.dependencies import get_settings_service
from companion.schemas.settings_schema import (
    AISettings,
    SettingsEnvelope,
    SettingsRecord,
)
from companion.services.settings_service import SettingsService

router = APIRouter(prefix="/api/settings", tags=["settings"])

SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]


@router.get("", response_model=SettingsEnvelope)
async def get_settings(service: SettingsServiceDep) -> SettingsEnvelope:
    """Return the caller's settings; null means onboarding has not run."""
    return await service.get_settings()


@router.put("", response_model=SettingsRecord)
async def put_settings(
    body: AISettings,
    service: SettingsServiceDep,
) -> SettingsRecord:
    """Create or replace the caller's settings."""
    return await service.save_settings(body)
