"""Service layer for per-user personalization settings."""

import structlog

from companion.repositories.settings_repo import SettingsRepository
from companion.schemas.settings_schema import (
    AISettings,
    SettingsEnvelope,
    SettingsRecord,
)

logger = structlog.get_logger()


class SettingsService:
    """Looks up and replaces the caller's onboarding settings."""

    def __init__(self, settings_repo: SettingsRepository, user_id: str) -> None:
        self._settings_repo = settings_repo
        self._user_id = user_id

    async def get_settings(self) -> SettingsEnvelope:
        """Return the stored settings, or ``settings=None`` before onboarding."""
        row = await self._settings_repo.find_by_user(self._user_id)
        if row is None:
            return SettingsEnvelope(settings=None)
        return SettingsEnvelope(settings=AISettings.model_validate(row.settings))

    async def save_settings(self, settings: AISettings) -> SettingsRecord:
        """Upsert the whole settings document."""
        row = await self._settings_repo.upsert(
            self._user_id, settings.model_dump(by_alias=True)
        )
        logger.info("User settings saved", user_id=self._user_id)
        return SettingsRecord.model_validate(row)
