"""User settings repository."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from companion.models.user_settings import UserSettings


class SettingsRepository:
    """Reads and upserts the single settings row of a user."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_user(self, user_id: str) -> UserSettings | None:
        result = await self._session.execute(
            select(UserSettings).where(UserSettings.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, user_id: str, settings: dict[str, Any]) -> UserSettings:
        """Create the row or replace its whole settings document.

        No locking: two concurrent first writes for one user may race and
        the loser fails on the primary key.
        """
        row = await self.find_by_user(user_id)
        now = datetime.now(UTC)
        if row is None:
            row = UserSettings(user_id=user_id, settings=settings, updated_at=now)
            self._session.add(row)
        else:
            row.settings = dict(settings)
            row.updated_at = now
        await self._session.flush()
        await self._session.refresh(row)
        return row
