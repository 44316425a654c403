"""Linear first-run wizard that collects the user's settings."""

from collections.abc import Callable
from enum import IntEnum
from typing import get_args

import httpx
import structlog

from companion.client.api import ApiError, CompanionApi
from companion.client.i18n import TEXT
from companion.schemas.settings_schema import AISettings, Language

logger = structlog.get_logger()


class OnboardingStep(IntEnum):
    LANGUAGE = 1
    USER_NICKNAME = 2
    AI_NICKNAME = 3
    ROLE = 4
    BACKGROUND = 5
    REMINDER = 6


_TITLE_KEYS = {
    OnboardingStep.LANGUAGE: "chooseLanguage",
    OnboardingStep.USER_NICKNAME: "userNickname",
    OnboardingStep.AI_NICKNAME: "aiNickname",
    OnboardingStep.ROLE: "role",
    OnboardingStep.BACKGROUND: "background",
    OnboardingStep.REMINDER: "reminder",
}


class OnboardingWizard:
    """Six fixed steps; fields are buffered and saved once on completion.

    Only the language choice takes effect immediately. Skip exists on the
    first step only; later steps offer back instead. No field is required.
    """

    def __init__(
        self,
        api: CompanionApi,
        language: Language = "zh",
        on_language_change: Callable[[Language], None] | None = None,
        on_complete: Callable[[AISettings], None] | None = None,
    ) -> None:
        self._api = api
        self._on_language_change = on_language_change
        self._on_complete = on_complete
        self.step = OnboardingStep.LANGUAGE
        self.settings = AISettings(language=language)
        self.is_open = True
        self.completed = False
        self.save_error: str | None = None

    # --- Presentation ---

    @property
    def title(self) -> str:
        return TEXT[self.settings.language][_TITLE_KEYS[self.step]]

    @property
    def role_options(self) -> list[str]:
        return list(TEXT[self.settings.language]["roles"])

    @property
    def progress(self) -> float:
        return self.step / len(OnboardingStep)

    @property
    def can_skip(self) -> bool:
        return self.step == OnboardingStep.LANGUAGE

    @property
    def can_go_back(self) -> bool:
        return self.step > OnboardingStep.LANGUAGE

    @property
    def primary_label(self) -> str:
        key = "finish" if self.step == OnboardingStep.REMINDER else "next"
        return TEXT[self.settings.language][key]

    @property
    def secondary_label(self) -> str:
        key = "skip" if self.can_skip else "prev"
        return TEXT[self.settings.language][key]

    # --- Field input ---

    def set_language(self, language: Language) -> None:
        """Switch language now, for the wizard and the surrounding UI."""
        if language not in get_args(Language):
            raise ValueError(f"Unsupported language: {language}")
        self._replace(language=language)
        if self._on_language_change is not None:
            self._on_language_change(language)

    def set_user_nickname(self, value: str) -> None:
        self._replace(user_nickname=value)

    def set_ai_nickname(self, value: str) -> None:
        self._replace(ai_nickname=value)

    def choose_role(self, role: str) -> None:
        if role not in self.role_options:
            raise ValueError(f"Unknown role: {role}")
        self._replace(role=role)

    def set_background(self, value: str) -> None:
        self._replace(background=value)

    def set_reminder(self, value: str) -> None:
        self._replace(reminder=value)

    # --- Navigation ---

    async def next(self) -> bool:
        """Advance one step; on the last step, complete. Returns True once completed."""
        if self.completed:
            return True
        if self.step < OnboardingStep.REMINDER:
            self.step = OnboardingStep(self.step + 1)
            return False
        await self._finish()
        return True

    def back(self) -> None:
        if self.can_go_back:
            self.step = OnboardingStep(self.step - 1)

    async def skip(self) -> bool:
        """Complete with whatever was entered so far; first step only."""
        if not self.can_skip or self.completed:
            return False
        await self._finish()
        return True

    def close(self) -> None:
        """Dismiss without saving anything."""
        self.is_open = False

    async def _finish(self) -> None:
        self.completed = True
        self.is_open = False
        if self._on_complete is not None:
            self._on_complete(self.settings)
        try:
            await self._api.save_settings(self.settings)
        except (ApiError, httpx.HTTPError) as exc:
            self.save_error = str(exc)
            logger.warning("Saving onboarding settings failed", error=str(exc))

    def _replace(self, **changes: str) -> None:
        self.settings = self.settings.model_copy(update=changes)
