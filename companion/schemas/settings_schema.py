"""User settings schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Language = Literal["en", "zh"]


class AISettings(BaseModel):
    """Personalization captured by onboarding.

    Serialized with camelCase keys (``userNickname``, ``aiNickname``) both on
    the wire and in the stored JSON document. Every field may be empty.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_nickname: str = Field(default="", max_length=100)
    ai_nickname: str = Field(default="", max_length=100)
    role: str = Field(default="", max_length=100)
    background: str = Field(default="", max_length=2000)
    reminder: str = Field(default="", max_length=500)
    language: Language = "zh"


class SettingsEnvelope(BaseModel):
    """Settings lookup result; ``settings`` is null before onboarding."""

    settings: AISettings | None = None


class SettingsRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    settings: AISettings
    updated_at: datetime
