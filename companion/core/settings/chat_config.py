"""Chat orchestration configuration."""

from typing import Literal

from pydantic import BaseModel


class ChatConfig(BaseModel, frozen=True):
    """Context window and persistence settings for the chat flow."""

    history_limit: int
    persistence_mode: Literal["best_effort", "strict"]

    @property
    def is_strict(self) -> bool:
        """Check if exchange persistence must succeed before responding."""
        return self.persistence_mode == "strict"
