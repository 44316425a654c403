"""HTTP client for the chat, history and settings endpoints."""

from typing import Any

import httpx

from companion.client.auth import IdentityClient, error_message
from companion.schemas.settings_schema import AISettings


class ApiError(Exception):
    """Non-success response, or a success response without the expected data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class CompanionApi:
    """Calls the service on behalf of the session held by ``identity``."""

    def __init__(self, http: httpx.AsyncClient, identity: IdentityClient) -> None:
        self._http = http
        self._identity = identity

    async def send_chat(self, message: str) -> str:
        """Send one message and return the assistant's reply."""
        data = await self._request("POST", "/api/chat", json={"message": message})
        reply = data.get("response")
        if not reply:
            raise ApiError("API returned no reply")
        return str(reply)

    async def list_messages(self, limit: int | None = None) -> list[dict[str, Any]]:
        params = {"limit": limit} if limit is not None else None
        data = await self._request("GET", "/api/messages", params=params)
        return list(data.get("messages", []))

    async def get_settings(self) -> AISettings | None:
        """Stored settings, or None when the user has not been onboarded."""
        data = await self._request("GET", "/api/settings")
        stored = data.get("settings")
        return AISettings.model_validate(stored) if stored else None

    async def save_settings(self, settings: AISettings) -> AISettings:
        data = await self._request(
            "PUT", "/api/settings", json=settings.model_dump(by_alias=True)
        )
        return AISettings.model_validate(data["settings"])

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._http.request(
            method, path, headers=self._identity.auth_headers(), **kwargs
        )
        if response.is_error:
            raise ApiError(error_message(response), response.status_code)
        try:
            data = response.json()
        except ValueError as exc:
            raise ApiError("API returned malformed JSON", response.status_code) from exc
        if not isinstance(data, dict):
            raise ApiError("API returned an unexpected payload", response.status_code)
        return data
