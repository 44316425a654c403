"""Integration tests for the history and settings endpoints."""

from httpx import AsyncClient


class TestMessagesEndpoint:
    """Tests for GET /api/messages."""

    async def test_requires_auth(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/messages")
        assert resp.status_code == 401

    async def test_empty(self, authed_client: AsyncClient) -> None:
        resp = await authed_client.get("/api/messages")
        assert resp.status_code == 200
        assert resp.json() == {"messages": []}

    async def test_lists_exchange_in_order(self, authed_client: AsyncClient) -> None:
        await authed_client.post("/api/chat", json={"message": "first"})
        await authed_client.post("/api/chat", json={"message": "second"})

        resp = await authed_client.get("/api/messages")

        messages = resp.json()["messages"]
        assert [(m["role"], m["content"]) for m in messages] == [
            ("user", "first"),
            ("assistant", "Test response"),
            ("user", "second"),
            ("assistant", "Test response"),
        ]

    async def test_limit_keeps_most_recent(self, authed_client: AsyncClient) -> None:
        await authed_client.post("/api/chat", json={"message": "first"})
        await authed_client.post("/api/chat", json={"message": "second"})

        resp = await authed_client.get("/api/messages", params={"limit": 2})

        contents = [m["content"] for m in resp.json()["messages"]]
        assert contents == ["second", "Test response"]

    async def test_invalid_limit(self, authed_client: AsyncClient) -> None:
        resp = await authed_client.get("/api/messages", params={"limit": 0})
        assert resp.status_code == 422


class TestSettingsEndpoint:
    """Tests for GET/PUT /api/settings."""

    async def test_none_before_onboarding(self, authed_client: AsyncClient) -> None:
        resp = await authed_client.get("/api/settings")
        assert resp.status_code == 200
        assert resp.json() == {"settings": None}

    async def test_put_then_get(self, authed_client: AsyncClient) -> None:
        payload = {
            "userNickname": "Ann",
            "aiNickname": "Mo",
            "role": "Growth coach",
            "background": "",
            "reminder": "Sleep early",
            "language": "en",
        }
        put = await authed_client.put("/api/settings", json=payload)
        assert put.status_code == 200
        assert put.json()["settings"]["aiNickname"] == "Mo"

        resp = await authed_client.get("/api/settings")

        assert resp.json()["settings"] == payload

    async def test_put_replaces(self, authed_client: AsyncClient) -> None:
        await authed_client.put("/api/settings", json={"reminder": "old", "language": "en"})
        await authed_client.put("/api/settings", json={"aiNickname": "Kai"})

        settings = (await authed_client.get("/api/settings")).json()["settings"]

        assert settings["reminder"] == ""
        assert settings["aiNickname"] == "Kai"
        assert settings["language"] == "zh"

    async def test_put_rejects_unknown_language(self, authed_client: AsyncClient) -> None:
        resp = await authed_client.put("/api/settings", json={"language": "fr"})
        assert resp.status_code == 422

    async def test_requires_auth(self, async_client: AsyncClient) -> None:
        resp = await async_client.put("/api/settings", json={})
        assert resp.status_code == 401
