"""Async HTTP client for the Voice Journal API."""

import logging
from typing import Any

import httpx

logger = logging.getLogger("voice_journal")


class APIError(Exception):
    """Failed API call. ``status_code`` is None for network-level failures."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


def _detail_text(detail: Any) -> str:
    """Flatten an error ``detail``; request validation errors arrive as a list of objects."""
    if not detail:
        return ""
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list):
        messages = [item.get("msg", "") if isinstance(item, dict) else str(item) for item in detail]
        return "; ".join(m for m in messages if m)
    return str(detail)


class JournalApiClient:
    """Thin wrapper around ``httpx.AsyncClient`` that attaches the session token."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), headers=headers, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "JournalApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise APIError("Request timed out") from e
        except httpx.HTTPError as e:
            raise APIError(f"Network error: {e}") from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            if not isinstance(body, dict):
                body = {}
            raise APIError(
                _detail_text(body.get("detail")) or f"HTTP {response.status_code}",
                status_code=response.status_code,
                code=body.get("code"),
            )
        return response.json() if response.content else None

    async def transcribe(self, audio: bytes, filename: str, mime_type: str) -> dict:
        """Run the upload pipeline for one recording."""
        return await self._request("POST", "/api/v1/transcribe", files={"audio": (filename, audio, mime_type)})

    async def today_journals(self) -> list[dict]:
        return (await self._request("GET", "/api/v1/journals/today"))["items"]

    async def recent_journals(self, limit: int = 10) -> list[dict]:
        return (await self._request("GET", "/api/v1/journals/recent", params={"limit": limit}))["items"]

    async def stats(self) -> dict:
        return await self._request("GET", "/api/v1/journals/stats")

    async def update_journal(self, journal_id: int, rephrased_text: str) -> dict:
        return await self._request("PUT", f"/api/v1/journals/{journal_id}", json={"rephrased_text": rephrased_text})

    async def delete_journal(self, journal_id: int) -> None:
        await self._request("DELETE", f"/api/v1/journals/{journal_id}")

    async def today_mood(self) -> dict | None:
        return await self._request("GET", "/api/v1/mood/today")

    async def should_prompt_check_in(self) -> bool:
        return (await self._request("GET", "/api/v1/mood/check-in"))["shouldPrompt"]

    async def submit_mood(self, day_quality: str, emotions: list[str]) -> dict:
        return await self._request("POST", "/api/v1/mood/", json={"day_quality": day_quality, "emotions": emotions})
