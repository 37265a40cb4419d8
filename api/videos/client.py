"""
HTTP client for the video metadata API.

Used endpoints:
- GET  /api/videos        -> [video, ...]
- GET  /api/videos/{id}   -> video
- POST /api/videos        -> video (needs a session token)
"""

from __future__ import annotations

from typing import Any

import httpx


class ApiClientError(RuntimeError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(body or f"Request failed with status {status_code}")
        self.status_code = status_code
        self.body = body


class VideoApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        access_token: str | None = None,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or "").strip().rstrip("/")
        self._access_token = access_token
        self._timeout_s = timeout_s
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def _request(self, method: str, endpoint: str, body: Any = None) -> Any:
        async with httpx.AsyncClient(
            base_url=f"{self._base_url}/api",
            timeout=self._timeout_s,
            transport=self._transport,
        ) as client:
            resp = await client.request(
                method,
                endpoint,
                headers=self._headers(),
                json=body,
            )

        if not resp.is_success:
            raise ApiClientError(resp.status_code, resp.text)
        return resp.json()

    async def get_videos(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/videos")

    async def get_video(self, video_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/videos/{video_id}")

    async def create_video(self, video_data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/videos", body=video_data)
