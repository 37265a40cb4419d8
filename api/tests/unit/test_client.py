"""Tests for the typed HTTP client of the video API."""

from __future__ import annotations

import json

import httpx
import pytest

from videos.client import ApiClientError, VideoApiClient


def _client(handler, **kwargs) -> VideoApiClient:
    return VideoApiClient("http://testserver/", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_get_videos():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1}])

    videos = await _client(handler).get_videos()

    assert videos == [{"id": 1}]
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/videos"
    assert "authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_get_video_by_id():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/videos/5"
        return httpx.Response(200, json={"id": 5})

    assert await _client(handler).get_video(5) == {"id": 5}


@pytest.mark.asyncio
async def test_create_video_sends_json_and_token():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 9, **json.loads(request.content)})

    created = await _client(handler, access_token="abc").create_video({"title": "Sunset"})

    assert created == {"id": 9, "title": "Sunset"}
    assert seen[0].method == "POST"
    assert seen[0].headers["authorization"] == "Bearer abc"
    assert seen[0].headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_error_response_raises_with_body_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text='{"detail":"Unauthorized"}')

    with pytest.raises(ApiClientError) as exc_info:
        await _client(handler).create_video({"title": "Sunset"})

    assert exc_info.value.status_code == 401
    assert str(exc_info.value) == '{"detail":"Unauthorized"}'
