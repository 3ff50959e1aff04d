"""Tests for the backend HTTP client (httpx MockTransport, no network required)."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from src.backend.client import BackendClient, SourceUnavailableError
from src.config import Settings
from src.sessions.models import RemoteStatus, SessionMode

BASE_URL = "https://example.supabase.co/functions/v1"

ANALYSIS_BODY = {
    "segments": [
        {"id": "seg-1", "startMs": 0, "endMs": 4000, "kind": "speech", "text": "hello there"},
    ],
    "metrics": {"durationSec": 4},
}


def _client(handler, api_key: str = "") -> BackendClient:
    return BackendClient(BASE_URL, api_key, transport=httpx.MockTransport(handler))


class TestListConversations:
    def test_parses_records(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=[
                    {"id": "c-1", "timestamp": 1736937000, "status": "finished"},
                    {"id": "c-2", "timestamp": 1736940000, "status": "processing"},
                ],
            )

        records = asyncio.run(_client(handler).list_conversations())

        assert [r.id for r in records] == ["c-1", "c-2"]
        assert seen[0].method == "GET"
        assert seen[0].url.path == "/functions/v1/conversations"

    def test_auth_headers_when_key_set(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        asyncio.run(_client(handler, api_key="anon-key").list_conversations())

        assert seen[0].headers["apikey"] == "anon-key"
        assert seen[0].headers["authorization"] == "Bearer anon-key"

    def test_no_auth_headers_without_key(self) -> None:
        assert "Authorization" not in BackendClient(BASE_URL).headers

    def test_server_error_raises(self) -> None:
        client = _client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(client.list_conversations())

    def test_connect_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SourceUnavailableError):
            asyncio.run(_client(handler).list_conversations())

    def test_malformed_records_raise(self) -> None:
        client = _client(lambda request: httpx.Response(200, json=[{"status": "finished"}]))
        with pytest.raises(SourceUnavailableError, match="Malformed"):
            asyncio.run(client.list_conversations())

    def test_non_json_body_raises(self) -> None:
        client = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(client.list_conversations())


class TestFetchAnalysis:
    def test_posts_conversation_id(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=ANALYSIS_BODY)

        analysis = asyncio.run(_client(handler).fetch_analysis("c-1"))

        assert analysis is not None
        assert [s.id for s in analysis.segments] == ["seg-1"]
        assert seen[0].method == "POST"
        assert seen[0].url.path.endswith("/quick-handler")
        assert json.loads(seen[0].content) == {"conversation_id": "c-1"}

    def test_not_found_is_none(self) -> None:
        client = _client(lambda request: httpx.Response(404, json={"error": "not found"}))
        assert asyncio.run(client.fetch_analysis("c-1")) is None

    def test_empty_body_is_none(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={}))
        assert asyncio.run(client.fetch_analysis("c-1")) is None

    def test_no_content_is_none(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b""))
        assert asyncio.run(client.fetch_analysis("c-1")) is None

    def test_malformed_analysis_raises(self) -> None:
        body = {"segments": [{"id": "seg-1", "kind": "speech"}]}
        client = _client(lambda request: httpx.Response(200, json=body))
        with pytest.raises(SourceUnavailableError, match="c-1"):
            asyncio.run(client.fetch_analysis("c-1"))


class TestUpdateStatus:
    def test_payload(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        asyncio.run(_client(handler).update_status("c-1", RemoteStatus.PROCESSING))

        assert seen[0].url.path.endswith("/dynamic-handler")
        assert json.loads(seen[0].content) == {"conversation_id": "c-1", "status": "processing"}

    def test_failure_raises(self) -> None:
        client = _client(lambda request: httpx.Response(503))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(client.update_status("c-1", RemoteStatus.FINISHED))


class TestFetchLiveSession:
    def test_parses_session(self) -> None:
        body = {
            "id": "live-1",
            "title": "Live run",
            "mode": "live",
            "context": "pitch",
            "createdAt": "2025-01-20T09:00:00Z",
            "analysisStatus": "processing",
        }
        client = _client(lambda request: httpx.Response(200, json=body))
        session = asyncio.run(client.fetch_live_session())
        assert session is not None
        assert session.mode is SessionMode.LIVE

    def test_no_live_session(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b""))
        assert asyncio.run(client.fetch_live_session()) is None

    def test_null_body_is_none(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b"null"))
        assert asyncio.run(client.fetch_live_session()) is None

    def test_empty_body_on_error_status_raises(self) -> None:
        client = _client(lambda request: httpx.Response(502, content=b""))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(client.fetch_live_session())


class TestFromSettings:
    def test_paths_and_timeout(self) -> None:
        settings = Settings(
            _env_file=None,
            backend_url=BASE_URL + "/",
            backend_api_key="k",
            backend_analysis_path="/analysis",
            backend_timeout_sec=3.0,
        )
        client = BackendClient.from_settings(settings)
        assert client.base_url == BASE_URL
        assert client.analysis_path == "/analysis"
        assert client.timeout == 3.0
        assert client.headers["apikey"] == "k"
