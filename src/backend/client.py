"""Async HTTP client for the conversation / analysis backend (Supabase edge functions)."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from src.config import Settings
from src.sessions.models import Analysis, ConversationRecord, RemoteStatus, Session
from src.sessions.payloads import parse_analysis, parse_conversations, parse_session

logger = logging.getLogger(__name__)


class SourceUnavailableError(Exception):
    """The backend could not be reached or returned an unusable response."""


class SessionSource(Protocol):
    """What the reconciler and the poller need from a session backend."""

    async def list_conversations(self) -> list[ConversationRecord]: ...

    async def fetch_analysis(self, conversation_id: str) -> Analysis | None: ...


class BackendClient:
    """Thin wrapper over the backend's HTTP endpoints.

    Every transport error, non-success status and malformed payload is raised
    as :class:`SourceUnavailableError`; callers decide how to recover.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        conversations_path: str = "/conversations",
        analysis_path: str = "/quick-handler",
        status_path: str = "/dynamic-handler",
        live_session_path: str = "/quick-worker",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.conversations_path = conversations_path
        self.analysis_path = analysis_path
        self.status_path = status_path
        self.live_session_path = live_session_path
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> BackendClient:
        return cls(
            settings.backend_url,
            settings.backend_api_key,
            conversations_path=settings.backend_conversations_path,
            analysis_path=settings.backend_analysis_path,
            status_path=settings.backend_status_path,
            live_session_path=settings.backend_live_session_path,
            timeout=settings.backend_timeout_sec,
        )

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                return await client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise SourceUnavailableError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            raise SourceUnavailableError(f"Bad response from {response.request.url}: {e}") from e

    async def list_conversations(self) -> list[ConversationRecord]:
        """Fetch the flat list of conversation records."""
        response = await self._request("GET", self.conversations_path)
        try:
            return parse_conversations(self._json(response))
        except ValidationError as e:
            raise SourceUnavailableError(f"Malformed conversation list: {e}") from e

    async def fetch_analysis(self, conversation_id: str) -> Analysis | None:
        """Fetch the analysis for one conversation; None when it does not exist yet."""
        response = await self._request("POST", self.analysis_path, json={"conversation_id": conversation_id})
        if response.status_code == 404:
            return None
        if response.is_success and not response.content:
            return None
        data = self._json(response)
        if not data:
            return None
        try:
            return parse_analysis(data)
        except ValidationError as e:
            raise SourceUnavailableError(f"Malformed analysis for {conversation_id}: {e}") from e

    async def update_status(self, conversation_id: str, status: RemoteStatus) -> None:
        """Report a recording lifecycle change to the backend."""
        response = await self._request(
            "POST",
            self.status_path,
            json={"conversation_id": conversation_id, "status": status.value},
        )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceUnavailableError(f"Status update for {conversation_id} failed: {e}") from e
        logger.info("Conversation %s marked %s", conversation_id, status.value)

    async def fetch_live_session(self) -> Session | None:
        """Fetch the in-progress live session, if any."""
        response = await self._request("POST", self.live_session_path, json={})
        if response.is_success and not response.content:
            return None
        data = self._json(response)
        if not data:
            return None
        try:
            return parse_session(data)
        except ValidationError as e:
            raise SourceUnavailableError(f"Malformed live session: {e}") from e
