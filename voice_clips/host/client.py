"""Async HTTP client for the host's plugin bridge.

WHY: The plugin runs out of process, next to the messaging host. The host
exposes its plugin API (file storage, posts, permissions, ephemeral posts,
websocket events, command registration, settings) through a small
authenticated HTTP bridge. This module is the only place that speaks it.

HOW: Wraps httpx.AsyncClient with Bearer token auth. Each HostAPI method is
one request. JSON in, JSON out; file uploads are multipart. The underlying
connection pool is created on first use and closed by aclose() (or by
leaving the async context manager).

RULES:
- Non-2xx responses raise HostAPIError with the host's "message" text
- Transport errors raise HostAPIError with status_code 0
- The plugin id scopes every request (X-Plugin-Id header)
- No retries: every failure is terminal for the calling request
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from voice_clips.config import HOST_BRIDGE_URL, PLUGIN_ID, load_bridge_token
from voice_clips.host.api import HostAPI, HostAPIError
from voice_clips.host.models import (
    Command,
    FileInfo,
    Post,
    WebsocketBroadcast,
    parse_file_info,
)

logger = logging.getLogger(__name__)

_TIMEOUT = httpx.Timeout(120.0, connect=10.0)


def _error_message(resp: httpx.Response) -> str:
    """Pull the host's error text out of a failed response."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if message:
            return str(message)
    return resp.text


class HostBridgeClient(HostAPI):
    """HostAPI implementation backed by the host's HTTP plugin bridge.

    RULES:
    - Use as: async with HostBridgeClient() as host: ...
      or call aclose() when done
    - token defaults to load_bridge_token() from .env
    - base_url defaults to HOST_BRIDGE_URL from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        plugin_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token = token or load_bridge_token()
        self._base_url = (base_url or HOST_BRIDGE_URL).rstrip("/")
        self._plugin_id = plugin_id or PLUGIN_ID
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> HostBridgeClient:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Authorization": "Bearer {}".format(self._token),
                    "X-Plugin-Id": self._plugin_id,
                },
                timeout=_TIMEOUT,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = self._ensure_client()
        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Host bridge request %s %s failed: %s", method, path, exc)
            raise HostAPIError(0, "host bridge unreachable: {}".format(exc)) from exc

        if resp.status_code >= 400:
            raise HostAPIError(resp.status_code, _error_message(resp))
        return resp

    # ------------------------------------------------------------------
    # Files and posts
    # ------------------------------------------------------------------

    async def upload_file(self, data: bytes, channel_id: str, filename: str) -> FileInfo:
        resp = await self._request(
            "POST",
            "/files",
            data={"channel_id": channel_id},
            files={"files": (filename, data)},
        )
        return parse_file_info(resp.json())

    async def create_post(self, post: Post) -> Post:
        resp = await self._request("POST", "/posts", json=post.to_dict())
        return Post.from_dict(resp.json())

    async def send_ephemeral_post(self, user_id: str, post: Post) -> Post:
        resp = await self._request(
            "POST",
            "/posts/ephemeral",
            json={"user_id": user_id, "post": post.to_dict()},
        )
        return Post.from_dict(resp.json())

    # ------------------------------------------------------------------
    # Permissions, events, commands, settings
    # ------------------------------------------------------------------

    async def has_permission_to_channel(
        self, user_id: str, channel_id: str, permission: str
    ) -> bool:
        resp = await self._request(
            "POST",
            "/permissions/channel",
            json={
                "user_id": user_id,
                "channel_id": channel_id,
                "permission": permission,
            },
        )
        return bool(resp.json().get("allowed", False))

    async def publish_websocket_event(
        self, event: str, payload: Dict[str, Any], broadcast: WebsocketBroadcast
    ) -> None:
        await self._request(
            "POST",
            "/websocket/events",
            json={"event": event, "data": payload, "broadcast": broadcast.to_dict()},
        )

    async def register_command(self, command: Command) -> None:
        await self._request("POST", "/commands", json=command.to_dict())

    async def load_plugin_configuration(self) -> Dict[str, Any]:
        resp = await self._request("GET", "/configuration")
        body = resp.json()
        if not isinstance(body, dict):
            raise HostAPIError(resp.status_code, "plugin configuration is not an object")
        return body
