"""Tests for the httpx-backed host bridge client.

WHY: The bridge client is the only code that knows the wire format of the
host's plugin bridge. These tests pin the requests it sends and how it
turns host errors into HostAPIError.

HOW: httpx.MockTransport answers requests in-process; the handler records
each request so tests can inspect paths, headers and bodies.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from voice_clips.host.api import HostAPIError
from voice_clips.host.client import HostBridgeClient
from voice_clips.host.models import Command, Post, WebsocketBroadcast


def _client(handler):
    return HostBridgeClient(
        token="secret",
        base_url="http://host.test/bridge/",
        plugin_id="com.example.clips",
        transport=httpx.MockTransport(handler),
    )


def _run(coro_factory, handler):
    async def _go():
        async with _client(handler) as host:
            return await coro_factory(host)

    return asyncio.run(_go())


class TestRequests:

    def test_upload_file(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"file_infos": [{"id": "f1", "name": "voice_clip_1.webm", "size": 4}]})

        info = _run(lambda h: h.upload_file(b"data", "c1", "voice_clip_1.webm"), handler)

        assert info.id == "f1"
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/bridge/files"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["X-Plugin-Id"] == "com.example.clips"
        body = request.read()
        assert b'name="channel_id"' in body
        assert b'filename="voice_clip_1.webm"' in body

    def test_create_post(self):
        def handler(request):
            payload = json.loads(request.content)
            payload["id"] = "p9"
            return httpx.Response(201, json=payload)

        post = Post(user_id="u1", channel_id="c1", message="hi", type="custom_voice_clip")
        created = _run(lambda h: h.create_post(post), handler)
        assert created.id == "p9"
        assert created.type == "custom_voice_clip"

    def test_permission_check(self):
        def handler(request):
            payload = json.loads(request.content)
            assert payload == {"user_id": "u1", "channel_id": "c1", "permission": "create_post"}
            return httpx.Response(200, json={"allowed": True})

        assert _run(lambda h: h.has_permission_to_channel("u1", "c1", "create_post"), handler) is True

    def test_websocket_event(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(204)

        _run(
            lambda h: h.publish_websocket_event(
                "open_voice_recorder", {"channel_id": "c1"}, WebsocketBroadcast(user_id="u1")
            ),
            handler,
        )
        assert seen[0]["event"] == "open_voice_recorder"
        assert seen[0]["broadcast"]["user_id"] == "u1"

    def test_register_command(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, json.loads(request.content)))
            return httpx.Response(201, json={})

        _run(lambda h: h.register_command(Command(trigger="voice")), handler)
        assert seen[0][0] == "/bridge/commands"
        assert seen[0][1]["trigger"] == "voice"

    def test_load_configuration(self):
        def handler(request):
            assert request.method == "GET"
            return httpx.Response(200, json={"max_duration": 120})

        assert _run(lambda h: h.load_plugin_configuration(), handler) == {"max_duration": 120}


class TestErrors:

    def test_host_error_message(self):
        def handler(request):
            return httpx.Response(413, json={"message": "file too big", "status_code": 413})

        with pytest.raises(HostAPIError) as excinfo:
            _run(lambda h: h.upload_file(b"x", "c1", "a.webm"), handler)
        assert excinfo.value.status_code == 413
        assert excinfo.value.message == "file too big"

    def test_plain_text_error(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(HostAPIError) as excinfo:
            _run(lambda h: h.create_post(Post(user_id="u", channel_id="c", message="m")), handler)
        assert excinfo.value.message == "bad gateway"

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(HostAPIError) as excinfo:
            _run(lambda h: h.register_command(Command(trigger="video")), handler)
        assert excinfo.value.status_code == 0

    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("HOST_BRIDGE_TOKEN", raising=False)
        with pytest.raises(ValueError, match="HOST_BRIDGE_TOKEN"):
            HostBridgeClient()
