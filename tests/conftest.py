"""Shared test fixtures for the voice_clips test suite.

WHY: Plugin, API and command tests all need a host that behaves
predictably and remembers what it was asked to do. Centralizing the fake
here keeps every test module on the same host behavior.

HOW: FakeHost implements HostAPI in memory. It records every call, hands
out sequential ids, and can be told to deny permission or fail uploads,
post creation, ephemeral posts, or configuration loading.

RULES:
- FakeHost never touches the network
- Failures are opt-in via attributes, so the default path always succeeds
- Payload helpers build buffers with real container signatures
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from voice_clips.host.api import HostAPI, HostAPIError
from voice_clips.host.models import Command, FileInfo, Post, WebsocketBroadcast
from voice_clips.plugin import VoiceClipsPlugin
from voice_clips.server.app import create_app

WEBM_MAGIC = b"\x1a\x45\xdf\xa3"


class FakeHost(HostAPI):
    """In-memory HostAPI that records calls."""

    def __init__(self) -> None:
        self.allow_post = True
        self.upload_error: Optional[HostAPIError] = None
        self.post_error: Optional[HostAPIError] = None
        self.ephemeral_error: Optional[HostAPIError] = None
        self.config_error: Optional[HostAPIError] = None
        self.plugin_settings: Dict[str, Any] = {}

        self.uploads: List[Tuple[bytes, str, str]] = []
        self.posts: List[Post] = []
        self.ephemeral_posts: List[Tuple[str, Post]] = []
        self.events: List[Tuple[str, Dict[str, Any], WebsocketBroadcast]] = []
        self.commands: List[Command] = []
        self.permission_checks: List[Tuple[str, str, str]] = []
        self.closed = False

    async def upload_file(self, data: bytes, channel_id: str, filename: str) -> FileInfo:
        if self.upload_error is not None:
            raise self.upload_error
        self.uploads.append((data, channel_id, filename))
        return FileInfo(id="file{}".format(len(self.uploads)), name=filename, size=len(data))

    async def create_post(self, post: Post) -> Post:
        if self.post_error is not None:
            raise self.post_error
        self.posts.append(post)
        post.id = "post{}".format(len(self.posts))
        return post

    async def has_permission_to_channel(
        self, user_id: str, channel_id: str, permission: str
    ) -> bool:
        self.permission_checks.append((user_id, channel_id, permission))
        return self.allow_post

    async def send_ephemeral_post(self, user_id: str, post: Post) -> Post:
        if self.ephemeral_error is not None:
            raise self.ephemeral_error
        self.ephemeral_posts.append((user_id, post))
        return post

    async def publish_websocket_event(
        self, event: str, payload: Dict[str, Any], broadcast: WebsocketBroadcast
    ) -> None:
        self.events.append((event, payload, broadcast))

    async def register_command(self, command: Command) -> None:
        self.commands.append(command)

    async def load_plugin_configuration(self) -> Dict[str, Any]:
        if self.config_error is not None:
            raise self.config_error
        return dict(self.plugin_settings)

    async def aclose(self) -> None:
        self.closed = True


def webm_payload(size: int = 2000) -> bytes:
    """A WebM-signed buffer of ``size`` bytes."""
    return WEBM_MAGIC + b"\x00" * (size - len(WEBM_MAGIC))


def mp4_payload(size: int = 2000) -> bytes:
    """An ISO media buffer ("ftyp" at offset 4) of ``size`` bytes."""
    head = b"\x00\x00\x00\x20ftypisom"
    return head + b"\x00" * (size - len(head))


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def plugin(host):
    return VoiceClipsPlugin(host)


@pytest.fixture
def client(plugin):
    """TestClient without lifespan: configuration stays at defaults."""
    return TestClient(create_app(plugin))
