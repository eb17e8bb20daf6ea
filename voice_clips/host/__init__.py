"""Host collaborator package: the interface the plugin consumes.

WHY: Storage, posting, permissions and client notifications all belong to
the messaging host. This package captures exactly those operations so the
plugin logic depends on an interface, not on a transport.

HOW: api.py defines the abstract HostAPI and HostAPIError, models.py the
records exchanged with the host, client.py the httpx-backed bridge client.

RULES:
- All host I/O goes through a HostAPI implementation
- No direct httpx usage outside client.py
"""

from voice_clips.host.api import HostAPI, HostAPIError
from voice_clips.host.models import (
    Command,
    CommandArgs,
    CommandResponse,
    FileInfo,
    Post,
    WebsocketBroadcast,
)

__all__ = [
    "Command",
    "CommandArgs",
    "CommandResponse",
    "FileInfo",
    "HostAPI",
    "HostAPIError",
    "Post",
    "WebsocketBroadcast",
]
