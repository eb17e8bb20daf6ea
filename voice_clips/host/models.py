"""Host plugin API request and response dataclasses.

WHY: The plugin exchanges a handful of records with the host: posts, stored
file metadata, slash command definitions and invocations, and websocket
broadcast targets. Typed dataclasses make the shapes explicit and keep the
plugin logic independent of the transport used to reach the host.

HOW: Each dataclass mirrors the host's JSON object of the same name.
to_dict() produces the wire form; from_dict() parses host responses and
ignores unknown keys.

RULES:
- Field names are snake_case here and in the wire format
- Optional fields default to empty values, never None lists/dicts
- Post.id is assigned by the host on creation
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FileInfo:
    """Metadata for a file stored by the host."""

    id: str
    name: str = ""
    size: int = 0
    extension: str = ""
    mime_type: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FileInfo:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            size=data.get("size", 0),
            extension=data.get("extension", ""),
            mime_type=data.get("mime_type", ""),
        )


@dataclass
class Post:
    """A chat message in a channel.

    RULES:
    - type is "" for regular posts, "custom_*" for plugin-rendered posts
    - props holds structured metadata rendered by the web client
    """

    user_id: str
    channel_id: str
    message: str
    id: str = ""
    file_ids: List[str] = field(default_factory=list)
    type: str = ""
    props: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Post:
        return cls(
            id=data.get("id", ""),
            user_id=data.get("user_id", ""),
            channel_id=data.get("channel_id", ""),
            message=data.get("message", ""),
            file_ids=list(data.get("file_ids") or []),
            type=data.get("type", ""),
            props=dict(data.get("props") or {}),
        )


@dataclass
class Command:
    """A slash command definition registered with the host."""

    trigger: str
    display_name: str = ""
    description: str = ""
    auto_complete: bool = False
    auto_complete_desc: str = ""
    auto_complete_hint: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CommandArgs:
    """One slash command invocation as delivered by the host."""

    command: str
    user_id: str
    channel_id: str
    team_id: str = ""
    root_id: str = ""

    @property
    def trigger(self) -> str:
        """The leading "/word" of the command text, lowercased."""
        parts = self.command.strip().split()
        return parts[0].lower() if parts else ""


@dataclass
class CommandResponse:
    """What the plugin hands back after executing a command.

    An empty response means the plugin already replied on its own
    (ephemeral post, websocket event).
    """

    response_type: str = ""
    text: str = ""


@dataclass
class WebsocketBroadcast:
    """Audience of a websocket event. Empty fields do not restrict."""

    user_id: str = ""
    channel_id: str = ""
    team_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_file_info(data: Optional[Dict[str, Any]]) -> FileInfo:
    """Extract the stored file from an upload response.

    The host answers uploads with ``{"file_infos": [...]}``; a bare
    FileInfo object is accepted too.
    """
    data = data or {}
    infos = data.get("file_infos")
    if infos:
        return FileInfo.from_dict(infos[0])
    return FileInfo.from_dict(data)
