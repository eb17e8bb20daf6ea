"""The narrow host interface the plugin depends on.

WHY: The plugin only makes sense inside the messaging host, but its logic
should not care how the host is reached. Capturing exactly the operations
it uses behind one abstract class lets the HTTP bridge client serve in
production and a recording fake serve in tests.

HOW: HostAPI is an ABC of async methods, one per host operation. Host-side
failures surface as HostAPIError; permission checks return a bool.

RULES:
- Implementations raise HostAPIError for every host-reported failure
- publish_websocket_event is fire-and-forget and returns nothing
- load_plugin_configuration returns the raw settings dict for this plugin
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from voice_clips.host.models import Command, FileInfo, Post, WebsocketBroadcast

PERMISSION_CREATE_POST = "create_post"


class HostAPIError(Exception):
    """Raised when the host reports a failure.

    RULES:
    - status_code is the host's HTTP status (0 when the host was unreachable)
    - message is the host's error text, echoed to API callers on 500s
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class HostAPI(ABC):
    """Operations the plugin consumes from the host."""

    @abstractmethod
    async def upload_file(self, data: bytes, channel_id: str, filename: str) -> FileInfo:
        """Store ``data`` as ``filename`` in ``channel_id``."""

    @abstractmethod
    async def create_post(self, post: Post) -> Post:
        """Create ``post`` and return it with its host-assigned id."""

    @abstractmethod
    async def has_permission_to_channel(
        self, user_id: str, channel_id: str, permission: str
    ) -> bool:
        """Return True if ``user_id`` holds ``permission`` in ``channel_id``."""

    @abstractmethod
    async def send_ephemeral_post(self, user_id: str, post: Post) -> Post:
        """Show ``post`` to ``user_id`` only, without persisting it."""

    @abstractmethod
    async def publish_websocket_event(
        self, event: str, payload: Dict[str, Any], broadcast: WebsocketBroadcast
    ) -> None:
        """Send a plugin event to the web clients matched by ``broadcast``."""

    @abstractmethod
    async def register_command(self, command: Command) -> None:
        """Register a slash command owned by this plugin."""

    @abstractmethod
    async def load_plugin_configuration(self) -> Dict[str, Any]:
        """Return this plugin's settings as stored by the host."""

    async def aclose(self) -> None:
        """Release transport resources. No-op unless overridden."""
