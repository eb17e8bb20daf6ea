"""The Voice Clips plugin: lifecycle hooks, slash commands, clip storage.

WHY: This is the object the host talks to. It owns the configuration store,
reacts to configuration changes, registers and executes the /voice and
/video commands, and turns a validated upload into a stored file plus a
chat post.

HOW: VoiceClipsPlugin depends only on the HostAPI interface. store_clip()
runs the upload pipeline after the HTTP layer has parsed the request:
size -> extension -> whitelist -> sniff -> permission -> duration ->
upload -> post. Each step short-circuits on failure.

RULES:
- Validation failures raise UploadValidationError (400/403/413)
- Host failures are logged and raised as ClipStorageError (500) with the
  host's error text in the detail
- No rollback: a file stored before a failed post stays in host storage
- Commands reply with an ephemeral post, then a websocket event for the
  invoking user only
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from voice_clips.core.settings import (
    ConfigurationError,
    ConfigurationStore,
    PluginConfiguration,
)
from voice_clips.core.validation import (
    MediaKind,
    UploadValidationError,
    check_content,
    check_duration,
    check_extension,
    check_file_size,
    parse_duration,
    resolve_extension,
)
from voice_clips.host.api import PERMISSION_CREATE_POST, HostAPI, HostAPIError
from voice_clips.host.models import (
    Command,
    CommandArgs,
    CommandResponse,
    Post,
    WebsocketBroadcast,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Post and command constants
# ---------------------------------------------------------------------------

VOICE_POST_TYPE = "custom_voice_clip"
VIDEO_POST_TYPE = "custom_video_clip"

VOICE_POST_MESSAGE = "🎤 Voice message"
VIDEO_POST_MESSAGE = "📹 Video message"

VOICE_RECORDER_EVENT = "open_voice_recorder"
VIDEO_RECORDER_EVENT = "open_video_recorder"

VOICE_COMMAND_HINT = (
    "🎤 Click the microphone button in the channel header to record a voice "
    "message, or wait for the recorder to open automatically."
)
VIDEO_COMMAND_HINT = (
    "📹 Click the video button in the channel header to record a video "
    "message, or wait for the recorder to open automatically."
)

COMMANDS = [
    Command(
        trigger="voice",
        display_name="Voice Message",
        description="Record and send a voice message",
        auto_complete=True,
        auto_complete_desc="Open voice message recorder",
    ),
    Command(
        trigger="video",
        display_name="Video Message",
        description="Record and send a video message",
        auto_complete=True,
        auto_complete_desc="Open video message recorder",
    ),
]


class ClipStorageError(Exception):
    """Raised when the host fails to store a clip or create its post."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


@dataclass
class ClipUpload:
    """One parsed upload request, alive for a single HTTP request."""

    channel_id: str
    kind: MediaKind
    data: bytes
    filename: Optional[str] = None
    duration: Optional[str] = None


@dataclass
class StoredClip:
    post_id: str
    file_id: str


def clip_filename(kind: MediaKind, extension: str, timestamp: Optional[int] = None) -> str:
    """Name the stored file after its kind and upload time."""
    if timestamp is None:
        timestamp = int(time.time())
    prefix = "video_clip" if kind.is_video else "voice_clip"
    return "{}_{}{}".format(prefix, timestamp, extension)


def build_clip_post(
    user_id: str,
    channel_id: str,
    file_id: str,
    kind: MediaKind,
    duration: int,
    extension: str,
) -> Post:
    """Build the chat post that carries a stored clip."""
    metadata = {"duration": duration, "format": extension}
    if kind.is_video:
        return Post(
            user_id=user_id,
            channel_id=channel_id,
            message=VIDEO_POST_MESSAGE,
            file_ids=[file_id],
            type=VIDEO_POST_TYPE,
            props={"video_clip": metadata},
        )
    return Post(
        user_id=user_id,
        channel_id=channel_id,
        message=VOICE_POST_MESSAGE,
        file_ids=[file_id],
        type=VOICE_POST_TYPE,
        props={"voice_clip": metadata},
    )


class VoiceClipsPlugin:
    """Server side of the voice and video clips plugin."""

    def __init__(self, host: HostAPI, store: Optional[ConfigurationStore] = None) -> None:
        self.host = host
        self.store = store or ConfigurationStore()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_configuration(self) -> PluginConfiguration:
        return self.store.get()

    def set_configuration(self, configuration: Optional[PluginConfiguration]) -> None:
        self.store.set(configuration)

    async def on_configuration_change(self) -> None:
        """Reload settings from the host and install them as a new snapshot.

        Raises:
            ConfigurationError: the host call failed or returned settings
                that do not parse.
        """
        try:
            raw = await self.host.load_plugin_configuration()
            configuration = PluginConfiguration.from_dict(raw)
        except (HostAPIError, ValueError) as exc:
            raise ConfigurationError("failed to load plugin configuration") from exc

        self.set_configuration(configuration)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def on_activate(self) -> None:
        await self.register_commands()
        logger.info("Voice Clips plugin activated")

    async def on_deactivate(self) -> None:
        logger.info("Voice Clips plugin deactivated")

    async def register_commands(self) -> None:
        """Register /voice and /video with the host."""
        for command in COMMANDS:
            await self.host.register_command(command)

    # ------------------------------------------------------------------
    # Slash commands
    # ------------------------------------------------------------------

    async def execute_command(self, args: CommandArgs) -> CommandResponse:
        """Open the matching recorder in the invoking user's client.

        Unknown triggers are ignored and get an empty response. A failed
        hint post is logged and the recorder event is still published.
        """
        trigger = args.trigger
        if trigger == "/voice":
            hint, event = VOICE_COMMAND_HINT, VOICE_RECORDER_EVENT
        elif trigger == "/video":
            hint, event = VIDEO_COMMAND_HINT, VIDEO_RECORDER_EVENT
        else:
            return CommandResponse()

        try:
            await self.host.send_ephemeral_post(
                args.user_id,
                Post(user_id=args.user_id, channel_id=args.channel_id, message=hint),
            )
        except HostAPIError as exc:
            logger.warning("Failed to send %s hint to %s: %s", trigger, args.user_id, exc.message)
        await self.host.publish_websocket_event(
            event,
            {"channel_id": args.channel_id},
            WebsocketBroadcast(user_id=args.user_id),
        )
        return CommandResponse()

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def store_clip(self, user_id: str, upload: ClipUpload) -> StoredClip:
        """Validate ``upload``, store it with the host and post it.

        Raises:
            UploadValidationError: the clip breaks a limit, has the wrong
                format, or the user may not post in the channel.
            ClipStorageError: the host failed to store the file or post.
        """
        config = self.get_configuration()
        kind = upload.kind

        check_file_size(upload.data, config, kind)

        extension = resolve_extension(upload.filename)
        check_extension(extension, config, kind)
        check_content(upload.data, extension, kind)

        allowed = await self.host.has_permission_to_channel(
            user_id, upload.channel_id, PERMISSION_CREATE_POST
        )
        if not allowed:
            raise UploadValidationError(403, "No permission to post in this channel")

        duration = 0
        if upload.duration and upload.duration.strip():
            duration = parse_duration(upload.duration)
            check_duration(duration, config, kind)

        filename = clip_filename(kind, extension)

        try:
            file_info = await self.host.upload_file(upload.data, upload.channel_id, filename)
        except HostAPIError as exc:
            logger.error("Failed to upload file: %s", exc.message)
            raise ClipStorageError("Failed to upload file: {}".format(exc.message)) from exc

        post = build_clip_post(
            user_id, upload.channel_id, file_info.id, kind, duration, extension
        )
        try:
            created = await self.host.create_post(post)
        except HostAPIError as exc:
            logger.error("Failed to create post: %s", exc.message)
            raise ClipStorageError("Failed to create post: {}".format(exc.message)) from exc

        logger.info(
            "Stored %s clip %s (%d bytes) in channel %s as post %s",
            kind.value, filename, len(upload.data), upload.channel_id, created.id,
        )
        return StoredClip(post_id=created.id, file_id=file_info.id)
