"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for response serialization
and automatic OpenAPI documentation. The web client reads the config
payload key by key, so its shape is part of the contract.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- ConfigResponse keys match PluginConfiguration field names exactly
- Error responses use FastAPI's {"detail": "..."} shape
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from voice_clips.core.settings import PluginConfiguration


class UploadResponse(BaseModel):
    """Returned after a clip has been stored and posted."""

    post_id: str = Field(description="Id of the created post.")
    file_id: str = Field(description="Id of the stored file in host storage.")

    model_config = {"json_schema_extra": {
        "examples": [
            {"post_id": "p8k1z3x9bjf7mq4r6c2t5w0y1n", "file_id": "f3h6j9k2m5n8p1q4r7s0t3v6w9"}
        ]
    }}


class ConfigResponse(BaseModel):
    """The active plugin settings as seen by the web client."""

    max_duration: int = Field(description="Maximum voice clip duration in seconds.")
    audio_format: str = Field(description="Preferred recording format for audio.")
    enable_waveform: bool = Field(description="Whether the client draws a waveform.")
    max_audio_file_size: int = Field(description="Maximum audio upload size in MB.")
    audio_bitrate: int = Field(description="Audio recording bitrate in kbps.")
    max_video_duration: int = Field(description="Maximum video clip duration in seconds.")
    video_format: str = Field(description="Preferred recording format for video.")
    max_video_file_size: int = Field(description="Maximum video upload size in MB.")
    video_bitrate: int = Field(description="Video recording bitrate in kbps.")
    allowed_audio_formats: str = Field(description="Comma-separated audio extensions.")
    allowed_video_formats: str = Field(description="Comma-separated video extensions.")

    @classmethod
    def from_configuration(cls, configuration: PluginConfiguration) -> ConfigResponse:
        return cls(**configuration.to_dict())


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="Plugin version string.", json_schema_extra={"example": "0.1.0"})


# ---------------------------------------------------------------------------
# Host hook models
# ---------------------------------------------------------------------------


class CommandArgsRequest(BaseModel):
    """A slash command invocation delivered by the host."""

    command: str = Field(description="Full command text, e.g. '/voice'.")
    user_id: str = Field(description="Id of the invoking user.")
    channel_id: str = Field(description="Channel the command was typed in.")
    team_id: str = Field(default="", description="Team of the channel.")
    root_id: str = Field(default="", description="Thread root when typed in a reply.")


class CommandResultResponse(BaseModel):
    """Reply to a slash command. Empty when the plugin answered on its own."""

    response_type: str = Field(default="", description="'ephemeral', 'in_channel' or empty.")
    text: str = Field(default="", description="Text shown to the user, if any.")


class HookStatusResponse(BaseModel):
    status: str = Field(description="Outcome of the hook.", json_schema_extra={"example": "ok"})
