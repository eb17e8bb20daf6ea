"""Upload validation rules for voice and video clips.

WHY: Every uploaded clip is checked against the same set of limits before
anything is written to host storage: payload size, extension whitelist,
container signature, and declared duration. Keeping the rules here keeps the
upload pipeline in plugin.py a flat sequence of steps.

HOW: Each check is a small function that either returns or raises
UploadValidationError carrying the HTTP status the API should answer with.
Limits come from the active PluginConfiguration, with hardcoded fallbacks
when a setting is zero or unset.

RULES:
- Size limits: configured MB, fallback 50 MB audio / 100 MB video
- Payloads under 1024 bytes are rejected as empty
- Extension comparison is case-insensitive; missing extension means .webm
- Allowed formats fall back to the built-in list when the setting is blank
- Duration limits: configured seconds, fallback 300 audio / 120 video
- A non-numeric duration is treated as 0, never as an error
"""

from __future__ import annotations

import enum
from pathlib import PurePosixPath
from typing import List, Optional

from voice_clips.config import (
    DEFAULT_ALLOWED_AUDIO_FORMATS,
    DEFAULT_ALLOWED_VIDEO_FORMATS,
    DEFAULT_EXTENSION,
    DEFAULT_MAX_DURATION,
    DEFAULT_MAX_VIDEO_DURATION,
    FALLBACK_MAX_AUDIO_BYTES,
    FALLBACK_MAX_VIDEO_BYTES,
    MEGABYTE,
    MIN_UPLOAD_BYTES,
)
from voice_clips.core.settings import PluginConfiguration
from voice_clips.core.sniffer import is_valid_media


class MediaKind(str, enum.Enum):
    """Which recorder a clip came from.

    Inherits from str so the value doubles as the form field name of the
    file part ("audio" or "video").
    """

    AUDIO = "audio"
    VIDEO = "video"

    @classmethod
    def from_form(cls, value: Optional[str]) -> MediaKind:
        """Anything other than "video" selects the audio path."""
        return cls.VIDEO if value == cls.VIDEO.value else cls.AUDIO

    @property
    def is_video(self) -> bool:
        return self is MediaKind.VIDEO


class UploadValidationError(Exception):
    """Raised when an upload fails a validation rule.

    RULES:
    - status_code is the HTTP status to answer with (400 or 413)
    - detail is a human-readable message safe to return to the client
    """

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Size
# ---------------------------------------------------------------------------


def max_file_size_bytes(config: PluginConfiguration, kind: MediaKind) -> int:
    configured = config.max_video_file_size if kind.is_video else config.max_audio_file_size
    if configured > 0:
        return configured * MEGABYTE
    return FALLBACK_MAX_VIDEO_BYTES if kind.is_video else FALLBACK_MAX_AUDIO_BYTES


def check_file_size(data: bytes, config: PluginConfiguration, kind: MediaKind) -> None:
    limit = max_file_size_bytes(config, kind)
    if len(data) > limit:
        raise UploadValidationError(
            413,
            "File size exceeds maximum allowed ({} MB)".format(limit // MEGABYTE),
        )
    if len(data) < MIN_UPLOAD_BYTES:
        raise UploadValidationError(400, "File is too small or empty")


# ---------------------------------------------------------------------------
# Extension and content
# ---------------------------------------------------------------------------


def _parse_format_list(raw: str) -> List[str]:
    extensions = []
    for item in raw.split(","):
        item = item.strip().lower()
        if not item:
            continue
        if not item.startswith("."):
            item = "." + item
        extensions.append(item)
    return extensions


def allowed_extensions(config: PluginConfiguration, kind: MediaKind) -> List[str]:
    """Return the whitelist for ``kind`` as lowercase dotted extensions."""
    raw = config.allowed_video_formats if kind.is_video else config.allowed_audio_formats
    extensions = _parse_format_list(raw or "")
    if extensions:
        return extensions
    fallback = DEFAULT_ALLOWED_VIDEO_FORMATS if kind.is_video else DEFAULT_ALLOWED_AUDIO_FORMATS
    return _parse_format_list(fallback)


def resolve_extension(filename: Optional[str]) -> str:
    """Return the lowercase extension of ``filename``, or .webm if it has none."""
    suffix = PurePosixPath(filename or "").suffix
    return suffix.lower() if suffix else DEFAULT_EXTENSION


def check_extension(extension: str, config: PluginConfiguration, kind: MediaKind) -> None:
    allowed = allowed_extensions(config, kind)
    if extension.lower() not in allowed:
        raise UploadValidationError(
            400,
            "Invalid {} file format. Allowed: {}".format(
                kind.value, ", ".join(ext.lstrip(".") for ext in allowed)
            ),
        )


def check_content(data: bytes, extension: str, kind: MediaKind) -> None:
    if not is_valid_media(data, extension, kind.is_video):
        raise UploadValidationError(400, "File content does not match expected format")


# ---------------------------------------------------------------------------
# Duration
# ---------------------------------------------------------------------------


def parse_duration(raw: Optional[str]) -> int:
    """Parse the optional duration form field; junk becomes 0."""
    if not raw:
        return 0
    try:
        return int(raw.strip())
    except ValueError:
        return 0


def max_duration_seconds(config: PluginConfiguration, kind: MediaKind) -> int:
    configured = config.max_video_duration if kind.is_video else config.max_duration
    if configured > 0:
        return configured
    return DEFAULT_MAX_VIDEO_DURATION if kind.is_video else DEFAULT_MAX_DURATION


def check_duration(duration: int, config: PluginConfiguration, kind: MediaKind) -> None:
    limit = max_duration_seconds(config, kind)
    if duration > limit:
        raise UploadValidationError(
            400,
            "Duration exceeds maximum allowed ({} seconds)".format(limit),
        )
