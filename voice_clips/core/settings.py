"""Plugin configuration snapshot and the store that swaps it.

WHY: Upload limits and allowed formats are tunable from the host's system
console. Request handlers run in parallel and must always see a complete,
consistent set of limits, even while an administrator is saving new ones.

HOW: PluginConfiguration is a plain dataclass treated as an immutable
snapshot. ConfigurationStore holds a reference to the current snapshot and
replaces it wholesale under a lock; readers get the reference and keep using
it for the rest of their request.

RULES:
- Snapshots are never mutated once installed; clone() to derive a new one
- get() before any set() returns (and caches) the built-in defaults
- Re-installing the exact snapshot already held is a programming error,
  unless that snapshot is empty (then it is ignored)
- A distinct snapshot is always accepted, even an all-empty one
- The lock is never held across I/O
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from voice_clips.config import (
    DEFAULT_ALLOWED_AUDIO_FORMATS,
    DEFAULT_ALLOWED_VIDEO_FORMATS,
    DEFAULT_AUDIO_BITRATE,
    DEFAULT_AUDIO_FORMAT,
    DEFAULT_ENABLE_WAVEFORM,
    DEFAULT_MAX_AUDIO_FILE_SIZE_MB,
    DEFAULT_MAX_DURATION,
    DEFAULT_MAX_VIDEO_DURATION,
    DEFAULT_MAX_VIDEO_FILE_SIZE_MB,
    DEFAULT_VIDEO_BITRATE,
    DEFAULT_VIDEO_FORMAT,
)


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded or installed."""


_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})


def _as_int(key: str, value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError("{} must be an integer, got {!r}".format(key, value))


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class PluginConfiguration:
    """One snapshot of the plugin's settings.

    Field names match the JSON keys in the host's plugin settings and in
    the GET /api/v1/config response. File sizes are megabytes, bitrates
    kbps, durations seconds. Allowed formats are comma-separated extension
    lists without dots (e.g. "webm,ogg").
    """

    # Audio settings
    max_duration: int = 0
    audio_format: str = ""
    enable_waveform: bool = False
    max_audio_file_size: int = 0
    audio_bitrate: int = 0

    # Video settings
    max_video_duration: int = 0
    video_format: str = ""
    max_video_file_size: int = 0
    video_bitrate: int = 0

    # Allowed formats (comma-separated)
    allowed_audio_formats: str = ""
    allowed_video_formats: str = ""

    @classmethod
    def defaults(cls) -> PluginConfiguration:
        """Return a snapshot populated with the built-in defaults."""
        return cls(
            max_duration=DEFAULT_MAX_DURATION,
            audio_format=DEFAULT_AUDIO_FORMAT,
            enable_waveform=DEFAULT_ENABLE_WAVEFORM,
            max_audio_file_size=DEFAULT_MAX_AUDIO_FILE_SIZE_MB,
            audio_bitrate=DEFAULT_AUDIO_BITRATE,
            max_video_duration=DEFAULT_MAX_VIDEO_DURATION,
            video_format=DEFAULT_VIDEO_FORMAT,
            max_video_file_size=DEFAULT_MAX_VIDEO_FILE_SIZE_MB,
            video_bitrate=DEFAULT_VIDEO_BITRATE,
            allowed_audio_formats=DEFAULT_ALLOWED_AUDIO_FORMATS,
            allowed_video_formats=DEFAULT_ALLOWED_VIDEO_FORMATS,
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> PluginConfiguration:
        """Build a snapshot from the host's raw plugin settings.

        WHY: The host stores settings as loosely typed JSON; numeric settings
        entered in the system console may arrive as strings.

        RULES:
        - Absent keys load as zero values, not as defaults
        - Unknown keys are ignored
        - Numeric strings are coerced; anything else raises ValueError
        """
        data = data or {}
        return cls(
            max_duration=_as_int("max_duration", data.get("max_duration")),
            audio_format=_as_str(data.get("audio_format")),
            enable_waveform=_as_bool(data.get("enable_waveform", False)),
            max_audio_file_size=_as_int("max_audio_file_size", data.get("max_audio_file_size")),
            audio_bitrate=_as_int("audio_bitrate", data.get("audio_bitrate")),
            max_video_duration=_as_int("max_video_duration", data.get("max_video_duration")),
            video_format=_as_str(data.get("video_format")),
            max_video_file_size=_as_int("max_video_file_size", data.get("max_video_file_size")),
            video_bitrate=_as_int("video_bitrate", data.get("video_bitrate")),
            allowed_audio_formats=_as_str(data.get("allowed_audio_formats")),
            allowed_video_formats=_as_str(data.get("allowed_video_formats")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def clone(self) -> PluginConfiguration:
        """Return a value-equal copy that can be modified independently."""
        return copy.copy(self)

    def is_empty(self) -> bool:
        return self == PluginConfiguration()


class ConfigurationStore:
    """Thread-safe holder of the active PluginConfiguration.

    HOW: Readers never take the lock. get() reads the reference once, and
    swapping a reference is atomic, so a reader sees either the old or the
    new snapshot whole. The lock serializes writers and the one-time
    creation of the defaults.
    """

    def __init__(self, initial: Optional[PluginConfiguration] = None) -> None:
        self._lock = threading.Lock()
        self._current = initial

    def get(self) -> PluginConfiguration:
        """Return the active snapshot, creating the defaults on first use."""
        current = self._current
        if current is not None:
            return current
        with self._lock:
            if self._current is None:
                self._current = PluginConfiguration.defaults()
            return self._current

    def set(self, configuration: Optional[PluginConfiguration]) -> None:
        """Replace the active snapshot.

        Passing None clears the store so the next get() yields defaults.

        Raises:
            ConfigurationError: ``configuration`` is the non-empty snapshot
                that is already installed.
        """
        with self._lock:
            if configuration is not None and configuration is self._current:
                if configuration.is_empty():
                    return
                raise ConfigurationError(
                    "set() called with the existing configuration"
                )
            self._current = configuration
