"""Configuration constants, fallback limits, and .env loading.

WHY: Centralizes every tunable default so the upload rules, the
configuration snapshot, and the host bridge connection are easy to find
and override. Limits are plain data, not buried in the upload pipeline.

HOW: python-dotenv loads the .env file on import. Defaults are module-level
constants. load_bridge_token() gives a clear error when the host bridge
token is missing.

RULES:
- Size limits in the plugin settings are megabytes; fallbacks below are bytes
- A configured limit of zero (or less) means "use the fallback"
- Extensions are lowercase with a leading dot
- The bridge token is loaded from .env, never hardcoded
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Plugin identity and host bridge
# ---------------------------------------------------------------------------

PLUGIN_ID = os.getenv("VOICE_CLIPS_PLUGIN_ID", "com.mattermost.voice-clips")
HOST_BRIDGE_URL = os.getenv("HOST_BRIDGE_URL", "http://localhost:8065/plugins/bridge")
USER_ID_HEADER = "Mattermost-User-Id"

API_HOST = os.getenv("VOICE_CLIPS_HOST", "0.0.0.0")
API_PORT = int(os.getenv("VOICE_CLIPS_PORT", "8000"))

# ---------------------------------------------------------------------------
# Snapshot defaults (served by GET /api/v1/config before any load)
# ---------------------------------------------------------------------------

DEFAULT_MAX_DURATION = 300
DEFAULT_AUDIO_FORMAT = "webm"
DEFAULT_ENABLE_WAVEFORM = True
DEFAULT_MAX_AUDIO_FILE_SIZE_MB = 50
DEFAULT_AUDIO_BITRATE = 128

DEFAULT_MAX_VIDEO_DURATION = 120
DEFAULT_VIDEO_FORMAT = "webm"
DEFAULT_MAX_VIDEO_FILE_SIZE_MB = 100
DEFAULT_VIDEO_BITRATE = 1500

DEFAULT_ALLOWED_AUDIO_FORMATS = "webm,ogg,mp4,m4a,mp3,aac,wav"
DEFAULT_ALLOWED_VIDEO_FORMATS = "webm,mp4,mov"

# ---------------------------------------------------------------------------
# Upload limits
# ---------------------------------------------------------------------------

MEGABYTE = 1024 * 1024

FALLBACK_MAX_AUDIO_BYTES = DEFAULT_MAX_AUDIO_FILE_SIZE_MB * MEGABYTE
FALLBACK_MAX_VIDEO_BYTES = DEFAULT_MAX_VIDEO_FILE_SIZE_MB * MEGABYTE

MIN_UPLOAD_BYTES = 1024
"""Anything smaller is treated as an empty recording."""

MAX_FORM_BYTES = 128 * MEGABYTE
"""Upper bound on the whole multipart body, checked before parsing."""

DEFAULT_EXTENSION = ".webm"


def load_bridge_token() -> str:
    """Load the host bridge token from the environment.

    WHY: Every call to the host plugin bridge is authenticated. Loading the
    token from the environment (via .env) keeps it out of source code.

    RULES:
    - Raises ValueError if the token is missing or empty
    - Never returns a default/placeholder value
    """
    token = os.getenv("HOST_BRIDGE_TOKEN", "").strip()
    if not token:
        raise ValueError(
            "Host bridge token not configured. "
            "Add HOST_BRIDGE_TOKEN to the .env file next to the plugin."
        )
    return token
