"""Voice Clips: server side of a voice/video message plugin for a chat host.

WHY: Users record short audio or video clips in the web client. Something
has to check those uploads, store them with the host, and post them into
the channel with enough metadata for the client to render a player.

HOW: The web client posts clips to a small FastAPI app (server/). The app
hands parsed uploads to VoiceClipsPlugin (plugin.py), which validates them
with the core rules (core/) and talks to the host through the HostAPI
interface (host/).

RULES:
- The host owns storage, posts and permissions; nothing is persisted here
- Configuration is a snapshot swapped wholesale on host notifications
"""

__version__ = "0.1.0"
