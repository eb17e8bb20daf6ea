"""HTTP API package: FastAPI app factory and response schemas."""

from voice_clips.server.app import create_app

__all__ = ["create_app"]
