"""FastAPI application serving the plugin's HTTP routes.

WHY: The web client uploads recorded clips and reads the recorder limits
over HTTP. The host proxies requests under the plugin's base path and
stamps the caller's identity into a header, so this app only has to parse
the form, check identity, and hand the clip to the plugin. The host itself
also calls in here: slash command invocations and configuration-change
notifications arrive on the /hooks routes.

HOW: create_app() builds a FastAPI app around one VoiceClipsPlugin. The
upload route parses the multipart form itself, so that the identity check
runs before parsing and a missing field is a 400 rather than a 422. The
body is read through a counting stream, so the size bound holds for
chunked requests as well. Plugin exceptions are mapped onto HTTP statuses
here and nowhere else. The lifespan loads configuration and activates the
plugin on startup.

RULES:
- POST /api/v1/upload and GET /api/v1/config are the client surface
- POST /hooks/execute_command and /hooks/configuration_change are the host
  surface, authenticated with the bridge token (Bearer)
- Wrong method -> 405, unknown path -> 404 (FastAPI routing)
- Missing identity header -> 401, before the body is read
- Bodies larger than max_form_bytes -> 413, declared or counted
- UploadValidationError -> its own status; ClipStorageError -> 500
"""

from __future__ import annotations

import hmac
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import FormParser, MultiPartException, MultiPartParser

from voice_clips import __version__
from voice_clips.config import (
    API_HOST,
    API_PORT,
    MAX_FORM_BYTES,
    MEGABYTE,
    USER_ID_HEADER,
    load_bridge_token,
)
from voice_clips.core.settings import ConfigurationError
from voice_clips.core.validation import MediaKind, UploadValidationError
from voice_clips.host.models import CommandArgs
from voice_clips.plugin import ClipStorageError, ClipUpload, VoiceClipsPlugin
from voice_clips.server.models import (
    CommandArgsRequest,
    CommandResultResponse,
    ConfigResponse,
    ErrorResponse,
    HealthResponse,
    HookStatusResponse,
    UploadResponse,
)

logger = logging.getLogger(__name__)


class BodyTooLargeError(Exception):
    """Raised mid-stream once a request body passes the form size bound."""


def _declared_length(request: Request) -> int:
    try:
        return int(request.headers.get("content-length", "0"))
    except ValueError:
        return 0


async def _bounded_stream(request: Request, limit: int) -> AsyncIterator[bytes]:
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise BodyTooLargeError(received)
        yield chunk


async def _parse_form(request: Request, limit: int) -> FormData:
    """Parse a multipart or urlencoded body, reading at most ``limit`` bytes.

    Other content types yield an empty form, as Request.form() does.

    Raises:
        BodyTooLargeError: the body is longer than ``limit``.
        MultiPartException: the multipart body is malformed.
    """
    headers = request.headers
    content_type = headers.get("content-type", "").split(";")[0].strip().lower()
    stream = _bounded_stream(request, limit)
    if content_type == "multipart/form-data":
        return await MultiPartParser(headers, stream).parse()
    if content_type == "application/x-www-form-urlencoded":
        return await FormParser(headers, stream).parse()
    return FormData()


def _too_large(limit: int) -> HTTPException:
    if limit >= MEGABYTE:
        size = "{} MB".format(limit // MEGABYTE)
    else:
        size = "{} bytes".format(limit)
    return HTTPException(
        status_code=413,
        detail="Request body exceeds maximum allowed ({})".format(size),
    )


def create_app(
    plugin: VoiceClipsPlugin,
    hook_token: Optional[str] = None,
    max_form_bytes: int = MAX_FORM_BYTES,
) -> FastAPI:
    """Create the FastAPI app for ``plugin``.

    WHY: A factory lets tests inject a plugin wired to a fake host and
    avoids module-level side effects.

    RULES:
    - The plugin is reachable from handlers as request.app.state.plugin
    - Startup reloads configuration, then registers commands
    - Shutdown deactivates the plugin and closes the host transport
    - hook_token None disables the host hooks (every call gets 401)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await plugin.on_configuration_change()
        await plugin.on_activate()
        yield
        await plugin.on_deactivate()
        await plugin.host.aclose()

    app = FastAPI(
        lifespan=lifespan,
        title="Voice Clips Plugin API",
        description=(
            "Upload recorded voice and video clips into a channel and read "
            "the recorder limits configured by the administrator."
        ),
        version=__version__,
    )
    app.state.plugin = plugin

    def _require_host(request: Request) -> None:
        supplied = request.headers.get("authorization", "")
        if hook_token is None or not hmac.compare_digest(
            supplied.encode("utf-8"), "Bearer {}".format(hook_token).encode("utf-8")
        ):
            raise HTTPException(status_code=401, detail="Unauthorized")

    # ------------------------------------------------------------------
    # Endpoints: clips
    # ------------------------------------------------------------------

    @app.post(
        "/api/v1/upload",
        response_model=UploadResponse,
        tags=["clips"],
        summary="Upload a voice or video clip",
        description=(
            "Multipart form with channel_id, type (audio|video, default "
            "audio), the file part named after the type, and an optional "
            "duration in seconds. Stores the file and creates a post."
        ),
        responses={
            400: {"model": ErrorResponse, "description": "Malformed or invalid upload"},
            401: {"model": ErrorResponse, "description": "Missing user identity"},
            403: {"model": ErrorResponse, "description": "No permission to post"},
            413: {"model": ErrorResponse, "description": "Payload too large"},
            500: {"model": ErrorResponse, "description": "Host storage or post failure"},
        },
    )
    async def upload_clip(request: Request) -> UploadResponse:
        user_id = request.headers.get(USER_ID_HEADER, "")
        if not user_id:
            raise HTTPException(status_code=401, detail="Unauthorized")

        if _declared_length(request) > max_form_bytes:
            raise _too_large(max_form_bytes)

        try:
            form = await _parse_form(request, max_form_bytes)
        except BodyTooLargeError:
            raise _too_large(max_form_bytes)
        except MultiPartException:
            raise HTTPException(status_code=400, detail="Failed to parse form")

        try:
            channel_id = form.get("channel_id")
            if not isinstance(channel_id, str) or not channel_id:
                raise HTTPException(status_code=400, detail="channel_id is required")

            media_type = form.get("type")
            kind = MediaKind.from_form(media_type if isinstance(media_type, str) else None)

            part = form.get(kind.value)
            if not isinstance(part, UploadFile):
                raise HTTPException(status_code=400, detail="Failed to get media file")
            data = await part.read()

            duration = form.get("duration")
            upload = ClipUpload(
                channel_id=channel_id,
                kind=kind,
                data=data,
                filename=part.filename,
                duration=duration if isinstance(duration, str) else None,
            )

            try:
                stored = await plugin.store_clip(user_id, upload)
            except UploadValidationError as exc:
                logger.debug("Rejected %s upload from %s: %s", kind.value, user_id, exc.detail)
                raise HTTPException(status_code=exc.status_code, detail=exc.detail)
            except ClipStorageError as exc:
                raise HTTPException(status_code=500, detail=exc.detail)
        finally:
            await form.close()

        return UploadResponse(post_id=stored.post_id, file_id=stored.file_id)

    # ------------------------------------------------------------------
    # Endpoints: configuration
    # ------------------------------------------------------------------

    @app.get(
        "/api/v1/config",
        response_model=ConfigResponse,
        tags=["config"],
        summary="Current plugin settings",
        description="Recorder limits and formats currently in effect.",
    )
    async def get_config(request: Request) -> ConfigResponse:
        current = request.app.state.plugin.get_configuration()
        return ConfigResponse.from_configuration(current)

    # ------------------------------------------------------------------
    # Endpoints: host hooks
    # ------------------------------------------------------------------

    @app.post(
        "/hooks/execute_command",
        response_model=CommandResultResponse,
        tags=["hooks"],
        summary="Execute a slash command",
        description="Called by the host when a user runs /voice or /video.",
        dependencies=[Depends(_require_host)],
        responses={401: {"model": ErrorResponse, "description": "Bad bridge token"}},
    )
    async def execute_command_hook(args: CommandArgsRequest) -> CommandResultResponse:
        result = await plugin.execute_command(CommandArgs(**args.model_dump()))
        return CommandResultResponse(response_type=result.response_type, text=result.text)

    @app.post(
        "/hooks/configuration_change",
        response_model=HookStatusResponse,
        tags=["hooks"],
        summary="Reload plugin settings",
        description="Called by the host after the plugin's settings may have changed.",
        dependencies=[Depends(_require_host)],
        responses={
            401: {"model": ErrorResponse, "description": "Bad bridge token"},
            500: {"model": ErrorResponse, "description": "Settings could not be loaded"},
        },
    )
    async def configuration_change_hook() -> HookStatusResponse:
        try:
            await plugin.on_configuration_change()
        except ConfigurationError as exc:
            logger.error("Configuration reload failed: %s", exc.__cause__ or exc)
            raise HTTPException(status_code=500, detail=str(exc))
        return HookStatusResponse(status="ok")

    # ------------------------------------------------------------------
    # Endpoints: health
    # ------------------------------------------------------------------

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["health"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def run_api() -> None:
    """Entry point for the voice-clips-api console script."""
    import uvicorn

    from voice_clips.host.client import HostBridgeClient

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    token = load_bridge_token()
    plugin = VoiceClipsPlugin(HostBridgeClient(token=token))
    uvicorn.run(create_app(plugin, hook_token=token), host=API_HOST, port=API_PORT)
