"""Tests for VoiceClipsPlugin lifecycle, commands and clip storage.

WHY: The plugin is the object the host drives directly. These tests call
its hooks the way the host would and check what it asked the host to do.

HOW: FakeHost from conftest records calls. Async hooks run through
asyncio.run().
"""

from __future__ import annotations

import asyncio

import pytest

from voice_clips.core.settings import ConfigurationError, PluginConfiguration
from voice_clips.core.validation import MediaKind, UploadValidationError
from voice_clips.host.api import HostAPIError
from voice_clips.host.models import CommandArgs
from voice_clips.plugin import (
    ClipStorageError,
    ClipUpload,
    build_clip_post,
    clip_filename,
)

from conftest import mp4_payload, webm_payload


# ---------------------------------------------------------------------------
# Tests: configuration change hook
# ---------------------------------------------------------------------------


class TestConfigurationChange:

    def test_installs_loaded_settings(self, host, plugin):
        host.plugin_settings = {"max_duration": 60, "allowed_audio_formats": "ogg"}
        asyncio.run(plugin.on_configuration_change())

        config = plugin.get_configuration()
        assert config.max_duration == 60
        assert config.allowed_audio_formats == "ogg"

    def test_empty_settings_install_empty_snapshot(self, host, plugin):
        asyncio.run(plugin.on_configuration_change())
        assert plugin.get_configuration().is_empty()

    def test_host_failure_is_wrapped(self, host, plugin):
        host.config_error = HostAPIError(500, "store unavailable")
        with pytest.raises(ConfigurationError, match="failed to load plugin configuration") as excinfo:
            asyncio.run(plugin.on_configuration_change())
        assert isinstance(excinfo.value.__cause__, HostAPIError)

    def test_bad_value_is_wrapped(self, host, plugin):
        host.plugin_settings = {"max_video_duration": "two minutes"}
        with pytest.raises(ConfigurationError):
            asyncio.run(plugin.on_configuration_change())
        assert plugin.get_configuration() == PluginConfiguration.defaults()


# ---------------------------------------------------------------------------
# Tests: activation and commands
# ---------------------------------------------------------------------------


class TestCommands:

    def test_activate_registers_both_commands(self, host, plugin):
        asyncio.run(plugin.on_activate())
        assert [c.trigger for c in host.commands] == ["voice", "video"]
        assert all(c.auto_complete for c in host.commands)

    def test_voice_command(self, host, plugin):
        args = CommandArgs(command="/voice", user_id="user123", channel_id="channel123")
        resp = asyncio.run(plugin.execute_command(args))

        assert resp is not None
        assert len(host.ephemeral_posts) == 1
        user_id, post = host.ephemeral_posts[0]
        assert user_id == "user123"
        assert post.channel_id == "channel123"
        assert "microphone" in post.message

        event, payload, broadcast = host.events[0]
        assert event == "open_voice_recorder"
        assert payload == {"channel_id": "channel123"}
        assert broadcast.user_id == "user123"

    def test_video_command(self, host, plugin):
        args = CommandArgs(command="/video", user_id="u1", channel_id="c1")
        asyncio.run(plugin.execute_command(args))

        assert "video button" in host.ephemeral_posts[0][1].message
        assert host.events[0][0] == "open_video_recorder"

    def test_trigger_with_arguments(self, host, plugin):
        args = CommandArgs(command="/Voice please", user_id="u1", channel_id="c1")
        asyncio.run(plugin.execute_command(args))
        assert host.events[0][0] == "open_voice_recorder"

    def test_failed_hint_still_opens_recorder(self, host, plugin):
        host.ephemeral_error = HostAPIError(500, "ephemeral post rejected")
        args = CommandArgs(command="/video", user_id="u1", channel_id="c1")
        resp = asyncio.run(plugin.execute_command(args))

        assert resp.text == ""
        assert host.ephemeral_posts == []
        event, payload, _ = host.events[0]
        assert event == "open_video_recorder"
        assert payload == {"channel_id": "c1"}

    def test_unknown_command_does_nothing(self, host, plugin):
        args = CommandArgs(command="/other", user_id="u1", channel_id="c1")
        resp = asyncio.run(plugin.execute_command(args))
        assert resp.text == ""
        assert host.ephemeral_posts == []
        assert host.events == []


# ---------------------------------------------------------------------------
# Tests: store_clip
# ---------------------------------------------------------------------------


class TestStoreClip:

    def test_voice_clip_stored_and_posted(self, host, plugin):
        upload = ClipUpload(
            channel_id="c1", kind=MediaKind.AUDIO, data=webm_payload(),
            filename="rec.webm", duration="10",
        )
        stored = asyncio.run(plugin.store_clip("u1", upload))

        assert stored.file_id == "file1"
        assert stored.post_id == "post1"
        data, channel_id, filename = host.uploads[0]
        assert channel_id == "c1"
        assert filename.startswith("voice_clip_") and filename.endswith(".webm")
        post = host.posts[0]
        assert post.type == "custom_voice_clip"
        assert post.props == {"voice_clip": {"duration": 10, "format": ".webm"}}
        assert post.file_ids == ["file1"]
        assert host.permission_checks == [("u1", "c1", "create_post")]

    def test_video_clip(self, host, plugin):
        upload = ClipUpload(
            channel_id="c1", kind=MediaKind.VIDEO, data=mp4_payload(), filename="cam.MP4",
        )
        asyncio.run(plugin.store_clip("u1", upload))
        post = host.posts[0]
        assert post.type == "custom_video_clip"
        assert post.message == "📹 Video message"
        assert post.props["video_clip"] == {"duration": 0, "format": ".mp4"}
        assert host.uploads[0][2].startswith("video_clip_")

    def test_permission_denied_before_upload(self, host, plugin):
        host.allow_post = False
        upload = ClipUpload(channel_id="c1", kind=MediaKind.AUDIO, data=webm_payload())
        with pytest.raises(UploadValidationError) as excinfo:
            asyncio.run(plugin.store_clip("u1", upload))
        assert excinfo.value.status_code == 403
        assert host.uploads == []

    def test_upload_failure(self, host, plugin):
        host.upload_error = HostAPIError(500, "disk full")
        upload = ClipUpload(channel_id="c1", kind=MediaKind.AUDIO, data=webm_payload())
        with pytest.raises(ClipStorageError) as excinfo:
            asyncio.run(plugin.store_clip("u1", upload))
        assert excinfo.value.detail == "Failed to upload file: disk full"
        assert host.posts == []

    def test_post_failure_leaves_file(self, host, plugin):
        host.post_error = HostAPIError(400, "channel archived")
        upload = ClipUpload(channel_id="c1", kind=MediaKind.AUDIO, data=webm_payload())
        with pytest.raises(ClipStorageError) as excinfo:
            asyncio.run(plugin.store_clip("u1", upload))
        assert "channel archived" in excinfo.value.detail
        assert len(host.uploads) == 1

    def test_blank_duration_skips_check(self, host, plugin):
        plugin.set_configuration(PluginConfiguration(max_duration=5))
        upload = ClipUpload(
            channel_id="c1", kind=MediaKind.AUDIO, data=webm_payload(), duration="  ",
        )
        asyncio.run(plugin.store_clip("u1", upload))
        assert host.posts[0].props["voice_clip"]["duration"] == 0


class TestHelpers:

    def test_clip_filename(self):
        assert clip_filename(MediaKind.AUDIO, ".ogg", 1700000000) == "voice_clip_1700000000.ogg"
        assert clip_filename(MediaKind.VIDEO, ".mov", 1700000000) == "video_clip_1700000000.mov"

    def test_build_voice_post(self):
        post = build_clip_post("u", "c", "f", MediaKind.AUDIO, 12, ".ogg")
        assert post.message == "🎤 Voice message"
        assert post.user_id == "u"
        assert post.props["voice_clip"]["duration"] == 12
