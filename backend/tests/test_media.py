"""Tests for the ffmpeg-backed media adapters. ffmpeg itself is never invoked."""
import subprocess
from pathlib import Path

import pytest

from file_converter import config as app_config
from file_converter.conversion.adapters import media
from file_converter.conversion.models import UnsupportedConversionError


class FakeRun:
    """Stands in for subprocess.run; writes fake output or fails."""

    def __init__(self, returncode=0, output=b"transcoded", stderr=""):
        self.returncode = returncode
        self.output = output
        self.stderr = stderr
        self.commands = []

    def __call__(self, cmd, capture_output=False, text=False):
        self.commands.append(cmd)
        if self.returncode == 0:
            Path(cmd[-1]).write_bytes(self.output)
        return subprocess.CompletedProcess(cmd, self.returncode, stdout="", stderr=self.stderr)


@pytest.fixture
def fake_run(monkeypatch):
    run = FakeRun()
    monkeypatch.setattr(media.subprocess, "run", run)
    return run


class TestSuccess:
    def test_transcode_video(self, fake_run):
        assert media.transcode_video(b"in", "webm", source_ext="mp4") == b"transcoded"
        cmd = fake_run.commands[0]
        assert cmd[0] == app_config.FFMPEG_BINARY
        assert cmd[1:3] == ["-y", "-i"]
        assert cmd[3].endswith("input.mp4")
        assert cmd[-1].endswith("output.webm")

    @pytest.mark.parametrize("target,codec", [("mp3", "libmp3lame"), ("wav", "pcm_s16le"), ("aac", "aac")])
    def test_extract_audio_codec(self, fake_run, target, codec):
        media.extract_audio(b"in", target, source_ext="mov")
        cmd = fake_run.commands[0]
        assert cmd[4:7] == ["-vn", "-acodec", codec]

    def test_transcode_audio(self, fake_run):
        media.transcode_audio(b"in", "ogg", source_ext="wav")
        assert "libvorbis" in fake_run.commands[0]

    def test_temp_files_are_removed(self, fake_run):
        media.transcode_video(b"in", "mp4", source_ext="avi")
        assert not Path(fake_run.commands[0][3]).exists()


class TestSoftFailure:
    def test_nonzero_exit_returns_original(self, monkeypatch, caplog):
        monkeypatch.setattr(media.subprocess, "run", FakeRun(returncode=1, stderr="Invalid data"))
        with caplog.at_level("WARNING", logger="converter.media"):
            out = media.transcode_video(b"original", "avi", source_ext="mp4")
        assert out == b"original"
        assert any("Invalid data" in r.getMessage() for r in caplog.records)

    def test_missing_binary_returns_original(self, monkeypatch, caplog):
        monkeypatch.setattr(app_config, "FFMPEG_BINARY", "definitely-not-ffmpeg-binary")
        with caplog.at_level("WARNING", logger="converter.media"):
            out = media.extract_audio(b"original", "mp3", source_ext="mp4")
        assert out == b"original"
        assert any("ffmpeg not found" in r.getMessage() for r in caplog.records)

    def test_strict_raises(self, monkeypatch):
        monkeypatch.setattr(app_config, "STRICT_CONVERSIONS", True)
        monkeypatch.setattr(media.subprocess, "run", FakeRun(returncode=1, stderr="boom"))
        with pytest.raises(RuntimeError, match="Video conversion failed"):
            media.transcode_video(b"original", "avi", source_ext="mp4")

    def test_strict_missing_binary(self, monkeypatch):
        monkeypatch.setattr(app_config, "STRICT_CONVERSIONS", True)
        monkeypatch.setattr(app_config, "FFMPEG_BINARY", "definitely-not-ffmpeg-binary")
        with pytest.raises(RuntimeError, match="ffmpeg not installed"):
            media.transcode_audio(b"original", "wav", source_ext="mp3")


class TestUnsupportedTargets:
    def test_video_target(self):
        with pytest.raises(UnsupportedConversionError):
            media.transcode_video(b"x", "gif")

    def test_extract_target(self):
        with pytest.raises(UnsupportedConversionError):
            media.extract_audio(b"x", "flac")

    def test_audio_target(self):
        with pytest.raises(UnsupportedConversionError):
            media.transcode_audio(b"x", "mp4")
