"""Video/audio adapters over the ffmpeg CLI.

Each call runs a fresh ffmpeg process in its own temporary directory. On any
failure the original bytes are returned and a warning is logged, so callers
must not assume the output format actually changed. Set STRICT_CONVERSIONS to
raise instead.
"""
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from file_converter import config as app_config
from file_converter.conversion.models import UnsupportedConversionError

logger = logging.getLogger("converter.media")

VIDEO_TARGETS = {"mp4", "avi", "mov", "webm"}
AUDIO_TARGETS = {"mp3", "wav", "aac", "ogg", "flac"}
EXTRACT_AUDIO_TARGETS = {"mp3", "wav", "aac"}

AUDIO_CODECS = {
    "mp3": "libmp3lame",
    "wav": "pcm_s16le",
    "aac": "aac",
    "ogg": "libvorbis",
    "flac": "flac",
}


def _run_ffmpeg(data: bytes, source_ext: str, target_ext: str, extra_args: list[str]) -> bytes:
    with tempfile.TemporaryDirectory(prefix="convert-") as tmp:
        src = Path(tmp) / f"input.{source_ext or 'bin'}"
        out = Path(tmp) / f"output.{target_ext}"
        src.write_bytes(data)
        cmd = [app_config.FFMPEG_BINARY, "-y", "-i", str(src), *extra_args, str(out)]
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise RuntimeError(result.stderr or result.stdout or "ffmpeg failed")
        if not out.is_file():
            raise RuntimeError("ffmpeg produced no output")
        return out.read_bytes()


def _convert_or_passthrough(data: bytes, source_ext: str, target_ext: str, extra_args: list[str], label: str) -> bytes:
    try:
        output = _run_ffmpeg(data, source_ext, target_ext, extra_args)
        logger.info("%s %s -> %s (%s bytes)", label, source_ext, target_ext, len(output))
        return output
    except FileNotFoundError as e:
        if app_config.STRICT_CONVERSIONS:
            raise RuntimeError("ffmpeg not installed") from e
        logger.warning("%s failed, returning original: ffmpeg not found", label)
        return data
    except Exception as e:
        if app_config.STRICT_CONVERSIONS:
            raise RuntimeError(f"{label} failed: {e}") from e
        logger.warning("%s failed, returning original: %s", label, e)
        return data


def transcode_video(data: bytes, target_format: str, source_ext: Optional[str] = None) -> bytes:
    target_format = target_format.lower()
    if target_format not in VIDEO_TARGETS:
        raise UnsupportedConversionError(f"Unsupported video output format: {target_format}")
    return _convert_or_passthrough(data, source_ext or "mp4", target_format, [], "Video conversion")


def extract_audio(data: bytes, target_format: str = "mp3", source_ext: Optional[str] = None) -> bytes:
    target_format = target_format.lower()
    if target_format not in EXTRACT_AUDIO_TARGETS:
        raise UnsupportedConversionError(f"Unsupported audio output format: {target_format}")
    args = ["-vn", "-acodec", AUDIO_CODECS[target_format]]
    return _convert_or_passthrough(data, source_ext or "mp4", target_format, args, "Audio extraction")


def transcode_audio(data: bytes, target_format: str, source_ext: Optional[str] = None) -> bytes:
    target_format = target_format.lower()
    if target_format not in AUDIO_TARGETS:
        raise UnsupportedConversionError(f"Unsupported audio output format: {target_format}")
    args = ["-vn", "-acodec", AUDIO_CODECS[target_format]]
    return _convert_or_passthrough(data, source_ext or "mp3", target_format, args, "Audio conversion")
