"""Zip archive adapters: pack uploads into one archive, unpack an uploaded archive."""
import io
import logging
import zipfile
from pathlib import PurePosixPath
from typing import Iterable, Optional

from file_converter import config as app_config

logger = logging.getLogger("converter.archive")


class InvalidArchiveError(ValueError):
    """The upload is not a readable zip, or it expands past the configured limit."""


def _unique_name(name: str, taken: set[str]) -> str:
    base = PurePosixPath(name.replace("\\", "/")).name or "file"
    candidate = base
    n = 1
    while candidate in taken:
        stem, dot, ext = base.rpartition(".")
        candidate = f"{stem} ({n}).{ext}" if dot and stem else f"{base} ({n})"
        n += 1
    taken.add(candidate)
    return candidate


def compress_files(files: Iterable[tuple[str, bytes]]) -> bytes:
    """Zip (name, data) pairs flat; directory parts are dropped and clashing names numbered."""
    buf = io.BytesIO()
    taken: set[str] = set()
    count = 0
    try:
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, data in files:
                zf.writestr(_unique_name(name, taken), data)
                count += 1
    except Exception as e:
        raise RuntimeError(f"File compression failed: {e}") from e
    logger.info("Created zip with %s files (%s bytes)", count, buf.tell())
    return buf.getvalue()


def extract_zip(data: bytes, max_total_size: Optional[int] = None) -> list[tuple[str, bytes]]:
    """Return (name, data) for every file entry, skipping directories."""
    max_total_size = max_total_size or app_config.MAX_EXTRACT_SIZE_BYTES
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise InvalidArchiveError(f"Invalid ZIP file: {e}") from e

    entries = []
    total = 0
    with zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            total += info.file_size
            if total > max_total_size:
                raise InvalidArchiveError(f"Archive expands past {max_total_size} bytes")
            try:
                entries.append((info.filename, zf.read(info)))
            except (zipfile.BadZipFile, RuntimeError, NotImplementedError) as e:
                raise RuntimeError(f"ZIP extraction failed: {e}") from e
    logger.info("Extracted %s files (%s bytes)", len(entries), total)
    return entries
