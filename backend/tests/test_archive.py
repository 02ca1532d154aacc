"""Tests for zip packing and unpacking."""
import io
import zipfile

import pytest

from file_converter.conversion.adapters import archive


def _zip(entries: dict, directories=()) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for d in directories:
            zf.writestr(zipfile.ZipInfo(d), b"")
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


class TestCompress:
    def test_entries_are_deflated(self):
        packed = archive.compress_files([("a.txt", b"a" * 1000), ("b.bin", b"\x00\x01")])
        with zipfile.ZipFile(io.BytesIO(packed)) as zf:
            assert zf.namelist() == ["a.txt", "b.bin"]
            assert zf.getinfo("a.txt").compress_type == zipfile.ZIP_DEFLATED
            assert zf.read("a.txt") == b"a" * 1000

    def test_duplicate_names_are_numbered(self):
        packed = archive.compress_files([("photo.png", b"1"), ("photo.png", b"2"), ("photo.png", b"3"), ("README", b"r"), ("README", b"s")])
        with zipfile.ZipFile(io.BytesIO(packed)) as zf:
            assert zf.namelist() == ["photo.png", "photo (1).png", "photo (2).png", "README", "README (1)"]
            assert zf.read("photo (1).png") == b"2"

    def test_directory_parts_are_dropped(self):
        packed = archive.compress_files([("../../etc/passwd", b"x"), ("C:\\temp\\a.txt", b"y")])
        with zipfile.ZipFile(io.BytesIO(packed)) as zf:
            assert zf.namelist() == ["passwd", "a.txt"]

    def test_empty_input_gives_empty_archive(self):
        with zipfile.ZipFile(io.BytesIO(archive.compress_files([]))) as zf:
            assert zf.namelist() == []


class TestExtract:
    def test_round_trip_skips_directories(self):
        data = _zip({"docs/readme.txt": b"hello", "logo.svg": b"<svg/>"}, directories=["docs/"])
        assert archive.extract_zip(data) == [("docs/readme.txt", b"hello"), ("logo.svg", b"<svg/>")]

    def test_not_a_zip(self):
        with pytest.raises(archive.InvalidArchiveError, match="Invalid ZIP file"):
            archive.extract_zip(b"plain bytes")

    def test_expanded_size_limit(self):
        data = _zip({"big.txt": b"0" * 5000, "more.txt": b"1" * 5000})
        with pytest.raises(archive.InvalidArchiveError, match="expands past"):
            archive.extract_zip(data, max_total_size=8000)
        assert len(archive.extract_zip(data, max_total_size=10000)) == 2
