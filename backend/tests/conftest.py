"""Shared test fixtures. Storage and database point at a temporary directory."""
import io
import os
import tempfile
import zipfile
from datetime import datetime, timedelta, timezone

_TMP = tempfile.mkdtemp(prefix="converter-tests-")
os.environ["STORAGE_DIR"] = os.path.join(_TMP, "storage")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["STRICT_CONVERSIONS"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from file_converter.analytics import get_analytics_recorder  # noqa: E402
from file_converter.main import app  # noqa: E402

SAMPLE_SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" width="100" height="50" viewBox="0 0 100 50">'
    b'<rect width="100" height="50" fill="#ff0000"/></svg>'
)


class FakeClock:
    """Settable clock for the analytics recorder."""

    def __init__(self, now: datetime = None):
        self.now = now or datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def _image_bytes(fmt: str, size=(64, 32), color=(200, 30, 30), mode="RGB", **save_kw) -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt, **save_kw)
    return buf.getvalue()


def _docx_bytes(*paragraphs: str) -> bytes:
    body = "".join(f"<w:p><w:r><w:t>{p}</w:t></w:r></w:p>" for p in paragraphs)
    document = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body>{body}</w:body></w:document>"
    )
    content_types = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
        '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
        '<Default Extension="xml" ContentType="application/xml"/>'
        '<Override PartName="/word/document.xml" '
        'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
        "</Types>"
    )
    rels = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        '<Relationship Id="rId1" '
        'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
        'Target="word/document.xml"/></Relationships>'
    )
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("[Content_Types].xml", content_types)
        zf.writestr("_rels/.rels", rels)
        zf.writestr("word/document.xml", document)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


@pytest.fixture
def ico_bytes() -> bytes:
    return _image_bytes("ICO", size=(32, 32), mode="RGBA", color=(0, 128, 255, 255), sizes=[(32, 32)])


@pytest.fixture
def svg_bytes() -> bytes:
    return SAMPLE_SVG


@pytest.fixture
def make_image():
    return _image_bytes


@pytest.fixture
def make_docx():
    return _docx_bytes


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_analytics():
    get_analytics_recorder().clear()
    yield
    get_analytics_recorder().clear()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
