"""Route (kind, source extension, target format) to a converter adapter.

The routing table is data: every supported combination is one entry, and
anything missing from it is rejected as caller input. The table is validated
when the dispatcher is built.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from file_converter.conversion.adapters import code, documents, images, media, ocr, pdf
from file_converter.conversion.classifier import classify_extension, get_file_extension
from file_converter.conversion.models import (
    ConversionFailure,
    ConversionOutcome,
    ConversionRequest,
    ConversionResult,
    FileKind,
    UnsupportedConversionError,
)

logger = logging.getLogger("converter.dispatch")

# (data, source_ext, target_format) -> output bytes
Converter = Callable[[bytes, str, str], bytes]

MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "webp": "image/webp",
    "avif": "image/avif",
    "ico": "image/x-icon",
    "svg": "image/svg+xml",
    "watermark-removed": "image/png",
    "background-removed": "image/png",
    "compressed": "image/jpeg",
    "pdf": "application/pdf",
    "mp4": "video/mp4",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    "webm": "video/webm",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "flac": "audio/flac",
    "html": "text/html",
    "txt": "text/plain",
    "js": "application/javascript",
}

SUPPORTED_DOCUMENT_EXTENSIONS = ("docx", "txt", "pdf")


@dataclass(frozen=True)
class Route:
    converter: Converter
    mime_type: str


RouteKey = tuple[FileKind, Optional[str], str]


def _passthrough(data: bytes, ext: str, target: str) -> bytes:
    return data


def _raster(data: bytes, ext: str, target: str) -> bytes:
    return images.convert_image_format(data, target)


def _svg_raster(data: bytes, ext: str, target: str) -> bytes:
    return images.svg_to_raster(data, target)


def _svg_ico(data: bytes, ext: str, target: str) -> bytes:
    return images.svg_to_ico(data)


def _image_ico(data: bytes, ext: str, target: str) -> bytes:
    return images.image_to_ico(data)


def _ico_svg(data: bytes, ext: str, target: str) -> bytes:
    return images.ico_to_svg(data)


def _watermark(data: bytes, ext: str, target: str) -> bytes:
    return images.remove_watermark(data)


def _compress(data: bytes, ext: str, target: str) -> bytes:
    return images.compress_image(data)


def _background(data: bytes, ext: str, target: str) -> bytes:
    return images.remove_background(data)


def _ocr(data: bytes, ext: str, target: str) -> bytes:
    return ocr.extract_text(data).encode("utf-8")


def _image_pdf(data: bytes, ext: str, target: str) -> bytes:
    return pdf.image_to_pdf(data)


def _video(data: bytes, ext: str, target: str) -> bytes:
    return media.transcode_video(data, target, source_ext=ext)


def _video_audio(data: bytes, ext: str, target: str) -> bytes:
    return media.extract_audio(data, target, source_ext=ext)


def _audio(data: bytes, ext: str, target: str) -> bytes:
    return media.transcode_audio(data, target, source_ext=ext)


def _docx_html(data: bytes, ext: str, target: str) -> bytes:
    return documents.docx_to_html(data).encode("utf-8")


def _docx_text(data: bytes, ext: str, target: str) -> bytes:
    return documents.docx_to_text(data).encode("utf-8")


def _text_html(data: bytes, ext: str, target: str) -> bytes:
    return documents.text_to_html(data.decode("utf-8", errors="replace")).encode("utf-8")


def _pdf_text(data: bytes, ext: str, target: str) -> bytes:
    return documents.pdf_to_text(data).encode("utf-8")


def _pdf_html(data: bytes, ext: str, target: str) -> bytes:
    return documents.pdf_to_html(data).encode("utf-8")


def _code(data: bytes, ext: str, target: str) -> bytes:
    return code.convert_code(data, ext, target)


def build_default_routes() -> dict[RouteKey, Route]:
    routes: dict[RouteKey, Route] = {}

    def add(kind: FileKind, ext: Optional[str], target: str, converter: Converter) -> None:
        routes[(kind, ext, target)] = Route(converter, MIME_TYPES[target])

    for target in ("png", "jpeg", "jpg", "webp"):
        add(FileKind.VECTOR, None, target, _svg_raster)
        add(FileKind.ICON, None, target, _raster)
    add(FileKind.VECTOR, None, "ico", _svg_ico)
    add(FileKind.VECTOR, None, "svg", _passthrough)
    add(FileKind.ICON, None, "ico", _passthrough)
    add(FileKind.ICON, None, "svg", _ico_svg)

    for target in ("jpeg", "jpg", "png", "webp", "avif"):
        add(FileKind.IMAGE, None, target, _raster)
    add(FileKind.IMAGE, None, "ico", _image_ico)
    add(FileKind.IMAGE, None, "pdf", _image_pdf)
    add(FileKind.IMAGE, None, "watermark-removed", _watermark)
    add(FileKind.IMAGE, None, "compressed", _compress)
    add(FileKind.IMAGE, None, "background-removed", _background)
    add(FileKind.IMAGE, None, "txt", _ocr)

    for target in sorted(media.VIDEO_TARGETS):
        add(FileKind.VIDEO, None, target, _video)
    for target in sorted(media.EXTRACT_AUDIO_TARGETS):
        add(FileKind.VIDEO, None, target, _video_audio)
    for target in sorted(media.AUDIO_TARGETS):
        add(FileKind.AUDIO, None, target, _audio)

    add(FileKind.DOCUMENT, "docx", "html", _docx_html)
    add(FileKind.DOCUMENT, "docx", "txt", _docx_text)
    add(FileKind.DOCUMENT, "txt", "html", _text_html)
    add(FileKind.DOCUMENT, "txt", "txt", _passthrough)
    add(FileKind.DOCUMENT, "pdf", "txt", _pdf_text)
    add(FileKind.DOCUMENT, "pdf", "html", _pdf_html)

    for source_ext, target in sorted(code.supported_pairs()):
        add(FileKind.SOURCE_CODE, source_ext, target, _code)
    return routes


def validate_routes(routes: Mapping[RouteKey, Route]) -> None:
    """Raise ValueError if the table routes something it cannot classify or leaves a kind unrouted."""
    routed_kinds = set()
    for (kind, ext, target), route in routes.items():
        if kind == FileKind.UNKNOWN:
            raise ValueError(f"Route for unknown kind: {ext!r} -> {target!r}")
        if ext is not None and classify_extension(ext) != kind:
            raise ValueError(f"Source extension {ext!r} does not classify as {kind.value}")
        if not target or target != target.lower():
            raise ValueError(f"Target format must be lower-case and non-empty: {target!r}")
        if not route.mime_type:
            raise ValueError(f"Missing MIME type for {kind.value}/{ext}->{target}")
        if not callable(route.converter):
            raise ValueError(f"Converter for {kind.value}/{ext}->{target} is not callable")
        routed_kinds.add(kind)
    missing = [k.value for k in FileKind if k != FileKind.UNKNOWN and k not in routed_kinds]
    if missing:
        raise ValueError(f"No routes for kinds: {', '.join(missing)}")


def _unsupported_message(kind: FileKind, ext: str, target: str) -> str:
    if kind == FileKind.UNKNOWN:
        return "Unsupported file type"
    if kind in (FileKind.VECTOR, FileKind.ICON):
        return f"Conversion from {ext} to {target} is not supported for icon/vector files"
    if kind == FileKind.IMAGE:
        return f"Image conversion from {ext} to {target} is not supported"
    if kind == FileKind.VIDEO:
        return f"Video conversion from {ext} to {target} is not supported"
    if kind == FileKind.AUDIO:
        return f"Audio conversion from {ext} to {target} is not supported"
    if kind == FileKind.DOCUMENT:
        if ext not in SUPPORTED_DOCUMENT_EXTENSIONS:
            supported = ", ".join(f".{e}" for e in SUPPORTED_DOCUMENT_EXTENSIONS)
            return f"Document conversion not supported for {ext} files. Supported formats: {supported}"
        if ext == "pdf":
            return f"PDF conversion to {target} is not supported"
        return f"Document conversion from {ext} to {target} is not supported"
    return f"Unsupported conversion: {ext} to {target}"


class ConversionDispatcher:
    """Classifies a file, picks its route and runs the adapter. Never raises."""

    def __init__(self, routes: Optional[Mapping[RouteKey, Route]] = None):
        self._routes = dict(routes) if routes is not None else build_default_routes()
        validate_routes(self._routes)
        logger.info("ConversionDispatcher initialized with %s routes", len(self._routes))

    @property
    def routes(self) -> Mapping[RouteKey, Route]:
        return self._routes

    def find_route(self, kind: FileKind, ext: str, target: str) -> Optional[Route]:
        return self._routes.get((kind, ext, target)) or self._routes.get((kind, None, target))

    def supported_targets(self, file_name: str) -> list[str]:
        ext = get_file_extension(file_name)
        kind = classify_extension(ext) if ext else FileKind.UNKNOWN
        return sorted({t for (k, e, t) in self._routes if k == kind and e in (None, ext)})

    def dispatch(self, data: bytes, file_name: str, target_format: str) -> ConversionOutcome:
        ext = get_file_extension(file_name)
        kind = classify_extension(ext) if ext else FileKind.UNKNOWN
        target = (target_format or "").strip().lower()

        route = self.find_route(kind, ext, target) if kind != FileKind.UNKNOWN else None
        if route is None:
            message = _unsupported_message(kind, ext, target)
            logger.info("Rejected %s (%s): %s", file_name, kind.value, message)
            return ConversionFailure(message, kind, ext, target, caller_error=True)

        try:
            output = route.converter(data, ext, target)
        except UnsupportedConversionError as e:
            logger.info("Adapter rejected %s -> %s: %s", file_name, target, e)
            return ConversionFailure(str(e), kind, ext, target, caller_error=True)
        except Exception as e:
            logger.exception("Conversion failed for %s -> %s: %s", file_name, target, e)
            return ConversionFailure(str(e) or e.__class__.__name__, kind, ext, target, caller_error=False)

        logger.info("Converted %s (%s) -> %s, %s bytes", file_name, kind.value, target, len(output))
        return ConversionResult(output=output, mime_type=route.mime_type)

    def dispatch_request(self, request: ConversionRequest) -> ConversionOutcome:
        return self.dispatch(request.data, request.file_name, request.target_format)


# Singleton
_dispatcher: Optional[ConversionDispatcher] = None


def get_dispatcher() -> ConversionDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = ConversionDispatcher()
    return _dispatcher

