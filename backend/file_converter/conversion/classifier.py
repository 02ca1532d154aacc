"""Map a file name to a coarse media kind by its extension."""
from file_converter.config import (
    AUDIO_EXTENSIONS,
    CODE_EXTENSIONS,
    DOCUMENT_EXTENSIONS,
    ICON_EXTENSIONS,
    IMAGE_EXTENSIONS,
    VECTOR_EXTENSIONS,
    VIDEO_EXTENSIONS,
)
from file_converter.conversion.models import FileKind

# Checked in order; first match wins. Icon/vector precede the generic image set.
_KIND_ORDER = (
    (FileKind.VECTOR, VECTOR_EXTENSIONS),
    (FileKind.ICON, ICON_EXTENSIONS),
    (FileKind.IMAGE, IMAGE_EXTENSIONS),
    (FileKind.VIDEO, VIDEO_EXTENSIONS),
    (FileKind.AUDIO, AUDIO_EXTENSIONS),
    (FileKind.DOCUMENT, DOCUMENT_EXTENSIONS),
    (FileKind.SOURCE_CODE, CODE_EXTENSIONS),
)


def get_file_extension(file_name: str) -> str:
    """Lower-cased suffix after the last dot, or "" when there is none."""
    name = (file_name or "").strip()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def classify_extension(ext: str) -> FileKind:
    ext = ext.lower()
    for kind, extensions in _KIND_ORDER:
        if ext in extensions:
            return kind
    return FileKind.UNKNOWN


def classify(file_name: str) -> FileKind:
    ext = get_file_extension(file_name)
    if not ext:
        return FileKind.UNKNOWN
    return classify_extension(ext)


def extensions_for(kind: FileKind) -> set[str]:
    """Extensions that classify as ``kind`` (after the precedence rules)."""
    return {ext for _, exts in _KIND_ORDER for ext in exts if classify_extension(ext) == kind}
