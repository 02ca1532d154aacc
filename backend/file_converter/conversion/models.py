"""Conversion request/result models."""
from dataclasses import dataclass
from enum import Enum
from typing import Union


class FileKind(str, Enum):
    IMAGE = "image"
    VECTOR = "vector"
    ICON = "icon"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    SOURCE_CODE = "source_code"
    UNKNOWN = "unknown"


class UnsupportedConversionError(ValueError):
    """Raised by an adapter when the requested source/target pair is not one it handles."""


@dataclass(frozen=True)
class ConversionRequest:
    data: bytes
    file_name: str
    target_format: str

    @property
    def base_name(self) -> str:
        """File name up to the first dot, used for the download name."""
        return self.file_name.split(".")[0] or "converted"


@dataclass(frozen=True)
class ConversionResult:
    output: bytes
    mime_type: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ConversionFailure:
    message: str
    kind: FileKind
    source_ext: str
    target_format: str
    caller_error: bool = True

    @property
    def ok(self) -> bool:
        return False

    @property
    def status_code(self) -> int:
        return 400 if self.caller_error else 500


ConversionOutcome = Union[ConversionResult, ConversionFailure]
