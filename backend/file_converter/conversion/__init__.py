from .dispatcher import ConversionDispatcher, get_dispatcher
from .models import ConversionFailure, ConversionRequest, ConversionResult, FileKind

__all__ = ["ConversionDispatcher", "ConversionFailure", "ConversionRequest", "ConversionResult", "FileKind", "get_dispatcher"]
