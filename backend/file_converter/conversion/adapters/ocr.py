"""OCR adapter: image to plain text with Tesseract via pytesseract."""
import io
import logging
from typing import Optional

import pytesseract
from PIL import Image

from file_converter import config as app_config

logger = logging.getLogger("converter.ocr")

if app_config.TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = app_config.TESSERACT_CMD


def extract_text(data: bytes, language: Optional[str] = None) -> str:
    language = language or app_config.OCR_LANGUAGE
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            text = pytesseract.image_to_string(img, lang=language)
    except pytesseract.TesseractNotFoundError as e:
        raise RuntimeError("OCR extraction failed: Tesseract is not installed or not on PATH") from e
    except Exception as e:
        raise RuntimeError(f"OCR extraction failed: {e}") from e
    logger.info("OCR (%s) extracted %s characters", language, len(text))
    return text
