"""Document adapters: DOCX via mammoth, plain text to HTML, PDF placeholders."""
import io
import logging

import mammoth

logger = logging.getLogger("converter.documents")

# PDF extraction is not implemented; these fixed bodies are returned instead.
PDF_TEXT_PLACEHOLDER = "PDF text extraction would be implemented here"
PDF_HTML_PLACEHOLDER = "<html><body><p>PDF to HTML conversion would be implemented here</p></body></html>"


def docx_to_html(data: bytes) -> str:
    try:
        result = mammoth.convert_to_html(io.BytesIO(data))
    except Exception as e:
        raise RuntimeError(f"DOCX to HTML conversion failed: {e}") from e
    for message in result.messages:
        logger.debug("mammoth: %s", message.message)
    return result.value


def docx_to_text(data: bytes) -> str:
    try:
        result = mammoth.extract_raw_text(io.BytesIO(data))
    except Exception as e:
        raise RuntimeError(f"DOCX to text conversion failed: {e}") from e
    return result.value


def text_to_html(text: str) -> str:
    # Lines are wrapped as-is; angle brackets are not escaped.
    body = "".join(f"<p>{line}</p>" for line in text.split("\n"))
    return f"<html><body>{body}</body></html>"


def pdf_to_text(data: bytes) -> str:
    return PDF_TEXT_PLACEHOLDER


def pdf_to_html(data: bytes) -> str:
    return PDF_HTML_PLACEHOLDER
