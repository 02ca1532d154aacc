"""Multi-file tools: PDF merge and edit, zip compress and extract."""
import asyncio
import json
import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from file_converter.api.responses import error_response
from file_converter.api.routes import UploadTooLarge, _download_name, _read_upload
from file_converter.config import MAX_FILES_PER_REQUEST, MAX_UPLOAD_SIZE_MB
from file_converter.conversion.adapters import archive, pdf
from file_converter.conversion.classifier import get_file_extension
from file_converter.storage import StorageError, generate_object_key, get_storage

logger = logging.getLogger("converter.api.tools")
router = APIRouter(prefix="/api", tags=["tools"])


class TextOp(BaseModel):
    text: str
    x: float
    y: float
    size: float = Field(12, gt=0)


class ImageOp(BaseModel):
    image: int = Field(ge=0, description="Index into the uploaded images")
    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class PdfEditOps(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    add_text: list[TextOp] = []
    add_image: list[ImageOp] = []


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _read_all(files: list[UploadFile]) -> list[tuple[str, bytes]]:
    return [(f.filename or "file", await _read_upload(f)) for f in files]


def _too_large() -> Response:
    return error_response(413, f"File too large (max {MAX_UPLOAD_SIZE_MB} MB)")


def _check_count(files: Optional[list[UploadFile]]) -> Optional[Response]:
    if not files or not any(f.filename for f in files):
        return error_response(400, "No files provided")
    if len(files) > MAX_FILES_PER_REQUEST:
        return error_response(400, f"Too many files (max {MAX_FILES_PER_REQUEST})")
    return None


@router.post("/pdf/merge")
async def merge_pdf_files(files: Optional[list[UploadFile]] = File(None)):
    """Merge the uploaded PDFs, in upload order, into merged.pdf."""
    problem = _check_count(files)
    if problem is not None:
        return problem
    not_pdf = [f.filename for f in files if get_file_extension(f.filename or "") != "pdf"]
    if not_pdf:
        return error_response(400, "Only PDF files can be merged", details=", ".join(not_pdf))
    try:
        uploads = await _read_all(files)
    except UploadTooLarge:
        return _too_large()
    try:
        merged = await asyncio.to_thread(pdf.merge_pdfs, [data for _, data in uploads])
    except RuntimeError as e:
        logger.warning("PDF merge failed: %s", e)
        return error_response(500, "PDF merge failed", details=str(e))
    return _attachment(merged, "application/pdf", "merged.pdf")


@router.post("/pdf/edit")
async def edit_pdf_file(
    file: Optional[UploadFile] = File(None),
    operations: Optional[str] = Form(None),
    images: Optional[list[UploadFile]] = File(None),
):
    """
    Stamp text and images onto page 1. `operations` is JSON:
    {"addText": [{text, x, y, size?}], "addImage": [{image, x, y, width, height}]}
    where image indexes the uploaded `images` and coordinates start at the bottom-left.
    """
    if file is None or not file.filename:
        return error_response(400, "No file provided")
    if get_file_extension(file.filename) != "pdf":
        return error_response(400, "Only PDF files can be edited")
    try:
        ops = PdfEditOps.model_validate(json.loads(operations or "{}"))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.info("Rejected PDF edit operations: %s", e)
        return error_response(400, "Invalid edit operations", details=str(e))

    try:
        data = await _read_upload(file)
        stamps_data = await _read_all([i for i in images or [] if i.filename])
    except UploadTooLarge:
        return _too_large()
    missing = sorted({op.image for op in ops.add_image if op.image >= len(stamps_data)})
    if missing:
        return error_response(400, "Image index out of range", details=", ".join(map(str, missing)))

    texts = [pdf.TextStamp(op.text, op.x, op.y, op.size) for op in ops.add_text]
    stamps = [pdf.ImageStamp(stamps_data[op.image][1], op.x, op.y, op.width, op.height) for op in ops.add_image]
    try:
        edited = await asyncio.to_thread(pdf.edit_pdf, data, texts, stamps)
    except RuntimeError as e:
        logger.warning("PDF edit failed for %s: %s", file.filename, e)
        return error_response(500, "PDF editing failed", details=str(e))
    return _attachment(edited, "application/pdf", _download_name(file.filename.split(".")[0] + "-edited", "pdf"))


@router.post("/archive/compress")
async def compress_uploaded_files(files: Optional[list[UploadFile]] = File(None)):
    """Pack every upload into compressed.zip."""
    problem = _check_count(files)
    if problem is not None:
        return problem
    try:
        uploads = await _read_all(files)
    except UploadTooLarge:
        return _too_large()
    try:
        packed = await asyncio.to_thread(archive.compress_files, uploads)
    except RuntimeError as e:
        logger.warning("Zip creation failed: %s", e)
        return error_response(500, "File compression failed", details=str(e))
    return _attachment(packed, "application/zip", "compressed.zip")


@router.post("/archive/extract")
async def extract_uploaded_zip(file: Optional[UploadFile] = File(None)):
    """Unpack a zip into storage; returns the name, size, key and public URL of each entry."""
    if file is None or not file.filename:
        return error_response(400, "No file provided")
    try:
        data = await _read_upload(file)
    except UploadTooLarge:
        return _too_large()
    try:
        entries = await asyncio.to_thread(archive.extract_zip, data)
    except archive.InvalidArchiveError as e:
        logger.info("Rejected archive %s: %s", file.filename, e)
        return error_response(400, "Invalid ZIP file", details=str(e))
    except RuntimeError as e:
        logger.warning("Zip extraction failed for %s: %s", file.filename, e)
        return error_response(500, "ZIP extraction failed", details=str(e))

    storage = get_storage()
    extracted = []
    try:
        for name, content in entries:
            key = generate_object_key(name)
            storage.put_object(key, content, content_type=mimetypes.guess_type(name)[0])
            extracted.append({"name": name, "size": len(content), "key": key, "url": storage.get_public_url(key)})
    except StorageError as e:
        logger.error("Could not store extracted entry: %s", e)
        for item in extracted:
            storage.delete_object(item["key"])
        return error_response(500, "Failed to store extracted files")
    return {"success": True, "files": extracted}
