"""API routes for conversion, uploads and stored files."""
import asyncio
import logging
import mimetypes
import re
import time
from typing import Optional

from fastapi import APIRouter, Body, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse, Response
from sqlalchemy.exc import SQLAlchemyError

from file_converter.analytics import get_analytics_recorder
from file_converter.api.responses import error_response
from file_converter.config import MAX_UPLOAD_SIZE_BYTES, MAX_UPLOAD_SIZE_MB
from file_converter.conversion import ConversionRequest, FileKind, get_dispatcher
from file_converter.conversion.classifier import classify, extensions_for, get_file_extension
from file_converter.db import (
    complete_conversion_job,
    get_conversion_job,
    get_file_record,
    insert_conversion_job,
    insert_file_record,
    update_file_status,
)
from file_converter.storage import StorageError, generate_object_key, get_storage

logger = logging.getLogger("converter.api")
router = APIRouter(prefix="/api", tags=["converter"])


class UploadTooLarge(Exception):
    pass


async def _read_upload(file: UploadFile) -> bytes:
    chunks = []
    total = 0
    while chunk := await file.read(1024 * 1024):
        total += len(chunk)
        if total > MAX_UPLOAD_SIZE_BYTES:
            raise UploadTooLarge(file.filename)
        chunks.append(chunk)
    return b"".join(chunks)


def _download_name(base_name: str, target_format: str) -> str:
    """Header-safe attachment name."""
    base = re.sub(r'[^\w. -]', "_", base_name, flags=re.ASCII).strip() or "converted"
    return f"{base}.{target_format}"


def _track_conversion(
    file_name: str,
    original_format: str,
    target_format: str,
    file_size: int,
    processing_time: float,
    success: bool,
    error_message: Optional[str] = None,
) -> Optional[str]:
    """Record one analytics event. Never raises; the conversion response must not depend on it."""
    try:
        return get_analytics_recorder().record(
            file_name=file_name,
            original_format=original_format,
            target_format=target_format,
            file_size=file_size,
            processing_time=processing_time,
            success=success,
            error_message=error_message,
        )
    except Exception as e:
        logger.warning("Failed to track analytics: %s", e)
        return None


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/formats")
def get_formats():
    """Source extensions and reachable targets per kind, read from the routing table."""
    targets: dict[str, set] = {}
    for kind, _, target in get_dispatcher().routes:
        targets.setdefault(kind.value, set()).add(target)
    return {
        kind.value: {
            "extensions": sorted(extensions_for(kind)),
            "targets": sorted(targets.get(kind.value, ())),
        }
        for kind in FileKind
        if kind != FileKind.UNKNOWN
    }


@router.post("/convert")
async def convert_file(
    file: Optional[UploadFile] = File(None),
    target_format: Optional[str] = Form(None, alias="targetFormat"),
):
    """Convert one uploaded file to targetFormat and return it as an attachment."""
    start = time.perf_counter()
    if file is None or not file.filename:
        return error_response(400, "No file provided")
    target = (target_format or "").strip().lower()
    if not target:
        return error_response(400, "No target format specified")

    try:
        data = await _read_upload(file)
    except UploadTooLarge:
        return error_response(413, f"File too large (max {MAX_UPLOAD_SIZE_MB} MB)")

    request = ConversionRequest(data=data, file_name=file.filename, target_format=target)
    logger.info("Conversion request: %s (%s bytes, %s) -> %s", file.filename, len(data), file.content_type, target)
    outcome = await asyncio.to_thread(get_dispatcher().dispatch_request, request)
    elapsed_ms = (time.perf_counter() - start) * 1000

    _track_conversion(
        file_name=file.filename,
        original_format=get_file_extension(file.filename) or "unknown",
        target_format=target,
        file_size=len(data),
        processing_time=elapsed_ms,
        success=outcome.ok,
        error_message=None if outcome.ok else outcome.message,
    )

    if not outcome.ok:
        file_info = {"name": file.filename, "size": len(data), "type": file.content_type, "targetFormat": target}
        if outcome.caller_error:
            return error_response(400, outcome.message, file_info=file_info)
        return error_response(500, "Conversion failed", details=outcome.message, file_info=file_info)

    filename = _download_name(request.base_name, target)
    return Response(
        content=outcome.output,
        media_type=outcome.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/upload")
async def upload_file(file: Optional[UploadFile] = File(None)):
    """Store an upload and create its metadata row."""
    if file is None or not file.filename:
        return error_response(400, "No file provided")
    try:
        data = await _read_upload(file)
    except UploadTooLarge:
        return error_response(413, f"File too large (max {MAX_UPLOAD_SIZE_MB} MB)")

    storage = get_storage()
    key = generate_object_key(file.filename)
    try:
        storage.put_object(key, data, content_type=file.content_type)
    except StorageError as e:
        logger.error("Upload error: %s", e)
        return error_response(500, "Failed to upload file")
    url = storage.get_public_url(key)

    try:
        record = insert_file_record(
            name=file.filename,
            size=len(data),
            content_type=file.content_type,
            url=url,
            object_key=key,
            original_format=get_file_extension(file.filename) or None,
        )
    except SQLAlchemyError as e:
        logger.exception("Database error: %s", e)
        storage.delete_object(key)
        return error_response(500, "Failed to create file record")

    return {"success": True, "file": record, "url": url}


@router.get("/files/records/{file_id}")
def file_record(file_id: str):
    record = get_file_record(file_id)
    if not record:
        raise HTTPException(404, "File not found")
    return record


@router.post("/files/records/{file_id}/convert")
async def convert_stored_file(
    file_id: str,
    target_format: str = Body(..., embed=True, alias="targetFormat"),
):
    """Convert a previously uploaded file, store the output and record a conversion job."""
    record = get_file_record(file_id)
    if not record:
        raise HTTPException(404, "File not found")
    target = target_format.strip().lower()
    if not target:
        return error_response(400, "No target format specified")

    storage = get_storage()
    try:
        data = storage.get_object(record["object_key"])
    except StorageError as e:
        logger.error("Stored object missing for %s: %s", file_id, e)
        raise HTTPException(404, "Stored file not found")

    name = record["name"]
    kind = classify(name)
    job = insert_conversion_job(file_id, kind.value, get_file_extension(name) or "unknown", target)
    update_file_status(file_id, "processing", conversion_type=kind.value, target_format=target)

    start = time.perf_counter()
    request = ConversionRequest(data=data, file_name=name, target_format=target)
    outcome = await asyncio.to_thread(get_dispatcher().dispatch_request, request)
    _track_conversion(
        file_name=name,
        original_format=get_file_extension(name) or "unknown",
        target_format=target,
        file_size=len(data),
        processing_time=(time.perf_counter() - start) * 1000,
        success=outcome.ok,
        error_message=None if outcome.ok else outcome.message,
    )

    if not outcome.ok:
        job = complete_conversion_job(job["id"], "failed", error_message=outcome.message)
        update_file_status(file_id, "failed")
        error = outcome.message if outcome.caller_error else "Conversion failed"
        details = None if outcome.caller_error else outcome.message
        return error_response(outcome.status_code, error, details=details, job=job)

    out_key = generate_object_key(_download_name(request.base_name, target))
    try:
        storage.put_object(out_key, outcome.output, content_type=outcome.mime_type)
    except StorageError as e:
        logger.error("Could not store output for job %s: %s", job["id"], e)
        job = complete_conversion_job(job["id"], "failed", error_message=str(e))
        update_file_status(file_id, "failed")
        return error_response(500, "Failed to store converted file", job=job)
    url = storage.get_public_url(out_key)
    job = complete_conversion_job(job["id"], "completed", output_url=url)
    update_file_status(file_id, "completed")
    return {"success": True, "job": job, "url": url}


@router.get("/files/{key}")
def download_stored_file(key: str):
    """Serve a stored object; this is what public URLs point at."""
    try:
        path = get_storage().path_for(key)
    except StorageError:
        raise HTTPException(400, "Invalid file key")
    if not path.is_file():
        raise HTTPException(404, "File not found")
    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return FileResponse(path, media_type=media_type, filename=path.name)


@router.get("/jobs/{job_id}")
def job_status(job_id: str):
    job = get_conversion_job(job_id)
    if not job:
        raise HTTPException(404, "Job not found")
    return job
