"""JSON error bodies shared by the API routes: {error, details?, fileInfo?}."""
from typing import Optional

from fastapi.responses import JSONResponse


def error_response(
    status_code: int,
    error: str,
    details: Optional[str] = None,
    file_info: Optional[dict] = None,
    **extra,
) -> JSONResponse:
    body: dict = {"error": error}
    if details is not None:
        body["details"] = details
    if file_info is not None:
        body["fileInfo"] = file_info
    body.update(extra)
    return JSONResponse(body, status_code=status_code)
