"""Analytics routes: record conversion events and query summaries."""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Query
from pydantic import ValidationError

from file_converter.analytics import AnalyticsEventIn, get_analytics_recorder
from file_converter.analytics.recorder import TIME_RANGES
from file_converter.api.responses import error_response

logger = logging.getLogger("converter.api.analytics")
router = APIRouter(prefix="/api", tags=["analytics"])


@router.post("/analytics")
def track_conversion(payload: Any = Body(None)):
    """Record one conversion event. Required: fileName, originalFormat, targetFormat, fileSize, processingTime, success."""
    if not isinstance(payload, dict):
        logger.info("Rejected analytics event: body is %s", type(payload).__name__)
        return error_response(400, "Missing required fields")
    try:
        event = AnalyticsEventIn.model_validate(payload)
    except ValidationError as e:
        logger.info("Rejected analytics event: %s", e.errors(include_url=False))
        return error_response(400, "Missing required fields")

    analytics_id = get_analytics_recorder().record(
        file_name=event.file_name,
        original_format=event.original_format,
        target_format=event.target_format,
        file_size=event.file_size,
        processing_time=event.processing_time,
        success=event.success,
        error_message=event.error_message,
    )
    return {"success": True, "analyticsId": analytics_id, "message": "Conversion tracked successfully"}


@router.get("/analytics")
def query_analytics(
    action: Optional[str] = Query(None, description="summary | formats | insights | export"),
    time_range: str = Query("all", alias="timeRange", description="day | week | month | all"),
    format: Optional[str] = Query(None, description="Limit format analytics to pairs involving this format"),
):
    recorder = get_analytics_recorder()
    if action == "summary":
        if time_range not in TIME_RANGES:
            # unknown ranges cover all recorded events
            logger.info("Unknown time range %r, using all", time_range)
            time_range = "all"
        return recorder.summarize(time_range).model_dump(mode="json", by_alias=True)
    if action == "formats":
        return [f.model_dump(mode="json", by_alias=True) for f in recorder.format_analytics(format or None)]
    if action == "insights":
        return recorder.insights().model_dump(mode="json", by_alias=True)
    if action == "export":
        return [e.model_dump(mode="json", by_alias=True) for e in recorder.export()]
    return error_response(400, "Invalid action")
