from __future__ import annotations

from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Query

from streaming_kmeans.src.utils.logging_utils import get_recent_logs

router = APIRouter(prefix="/v1/logs", tags=["Logs"])

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


@router.get("/recent", summary="Fetch recent backend logs")
def recent_logs(
    limit: Annotated[int, Query(ge=1, le=1000)] = 200,
    level: Optional[LogLevel] = None,
    event: Optional[str] = None,
) -> dict[str, list[dict[str, object]]]:
    """Return buffered log entries, optionally only those at or above `level` or with a given event."""
    entries = get_recent_logs(limit, min_level=level)
    if event is not None:
        entries = [entry for entry in entries if entry["extra"].get("event") == event]
    return {"logs": entries}
