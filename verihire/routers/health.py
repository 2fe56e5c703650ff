"""Health check endpoint.

Returns service status including storage connectivity and scheduler state.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from verihire.scheduler.jobs import is_scheduler_running

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health_check(request: Request) -> Any:
    """Return 200 when storage answers, 503 otherwise."""
    db_status = "disconnected"
    try:
        if request.app.state.container.repository.ping():
            db_status = "connected"
    except Exception:
        logger.warning("Health check: storage ping failed", exc_info=True)

    scheduler = getattr(request.app.state, "scheduler", None)
    payload: dict[str, str] = {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "scheduler": "running" if is_scheduler_running(scheduler) else "stopped",
    }

    if db_status != "connected":
        return JSONResponse(status_code=503, content=payload)

    return payload
