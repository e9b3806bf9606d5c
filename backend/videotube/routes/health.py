"""
VideoTube Backend — Liveness Route
===================================

`GET /` runs the liveness query through the ConnectionManager.

    200 {"rows": [{"now": "..."}]}   store reachable
    500 {"error": "<message>"}        store unreachable

The failure body is deliberately different from the executor's
`{"success": false}` shape: monitoring probes key on `error`.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from videotube.database import ConnectionManager, get_connection_manager
from videotube.exceptions import DatabaseConnectionError
from videotube.schemas.common import LivenessResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/",
    response_model=LivenessResponse,
    responses={500: {"description": "Database unreachable"}},
    summary="Database liveness check",
)
async def liveness(manager: ConnectionManager = Depends(get_connection_manager)):
    try:
        rows = await manager.ping()
    except DatabaseConnectionError as exc:
        logger.warning("Liveness check failed: %s", exc.context.get("reason", exc.message))
        return JSONResponse(status_code=500, content={"error": exc.message})
    return LivenessResponse(rows=rows)
