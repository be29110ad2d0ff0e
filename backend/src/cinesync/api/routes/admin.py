"""Admin API endpoints for manual operations."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from cinesync.schemas.sync import SyncError, SyncReport
from cinesync.tasks.sync_job import run_sync

logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_STATUS = {"blocked": 403, "failed": 500}


@router.post(
    "/admin/sync",
    response_model=SyncReport,
    responses={403: {"model": SyncError}, 500: {"model": SyncError}},
)
async def trigger_sync() -> SyncReport | JSONResponse:
    """
    Run a full catalog sync and wait for it to finish.

    A run already in progress (scheduled or manual) is awaited first.
    Responds 403 when cinenews kept blocking us, 500 on any other failure.
    """
    logger.info("Manual sync triggered")
    result = await run_sync()

    if isinstance(result, SyncError):
        return JSONResponse(status_code=ERROR_STATUS[result.kind], content=result.model_dump())
    return result
