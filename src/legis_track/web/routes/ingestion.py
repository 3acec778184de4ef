# ABOUTME: Ingestion routes to trigger a background run and inspect the latest run.
# ABOUTME: Triggering returns immediately; the run continues on the scheduler's event loop.

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from legis_track.models import IngestionRun
from legis_track.web.dependencies import RunRepo, Scheduler

router = APIRouter(prefix="/api/ingestion", tags=["ingestion"])
log = structlog.get_logger()


class TriggerResponse(BaseModel):
    """Response model for an accepted ingestion trigger."""

    status: str
    from_date: str


@router.post("/trigger", response_model=TriggerResponse, status_code=202)
async def trigger_ingestion(scheduler: Scheduler):
    """Start an ingestion run in the background."""
    from_date = scheduler.from_date()
    scheduler.trigger()
    log.info("api_ingestion_triggered", from_date=from_date.isoformat())
    return TriggerResponse(status="accepted", from_date=from_date.isoformat())


@router.get("/latest", response_model=IngestionRun)
async def latest_run(runs: RunRepo):
    run = await runs.find_latest_run()
    if run is None:
        raise HTTPException(status_code=404, detail="No ingestion runs yet")
    return run
