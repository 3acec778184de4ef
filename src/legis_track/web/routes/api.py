# ABOUTME: Operational routes: health check and Prometheus metrics exposition.
# ABOUTME: Health reports whether the AI model service finished its bootstrap.

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from legis_track.metrics import get_ingestion_metrics
from legis_track.web.dependencies import AiModel

router = APIRouter(tags=["api"])


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    ai_ready: bool
    version: str = "0.1.0"


@router.get("/api/health", response_model=HealthResponse)
async def health_check(ai_model: AiModel):
    """Health check endpoint for load balancer."""
    return HealthResponse(status="healthy", ai_ready=ai_model.is_service_ready())


@router.get("/metrics")
async def metrics():
    """Prometheus scrape endpoint."""
    get_ingestion_metrics()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
