# ABOUTME: Analytics routes exposing aggregate document statistics.
# ABOUTME: Thin wrapper over DocumentService.get_analytics_summary.

from fastapi import APIRouter

from legis_track.models import AnalyticsSummary
from legis_track.web.dependencies import DocumentSvc

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/summary", response_model=AnalyticsSummary)
async def analytics_summary(service: DocumentSvc):
    return await service.get_analytics_summary()
