# ABOUTME: Main package for the LegisTrack bill tracking system.
# ABOUTME: Exports settings access and the core domain models.

from legis_track.config import get_settings
from legis_track.models import AiAnalysis, Document, DocumentDetail, DocumentSummary, IngestionRun

__all__ = [
    "get_settings",
    "AiAnalysis",
    "Document",
    "DocumentDetail",
    "DocumentSummary",
    "IngestionRun",
]
