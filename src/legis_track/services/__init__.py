# ABOUTME: Services module initialization.
# ABOUTME: Exports document, domain, ingestion and scheduling services.

from legis_track.services.document_service import DocumentService
from legis_track.services.domain_service import DocumentDomainService
from legis_track.services.ingestion_service import DataIngestionService, run_ingestion
from legis_track.services.scheduler import ScheduledIngestion

__all__ = [
    "DataIngestionService",
    "DocumentDomainService",
    "DocumentService",
    "ScheduledIngestion",
    "run_ingestion",
]
