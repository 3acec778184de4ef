# ABOUTME: Routes module initialization.
# ABOUTME: Exports all route modules for FastAPI app.

from legis_track.web.routes import analytics, api, documents, ingestion

__all__ = ["analytics", "api", "documents", "ingestion"]
