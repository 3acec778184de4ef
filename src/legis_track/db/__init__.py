# ABOUTME: Database module initialization.
# ABOUTME: Exports ORM base, session helpers and the SQLAlchemy repository adapters.

from legis_track.db.models import Base
from legis_track.db.repository import (
    SqlAiAnalysisRepository,
    SqlDocumentRepository,
    SqlIngestionRunRepository,
)
from legis_track.db.session import close_db, get_session, get_session_factory, init_db

__all__ = [
    "Base",
    "SqlAiAnalysisRepository",
    "SqlDocumentRepository",
    "SqlIngestionRunRepository",
    "close_db",
    "get_session",
    "get_session_factory",
    "init_db",
]
