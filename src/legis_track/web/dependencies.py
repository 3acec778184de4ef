# ABOUTME: FastAPI dependency injection for database sessions, repositories and services.
# ABOUTME: Provides reusable dependencies for route handlers.

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from legis_track.ai.service import AiAnalysisService
from legis_track.config import get_settings
from legis_track.db.repository import (
    SqlAiAnalysisRepository,
    SqlDocumentRepository,
    SqlIngestionRunRepository,
)
from legis_track.db.session import get_db_session, get_session_factory
from legis_track.ports import AiModelPort, DocumentRepositoryPort, IngestionRunRepositoryPort
from legis_track.services.document_service import DocumentService
from legis_track.services.scheduler import ScheduledIngestion

# Type aliases for common dependencies
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_document_repository(
    session: DbSession,
) -> AsyncGenerator[DocumentRepositoryPort]:
    """Get document repository with session."""
    yield SqlDocumentRepository(session)


DocumentRepo = Annotated[DocumentRepositoryPort, Depends(get_document_repository)]


def get_run_repository() -> IngestionRunRepositoryPort:
    """Get ingestion run repository; it opens its own sessions."""
    return SqlIngestionRunRepository(get_session_factory())


RunRepo = Annotated[IngestionRunRepositoryPort, Depends(get_run_repository)]


def get_ai_model(request: Request) -> AiModelPort:
    """Get the Ollama client created at startup."""
    return request.app.state.ai_model


AiModel = Annotated[AiModelPort, Depends(get_ai_model)]


async def get_analysis_service(session: DbSession, ai_model: AiModel) -> AiAnalysisService:
    """Get analysis service bound to the request session."""
    return AiAnalysisService(
        ai_model=ai_model,
        analysis_repository=SqlAiAnalysisRepository(session),
        model_name=get_settings().ollama_model,
    )


AnalysisSvc = Annotated[AiAnalysisService, Depends(get_analysis_service)]


def get_document_service(repository: DocumentRepo, analysis_service: AnalysisSvc) -> DocumentService:
    """Get document service instance."""
    return DocumentService(repository, analysis_service)


DocumentSvc = Annotated[DocumentService, Depends(get_document_service)]


def get_scheduler(request: Request) -> ScheduledIngestion:
    """Get the ingestion scheduler created at startup."""
    return request.app.state.scheduler


Scheduler = Annotated[ScheduledIngestion, Depends(get_scheduler)]
