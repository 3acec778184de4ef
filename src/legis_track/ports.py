# ABOUTME: Abstract ports consumed by the services layer.
# ABOUTME: Repository, legislative-data and AI-model contracts implemented by db, congress and ai adapters.

from abc import ABC, abstractmethod
from datetime import date

from legis_track.models import (
    AiAnalysis,
    BillDetail,
    BillsPage,
    Document,
    DocumentAction,
    DocumentBasic,
    DocumentSponsor,
    IngestionRun,
)
from legis_track.pagination import Page, PageRequest


class DocumentRepositoryPort(ABC):
    """Persistence contract for documents and their related collections.

    Lookups return ``None`` when the entity is absent rather than raising.
    """

    @abstractmethod
    async def save(self, document: Document) -> Document: ...

    @abstractmethod
    async def save_all(self, documents: list[Document]) -> list[Document]: ...

    @abstractmethod
    async def find_by_id(self, document_id: int) -> Document | None: ...

    @abstractmethod
    async def find_by_bill_id(self, bill_id: str) -> Document | None: ...

    @abstractmethod
    async def exists_by_bill_id(self, bill_id: str) -> bool: ...

    @abstractmethod
    async def find_by_introduction_date_after(self, cutoff: date) -> list[Document]: ...

    @abstractmethod
    async def find_all_with_valid_analyses(self, page_request: PageRequest) -> Page[Document]: ...

    @abstractmethod
    async def search_documents(self, query: str, page_request: PageRequest) -> Page[Document]: ...

    @abstractmethod
    async def find_by_industry_tag(self, tag: str, page_request: PageRequest) -> Page[Document]: ...

    @abstractmethod
    async def find_document_basic_by_id(self, document_id: int) -> DocumentBasic | None: ...

    @abstractmethod
    async def find_by_id_with_details(self, document_id: int) -> Document | None: ...

    @abstractmethod
    async def find_sponsors_by_document_id(self, document_id: int) -> list[DocumentSponsor]: ...

    @abstractmethod
    async def find_actions_by_document_id(self, document_id: int) -> list[DocumentAction]: ...

    @abstractmethod
    async def find_analyses_by_document_id(self, document_id: int) -> list[AiAnalysis]: ...

    @abstractmethod
    async def count_documents_needing_analysis(self) -> int: ...

    @abstractmethod
    async def delete_by_id(self, document_id: int) -> None: ...

    @abstractmethod
    async def delete_all(self) -> None: ...

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def exists_any(self) -> bool: ...

    @abstractmethod
    async def commit(self) -> None:
        """Make pending writes durable."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard writes made since the last commit."""


class AiAnalysisRepositoryPort(ABC):
    """Persistence contract for AI analyses."""

    @abstractmethod
    async def save(self, analysis: AiAnalysis) -> AiAnalysis: ...

    @abstractmethod
    async def find_by_id(self, analysis_id: int) -> AiAnalysis | None: ...

    @abstractmethod
    async def find_valid_by_document_id(self, document_id: int) -> list[AiAnalysis]: ...

    @abstractmethod
    async def find_latest_valid_by_document_id(self, document_id: int) -> AiAnalysis | None: ...

    @abstractmethod
    async def mark_as_invalid(self, analysis_id: int) -> bool: ...

    @abstractmethod
    async def count_valid(self) -> int: ...


class IngestionRunRepositoryPort(ABC):
    """Ledger of ingestion runs, keyed for idempotency by ``from_date``."""

    @abstractmethod
    async def find_successful(self, from_date: date) -> IngestionRun | None: ...

    @abstractmethod
    async def create(self, from_date: date) -> IngestionRun | None: ...

    @abstractmethod
    async def mark_success(self, run_id: int, document_count: int) -> IngestionRun | None: ...

    @abstractmethod
    async def mark_failure(self, run_id: int, error_message: str | None) -> IngestionRun | None: ...

    @abstractmethod
    async def find_latest_run(self) -> IngestionRun | None: ...


class CongressPort(ABC):
    """External legislative-data source."""

    @abstractmethod
    async def get_recent_bills(self, from_date: date, offset: int = 0, limit: int = 20) -> BillsPage: ...

    @abstractmethod
    async def get_bill_details(
        self, congress: int, bill_type: str, bill_number: str
    ) -> BillDetail | None: ...

    @abstractmethod
    async def ping(self) -> bool: ...


class AiModelPort(ABC):
    """Text generation backed by a model service."""

    @abstractmethod
    def is_service_ready(self) -> bool: ...

    @abstractmethod
    async def is_model_available(self) -> bool: ...

    @abstractmethod
    async def generate_analysis(
        self, prompt: str, temperature: float | None = None
    ) -> str | None: ...

    @abstractmethod
    async def generate_general_effect_analysis(
        self, bill_title: str, bill_summary: str | None
    ) -> str | None: ...

    @abstractmethod
    async def generate_economic_effect_analysis(
        self, bill_title: str, bill_summary: str | None
    ) -> str | None: ...

    @abstractmethod
    async def generate_industry_tags(self, bill_title: str, bill_summary: str | None) -> list[str]: ...
