# ABOUTME: Pytest fixtures and configuration for LegisTrack tests.
# ABOUTME: Provides test settings, sample entities and in-memory fakes of the repository and external ports.

import asyncio
from datetime import UTC, date, datetime

import pytest
from prometheus_client import CollectorRegistry
from pydantic import SecretStr

from legis_track import mapper
from legis_track.config import Settings
from legis_track.metrics import IngestionMetrics
from legis_track.models import (
    AiAnalysis,
    BillDetail,
    BillsPage,
    BillSummary,
    Document,
    DocumentAction,
    DocumentBasic,
    DocumentSponsor,
    IngestionRun,
    IngestionStatus,
    Sponsor,
)
from legis_track.pagination import Page, PageRequest
from legis_track.ports import (
    AiAnalysisRepositoryPort,
    AiModelPort,
    CongressPort,
    DocumentRepositoryPort,
    IngestionRunRepositoryPort,
)


class FakeDocumentRepository(DocumentRepositoryPort):
    """In-memory document store with per-document child collections."""

    def __init__(self) -> None:
        self.documents: dict[int, Document] = {}
        self.sponsors: dict[int, list[DocumentSponsor]] = {}
        self.actions: dict[int, list[DocumentAction]] = {}
        self.analyses: dict[int, list[AiAnalysis]] = {}
        self.page_requests: list[PageRequest] = []
        self.uncommitted: list[int] = []
        self.commits = 0
        self.fail_on_commit: Exception | None = None
        self._next_id = 1

    def add(self, document: Document, sponsors=None, actions=None, analyses=None) -> Document:
        stored = document.model_copy(update={"id": document.id or self._next_id})
        self._next_id = max(self._next_id, stored.id) + 1
        self.documents[stored.id] = stored
        self.sponsors[stored.id] = list(sponsors or [])
        self.actions[stored.id] = list(actions or [])
        self.analyses[stored.id] = list(analyses or [])
        return stored

    async def save(self, document: Document) -> Document:
        stored = self.add(document)
        self.uncommitted.append(stored.id)
        return stored

    async def save_all(self, documents: list[Document]) -> list[Document]:
        return [await self.save(document) for document in documents]

    async def find_by_id(self, document_id: int) -> Document | None:
        return self.documents.get(document_id)

    async def find_by_bill_id(self, bill_id: str) -> Document | None:
        return next((d for d in self.documents.values() if d.bill_id == bill_id), None)

    async def exists_by_bill_id(self, bill_id: str) -> bool:
        # Membership is read before yielding so concurrent callers can race.
        found = any(d.bill_id == bill_id for d in self.documents.values())
        await asyncio.sleep(0)
        return found

    async def find_by_introduction_date_after(self, cutoff: date) -> list[Document]:
        return [
            d
            for d in self.documents.values()
            if d.introduction_date is not None and d.introduction_date > cutoff
        ]

    def _page(self, documents: list[Document], page_request: PageRequest) -> Page[Document]:
        self.page_requests.append(page_request)
        ordered = sorted(
            documents,
            key=lambda d: (d.introduction_date or date.min, d.id or 0),
            reverse=True,
        )
        start = page_request.offset
        content = ordered[start : start + page_request.page_size]
        return Page.of(content, page_request, len(ordered))

    async def find_all_with_valid_analyses(self, page_request: PageRequest) -> Page[Document]:
        return self._page(list(self.documents.values()), page_request)

    async def search_documents(self, query: str, page_request: PageRequest) -> Page[Document]:
        needle = query.lower()
        matches = [
            d
            for d in self.documents.values()
            if needle in d.title.lower()
            or needle in (d.official_summary or "").lower()
            or needle in d.bill_id.lower()
        ]
        return self._page(matches, page_request)

    async def find_by_industry_tag(self, tag: str, page_request: PageRequest) -> Page[Document]:
        matches = [
            d
            for d in self.documents.values()
            if any(a.is_valid and tag in a.industry_tags for a in self.analyses.get(d.id, []))
        ]
        return self._page(matches, page_request)

    async def find_document_basic_by_id(self, document_id: int) -> DocumentBasic | None:
        document = self.documents.get(document_id)
        return mapper.to_basic(document) if document else None

    async def find_by_id_with_details(self, document_id: int) -> Document | None:
        return self.documents.get(document_id)

    async def find_sponsors_by_document_id(self, document_id: int) -> list[DocumentSponsor]:
        return list(self.sponsors.get(document_id, []))

    async def find_actions_by_document_id(self, document_id: int) -> list[DocumentAction]:
        return list(self.actions.get(document_id, []))

    async def find_analyses_by_document_id(self, document_id: int) -> list[AiAnalysis]:
        return list(self.analyses.get(document_id, []))

    async def count_documents_needing_analysis(self) -> int:
        return sum(
            1
            for document_id in self.documents
            if not any(a.is_valid for a in self.analyses.get(document_id, []))
        )

    async def delete_by_id(self, document_id: int) -> None:
        self.documents.pop(document_id, None)

    async def delete_all(self) -> None:
        self.documents.clear()

    async def count(self) -> int:
        return len(self.documents)

    async def exists_any(self) -> bool:
        return bool(self.documents)

    async def commit(self) -> None:
        if self.fail_on_commit is not None:
            raise self.fail_on_commit
        self.uncommitted.clear()
        self.commits += 1

    async def rollback(self) -> None:
        # Only saves made through the port are transactional; add() seeds are kept.
        for document_id in self.uncommitted:
            self.documents.pop(document_id, None)
            self.sponsors.pop(document_id, None)
            self.actions.pop(document_id, None)
            self.analyses.pop(document_id, None)
        self.uncommitted.clear()


class FakeAnalysisRepository(AiAnalysisRepositoryPort):
    """In-memory analysis store."""

    def __init__(self) -> None:
        self.analyses: dict[int, AiAnalysis] = {}

    async def save(self, analysis: AiAnalysis) -> AiAnalysis:
        saved = analysis.model_copy(update={"id": analysis.id or len(self.analyses) + 1})
        self.analyses[saved.id] = saved
        return saved

    async def find_by_id(self, analysis_id: int) -> AiAnalysis | None:
        return self.analyses.get(analysis_id)

    async def find_valid_by_document_id(self, document_id: int) -> list[AiAnalysis]:
        return [a for a in self.analyses.values() if a.document_id == document_id and a.is_valid]

    async def find_latest_valid_by_document_id(self, document_id: int) -> AiAnalysis | None:
        valid = await self.find_valid_by_document_id(document_id)
        return max(valid, key=lambda a: a.analysis_date) if valid else None

    async def mark_as_invalid(self, analysis_id: int) -> bool:
        analysis = self.analyses.get(analysis_id)
        if analysis is None:
            return False
        self.analyses[analysis_id] = analysis.mark_as_invalid()
        return True

    async def count_valid(self) -> int:
        return sum(1 for a in self.analyses.values() if a.is_valid)


class FakeRunRepository(IngestionRunRepositoryPort):
    """In-memory ingestion run ledger. Never yields to the event loop."""

    def __init__(self, create_returns_none: bool = False) -> None:
        self.runs: dict[int, IngestionRun] = {}
        self.create_returns_none = create_returns_none
        self.fail_on_mark_failure = False

    async def find_successful(self, from_date: date) -> IngestionRun | None:
        return next(
            (
                r
                for r in self.runs.values()
                if r.from_date == from_date and r.status == IngestionStatus.SUCCESS
            ),
            None,
        )

    async def create(self, from_date: date) -> IngestionRun | None:
        if self.create_returns_none:
            return None
        run = IngestionRun(id=len(self.runs) + 1, from_date=from_date)
        self.runs[run.id] = run
        return run

    async def mark_success(self, run_id: int, document_count: int) -> IngestionRun | None:
        run = self.runs[run_id].mark_success(document_count)
        self.runs[run_id] = run
        return run

    async def mark_failure(self, run_id: int, error_message: str | None) -> IngestionRun | None:
        if self.fail_on_mark_failure:
            raise RuntimeError("ledger unavailable")
        run = self.runs[run_id].mark_failure(error_message)
        self.runs[run_id] = run
        return run

    async def find_latest_run(self) -> IngestionRun | None:
        return self.runs[max(self.runs)] if self.runs else None


class FakeCongress(CongressPort):
    """Serves preset pages of bills, indexed by offset."""

    def __init__(
        self,
        pages: list[list[BillSummary]] | None = None,
        error: Exception | None = None,
        error_at_offset: int = 0,
    ):
        self.pages = pages or []
        self.error = error
        self.error_at_offset = error_at_offset
        self.calls: list[tuple[date, int, int]] = []

    async def get_recent_bills(self, from_date: date, offset: int = 0, limit: int = 20) -> BillsPage:
        self.calls.append((from_date, offset, limit))
        if self.error is not None and offset >= self.error_at_offset:
            raise self.error
        index = offset // limit if limit else 0
        bills = self.pages[index] if index < len(self.pages) else []
        return BillsPage(bills=bills)

    async def get_bill_details(
        self, congress: int, bill_type: str, bill_number: str
    ) -> BillDetail | None:
        return None

    async def ping(self) -> bool:
        return True


class FakeAiModel(AiModelPort):
    """Scripted model answers; an Exception value makes that generation raise."""

    def __init__(self, ready=True, general="General effect.", economic="Economic effect.", tags=None):
        self.ready = ready
        self.general = general
        self.economic = economic
        self.tags = ["Energy", "Finance"] if tags is None else tags

    def is_service_ready(self) -> bool:
        return self.ready

    async def is_model_available(self) -> bool:
        return self.ready

    async def generate_analysis(self, prompt: str, temperature: float | None = None) -> str | None:
        return self.general

    @staticmethod
    def _answer(value):
        if isinstance(value, Exception):
            raise value
        return value

    async def generate_general_effect_analysis(self, bill_title, bill_summary):
        return self._answer(self.general)

    async def generate_economic_effect_analysis(self, bill_title, bill_summary):
        return self._answer(self.economic)

    async def generate_industry_tags(self, bill_title, bill_summary):
        return self._answer(self.tags)


def make_bill(number: str | None, bill_type: str = "hr", congress: int = 118, **kwargs) -> BillSummary:
    return BillSummary(
        congress=congress,
        number=number,
        type=bill_type,
        title=kwargs.get("title", f"Bill {number}"),
        introduced_date=kwargs.get("introduced_date"),
    )


def make_sponsor(party: str | None, primary: bool = False, bioguide_id: str = "X000001") -> DocumentSponsor:
    return DocumentSponsor(
        sponsor=Sponsor(bioguide_id=bioguide_id, first_name="Pat", last_name="Doe", party=party),
        is_primary_sponsor=primary,
    )


def make_analysis(
    document_id: int = 1,
    tags: list[str] | None = None,
    is_valid: bool = True,
    analysis_date: datetime | None = None,
    general: str | None = "Broad effect.",
) -> AiAnalysis:
    return AiAnalysis(
        document_id=document_id,
        general_effect_text=general,
        industry_tags=tags or [],
        is_valid=is_valid,
        analysis_date=analysis_date or datetime(2025, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def mock_settings() -> Settings:
    """Create settings for testing without touching the environment's .env."""
    return Settings(
        _env_file=None,
        congress_api_key=SecretStr("test-api-key"),
        congress_api_base_url="https://congress.test/v3",
        congress_api_retry_attempts=1,
        ollama_base_url="http://ollama.test",
        ollama_model="test-model",
        ollama_bootstrap_enabled=False,
        ingestion_enabled=False,
        ingestion_interval_seconds=60,
        ingestion_lookback_days=7,
        log_level="DEBUG",
    )


@pytest.fixture
def sample_document() -> Document:
    return Document(
        id=1,
        bill_id="HR1-118",
        title="Clean Energy Act",
        official_summary="Expands tax credits for renewable energy.",
        introduction_date=date(2025, 3, 1),
        congress_session=118,
        bill_type="HR",
        status="Introduced",
        created_at=datetime(2025, 3, 1, tzinfo=UTC),
        updated_at=datetime(2025, 3, 2, tzinfo=UTC),
    )


@pytest.fixture
def document_repository() -> FakeDocumentRepository:
    return FakeDocumentRepository()


@pytest.fixture
def run_repository() -> FakeRunRepository:
    return FakeRunRepository()


@pytest.fixture
def analysis_repository() -> FakeAnalysisRepository:
    return FakeAnalysisRepository()


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(metrics_registry: CollectorRegistry) -> IngestionMetrics:
    return IngestionMetrics(metrics_registry)
