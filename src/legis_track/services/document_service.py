# ABOUTME: Query and orchestration service for documents and analytics.
# ABOUTME: Sanitizes paging, aggregates related collections into read models and triggers AI analysis.

from collections import Counter
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

import structlog

from legis_track import mapper
from legis_track.models import (
    AiAnalysis,
    AnalyticsSummary,
    Document,
    DocumentDetail,
    DocumentSponsor,
    DocumentSummary,
    IndustryTagCount,
)
from legis_track.pagination import Page, PageRequest
from legis_track.ports import DocumentRepositoryPort

if TYPE_CHECKING:
    from legis_track.ai.service import AiAnalysisService

log = structlog.get_logger()

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
ANALYTICS_PAGE_SIZE = 500
TOP_INDUSTRY_TAGS = 10


def sanitize_page_request(page_request: PageRequest) -> PageRequest:
    """Clamp client-supplied paging to safe bounds."""
    size = page_request.page_size
    if size <= 0:
        size = DEFAULT_PAGE_SIZE
    elif size > MAX_PAGE_SIZE:
        size = MAX_PAGE_SIZE
    number = max(page_request.page_number, 0)
    return PageRequest(page_number=number, page_size=size, sort=page_request.sort)


class DocumentService:
    """Read-side service over the document repository port.

    Related collections are fetched explicitly per document; a failed child
    fetch is logged and treated as an empty collection so one bad row never
    fails a whole page.
    """

    def __init__(
        self,
        document_repository: DocumentRepositoryPort,
        analysis_service: "AiAnalysisService | None" = None,
    ) -> None:
        self.document_repository = document_repository
        self.analysis_service = analysis_service

    async def get_all_documents(self, page_request: PageRequest) -> Page[DocumentSummary]:
        page = await self.document_repository.find_all_with_valid_analyses(
            sanitize_page_request(page_request)
        )
        return await self._summarize(page)

    async def search_documents(self, query: str, page_request: PageRequest) -> Page[DocumentSummary]:
        page = await self.document_repository.search_documents(
            query, sanitize_page_request(page_request)
        )
        return await self._summarize(page)

    async def find_by_industry_tag(
        self, tag: str, page_request: PageRequest
    ) -> Page[DocumentSummary]:
        page = await self.document_repository.find_by_industry_tag(
            tag, sanitize_page_request(page_request)
        )
        return await self._summarize(page)

    async def get_document_by_id(self, document_id: int) -> DocumentDetail | None:
        document = await self.document_repository.find_by_id_with_details(document_id)
        if document is None:
            return None

        sponsors = await self._safe_list(
            "sponsors", document_id, self.document_repository.find_sponsors_by_document_id
        )
        actions = await self._safe_list(
            "actions", document_id, self.document_repository.find_actions_by_document_id
        )
        analyses = await self._safe_list(
            "analyses", document_id, self.document_repository.find_analyses_by_document_id
        )
        return mapper.to_detail(
            document,
            sponsors=sponsors,
            actions=mapper.sort_actions(actions),
            analysis=mapper.latest_valid_analysis(analyses),
            party_breakdown=mapper.calculate_party_breakdown(sponsors),
        )

    async def analyze_document(self, document_id: int) -> DocumentDetail | None:
        """Best-effort analysis generation, then the (possibly unchanged) detail."""
        document = await self.document_repository.find_by_id(document_id)
        if document is None:
            return None

        if self.analysis_service is None:
            log.warning("analysis_service_unavailable", document_id=document_id)
        else:
            try:
                await self.analysis_service.generate_and_persist(document)
            except Exception:
                log.exception("analysis_generation_failed", document_id=document_id)

        return await self.get_document_by_id(document_id)

    async def get_analytics_summary(self) -> AnalyticsSummary:
        """Aggregate statistics, walking documents page by page to bound memory.

        Average sponsorship percentages are the plain mean of per-document
        percentages, not a ratio over all sponsors.
        """
        total_documents = await self.document_repository.count()
        needing_analysis = await self.document_repository.count_documents_needing_analysis()

        democratic_sum = 0.0
        republican_sum = 0.0
        counted = 0
        tag_counts: Counter[str] = Counter()

        page_index = 0
        while True:
            page = await self.document_repository.find_all_with_valid_analyses(
                PageRequest.of(page_index, ANALYTICS_PAGE_SIZE)
            )
            if page.is_empty:
                break

            for document in page.content:
                summary = await self._to_summary(document)
                democratic_sum += summary.party_breakdown.democratic_percentage
                republican_sum += summary.party_breakdown.republican_percentage
                tag_counts.update(summary.industry_tags)
                counted += 1

            if page.is_last:
                break
            page_index += 1

        return AnalyticsSummary(
            total_documents=total_documents,
            documents_needing_analysis=needing_analysis,
            avg_democratic_sponsorship=democratic_sum / counted if counted else 0.0,
            avg_republican_sponsorship=republican_sum / counted if counted else 0.0,
            top_industry_tags=[
                IndustryTagCount(tag=tag, count=count)
                for tag, count in tag_counts.most_common(TOP_INDUSTRY_TAGS)
            ],
        )

    async def _summarize(self, page: Page[Document]) -> Page[DocumentSummary]:
        summaries: dict[int | None, DocumentSummary] = {}
        for document in page.content:
            summaries[document.id] = await self._to_summary(document)
        return page.map(lambda document: summaries[document.id])

    async def _to_summary(self, document: Document) -> DocumentSummary:
        if document.id is None:
            raise ValueError(f"Document {document.bill_id} has no id")

        sponsors: list[DocumentSponsor] = await self._safe_list(
            "sponsors", document.id, self.document_repository.find_sponsors_by_document_id
        )
        analyses: list[AiAnalysis] = await self._safe_list(
            "analyses", document.id, self.document_repository.find_analyses_by_document_id
        )
        return mapper.to_summary(
            document,
            industry_tags=mapper.valid_industry_tags(analyses),
            party_breakdown=mapper.calculate_party_breakdown(sponsors),
            has_valid_analysis=any(a.is_valid for a in analyses),
        )

    async def _safe_list(
        self,
        collection: str,
        document_id: int,
        fetch: Callable[[int], Awaitable[list[T]]],
    ) -> list[T]:
        try:
            return await fetch(document_id)
        except Exception as e:
            log.warning(
                "child_fetch_failed",
                collection=collection,
                document_id=document_id,
                error=str(e),
            )
            return []
