# ABOUTME: SQLAlchemy implementations of the repository ports.
# ABOUTME: Provides document, AI analysis and ingestion run repositories with ORM to domain conversion.

from datetime import date

import structlog
from sqlalchemy import Select, delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from legis_track import mapper
from legis_track.db.models import (
    AiAnalysisRow,
    DocumentActionRow,
    DocumentRow,
    DocumentSponsorRow,
    IngestionRunRow,
)
from legis_track.models import (
    AiAnalysis,
    Document,
    DocumentAction,
    DocumentBasic,
    DocumentSponsor,
    IngestionRun,
    IngestionStatus,
    Sponsor,
    utcnow,
)
from legis_track.pagination import Page, PageRequest, SortDirection
from legis_track.ports import (
    AiAnalysisRepositoryPort,
    DocumentRepositoryPort,
    IngestionRunRepositoryPort,
)

log = structlog.get_logger()

SORTABLE_COLUMNS = {
    "introduction_date": DocumentRow.introduction_date,
    "title": DocumentRow.title,
    "bill_id": DocumentRow.bill_id,
    "created_at": DocumentRow.created_at,
    "updated_at": DocumentRow.updated_at,
}

_DOCUMENT_FIELDS = (
    "bill_id",
    "title",
    "official_summary",
    "introduction_date",
    "congress_session",
    "bill_type",
    "full_text_url",
    "status",
)


def to_document(row: DocumentRow) -> Document:
    return Document(
        id=row.id,
        bill_id=row.bill_id,
        title=row.title,
        official_summary=row.official_summary,
        introduction_date=row.introduction_date,
        congress_session=row.congress_session,
        bill_type=row.bill_type,
        full_text_url=row.full_text_url,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_document_sponsor(row: DocumentSponsorRow) -> DocumentSponsor:
    sponsor = row.sponsor
    return DocumentSponsor(
        sponsor=Sponsor(
            id=sponsor.id,
            bioguide_id=sponsor.bioguide_id,
            first_name=sponsor.first_name,
            last_name=sponsor.last_name,
            party=sponsor.party,
            state=sponsor.state,
            district=sponsor.district,
        ),
        is_primary_sponsor=row.is_primary_sponsor,
        sponsor_date=row.sponsor_date,
    )


def to_document_action(row: DocumentActionRow) -> DocumentAction:
    return DocumentAction(
        id=row.id,
        document_id=row.document_id,
        action_date=row.action_date,
        action_type=row.action_type,
        action_text=row.action_text,
        chamber=row.chamber,
        action_code=row.action_code,
    )


def to_analysis(row: AiAnalysisRow) -> AiAnalysis:
    return AiAnalysis(
        id=row.id,
        document_id=row.document_id,
        general_effect_text=row.general_effect_text,
        economic_effect_text=row.economic_effect_text,
        industry_tags=list(row.industry_tags or []),
        is_valid=row.is_valid,
        analysis_date=row.analysis_date,
        model_used=row.model_used,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_ingestion_run(row: IngestionRunRow) -> IngestionRun:
    return IngestionRun(
        id=row.id,
        from_date=row.from_date,
        status=IngestionStatus(row.status),
        started_at=row.started_at,
        completed_at=row.completed_at,
        document_count=row.document_count,
        error_message=row.error_message,
    )


def apply_sort(query: Select, page_request: PageRequest) -> Select:
    """Order by the requested sort, defaulting to newest introduction first."""
    orders = page_request.sort.orders if page_request.sort else []
    clauses = []
    for order in orders:
        column = SORTABLE_COLUMNS.get(order.property)
        if column is None:
            log.warning("sort_property_ignored", property=order.property)
            continue
        clause = column.desc() if order.direction == SortDirection.DESC else column.asc()
        clauses.append(clause.nulls_last())
    if not clauses:
        clauses.append(DocumentRow.introduction_date.desc().nulls_last())
    clauses.append(DocumentRow.id.desc())
    return query.order_by(*clauses)


class SqlDocumentRepository(DocumentRepositoryPort):
    """Repository for documents and their related collections."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, document: Document) -> Document:
        """Insert a new document or update the stored one with the same id."""
        row = await self.session.get(DocumentRow, document.id) if document.id is not None else None
        if row is None:
            row = DocumentRow(created_at=document.created_at)
            self.session.add(row)
        for field in _DOCUMENT_FIELDS:
            setattr(row, field, getattr(document, field))
        row.updated_at = utcnow()
        await self.session.flush()
        return to_document(row)

    async def save_all(self, documents: list[Document]) -> list[Document]:
        return [await self.save(document) for document in documents]

    async def find_by_id(self, document_id: int) -> Document | None:
        row = await self.session.get(DocumentRow, document_id)
        return to_document(row) if row else None

    async def find_by_bill_id(self, bill_id: str) -> Document | None:
        result = await self.session.execute(select(DocumentRow).where(DocumentRow.bill_id == bill_id))
        row = result.scalar_one_or_none()
        return to_document(row) if row else None

    async def exists_by_bill_id(self, bill_id: str) -> bool:
        result = await self.session.execute(
            select(exists().where(DocumentRow.bill_id == bill_id))
        )
        return bool(result.scalar())

    async def find_by_introduction_date_after(self, cutoff: date) -> list[Document]:
        result = await self.session.execute(
            select(DocumentRow)
            .where(DocumentRow.introduction_date > cutoff)
            .order_by(DocumentRow.introduction_date.desc())
        )
        return [to_document(row) for row in result.scalars().all()]

    async def find_all_with_valid_analyses(self, page_request: PageRequest) -> Page[Document]:
        """All documents, newest introduction first.

        Analyses are fetched separately; documents without a valid analysis
        are included.
        """
        return await self._page(select(DocumentRow), page_request)

    async def search_documents(self, query: str, page_request: PageRequest) -> Page[Document]:
        pattern = f"%{query.strip()}%"
        statement = select(DocumentRow).where(
            or_(
                DocumentRow.title.ilike(pattern),
                DocumentRow.official_summary.ilike(pattern),
                DocumentRow.bill_id.ilike(pattern),
            )
        )
        return await self._page(statement, page_request)

    async def find_by_industry_tag(self, tag: str, page_request: PageRequest) -> Page[Document]:
        has_tag = (
            select(AiAnalysisRow.id)
            .where(AiAnalysisRow.document_id == DocumentRow.id)
            .where(AiAnalysisRow.is_valid.is_(True))
            .where(AiAnalysisRow.industry_tags.contains([tag]))
            .exists()
        )
        return await self._page(select(DocumentRow).where(has_tag), page_request)

    async def find_document_basic_by_id(self, document_id: int) -> DocumentBasic | None:
        document = await self.find_by_id(document_id)
        return mapper.to_basic(document) if document else None

    async def find_by_id_with_details(self, document_id: int) -> Document | None:
        # Related collections are loaded through the find_*_by_document_id methods.
        return await self.find_by_id(document_id)

    async def find_sponsors_by_document_id(self, document_id: int) -> list[DocumentSponsor]:
        result = await self.session.execute(
            select(DocumentSponsorRow)
            .where(DocumentSponsorRow.document_id == document_id)
            .order_by(DocumentSponsorRow.is_primary_sponsor.desc(), DocumentSponsorRow.id)
        )
        return [to_document_sponsor(row) for row in result.scalars().all()]

    async def find_actions_by_document_id(self, document_id: int) -> list[DocumentAction]:
        result = await self.session.execute(
            select(DocumentActionRow)
            .where(DocumentActionRow.document_id == document_id)
            .order_by(DocumentActionRow.action_date.desc().nulls_last(), DocumentActionRow.id)
        )
        return [to_document_action(row) for row in result.scalars().all()]

    async def find_analyses_by_document_id(self, document_id: int) -> list[AiAnalysis]:
        result = await self.session.execute(
            select(AiAnalysisRow)
            .where(AiAnalysisRow.document_id == document_id)
            .order_by(AiAnalysisRow.analysis_date.desc())
        )
        return [to_analysis(row) for row in result.scalars().all()]

    async def count_documents_needing_analysis(self) -> int:
        analysed = select(AiAnalysisRow.document_id).where(AiAnalysisRow.is_valid.is_(True))
        result = await self.session.execute(
            select(func.count(DocumentRow.id)).where(DocumentRow.id.not_in(analysed))
        )
        return result.scalar_one()

    async def delete_by_id(self, document_id: int) -> None:
        await self.session.execute(delete(DocumentRow).where(DocumentRow.id == document_id))

    async def delete_all(self) -> None:
        await self.session.execute(delete(DocumentRow))

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(DocumentRow.id)))
        return result.scalar_one()

    async def exists_any(self) -> bool:
        result = await self.session.execute(select(exists().where(DocumentRow.id.is_not(None))))
        return bool(result.scalar())

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _page(self, statement: Select, page_request: PageRequest) -> Page[Document]:
        total = await self.session.execute(
            select(func.count()).select_from(statement.order_by(None).subquery())
        )
        total_elements = total.scalar_one()
        if total_elements == 0:
            return Page.of([], page_request, 0)

        result = await self.session.execute(
            apply_sort(statement, page_request)
            .limit(page_request.page_size)
            .offset(page_request.offset)
        )
        content = [to_document(row) for row in result.scalars().all()]
        return Page.of(content, page_request, total_elements)


class SqlAiAnalysisRepository(AiAnalysisRepositoryPort):
    """Repository for AI analyses."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, analysis: AiAnalysis) -> AiAnalysis:
        """Insert or update an analysis inside a savepoint.

        A failed write rolls back only the savepoint, so the request session
        stays usable for the reads that follow.
        """
        async with self.session.begin_nested():
            row = (
                await self.session.get(AiAnalysisRow, analysis.id)
                if analysis.id is not None
                else None
            )
            if row is None:
                row = AiAnalysisRow(document_id=analysis.document_id, created_at=analysis.created_at)
                self.session.add(row)
            row.general_effect_text = analysis.general_effect_text
            row.economic_effect_text = analysis.economic_effect_text
            row.industry_tags = list(analysis.industry_tags)
            row.is_valid = analysis.is_valid
            row.analysis_date = analysis.analysis_date
            row.model_used = analysis.model_used
            row.updated_at = utcnow()
            await self.session.flush()
        return to_analysis(row)

    async def find_by_id(self, analysis_id: int) -> AiAnalysis | None:
        row = await self.session.get(AiAnalysisRow, analysis_id)
        return to_analysis(row) if row else None

    async def find_valid_by_document_id(self, document_id: int) -> list[AiAnalysis]:
        result = await self.session.execute(self._valid_for(document_id))
        return [to_analysis(row) for row in result.scalars().all()]

    async def find_latest_valid_by_document_id(self, document_id: int) -> AiAnalysis | None:
        result = await self.session.execute(self._valid_for(document_id).limit(1))
        row = result.scalars().first()
        return to_analysis(row) if row else None

    async def mark_as_invalid(self, analysis_id: int) -> bool:
        """Flag an analysis invalid. Returns True if it existed."""
        row = await self.session.get(AiAnalysisRow, analysis_id)
        if row is None:
            return False
        row.is_valid = False
        row.updated_at = utcnow()
        await self.session.flush()
        return True

    async def count_valid(self) -> int:
        result = await self.session.execute(
            select(func.count(AiAnalysisRow.id)).where(AiAnalysisRow.is_valid.is_(True))
        )
        return result.scalar_one()

    @staticmethod
    def _valid_for(document_id: int) -> Select:
        return (
            select(AiAnalysisRow)
            .where(AiAnalysisRow.document_id == document_id)
            .where(AiAnalysisRow.is_valid.is_(True))
            .order_by(AiAnalysisRow.analysis_date.desc())
        )


class SqlIngestionRunRepository(IngestionRunRepositoryPort):
    """Ingestion run ledger.

    Every call commits in its own session so run bookkeeping survives a
    rolled-back document transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_successful(self, from_date: date) -> IngestionRun | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(IngestionRunRow)
                .where(IngestionRunRow.from_date == from_date)
                .where(IngestionRunRow.status == IngestionStatus.SUCCESS.value)
                .order_by(IngestionRunRow.completed_at.desc().nulls_last())
                .limit(1)
            )
            row = result.scalars().first()
            return to_ingestion_run(row) if row else None

    async def create(self, from_date: date) -> IngestionRun | None:
        async with self.session_factory() as session, session.begin():
            row = IngestionRunRow(
                from_date=from_date,
                status=IngestionStatus.PENDING.value,
                started_at=utcnow(),
                document_count=0,
            )
            session.add(row)
            await session.flush()
            return to_ingestion_run(row)

    async def mark_success(self, run_id: int, document_count: int) -> IngestionRun | None:
        return await self._update(run_id, lambda run: run.mark_success(document_count))

    async def mark_failure(self, run_id: int, error_message: str | None) -> IngestionRun | None:
        return await self._update(run_id, lambda run: run.mark_failure(error_message))

    async def find_latest_run(self) -> IngestionRun | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(IngestionRunRow).order_by(IngestionRunRow.started_at.desc()).limit(1)
            )
            row = result.scalars().first()
            return to_ingestion_run(row) if row else None

    async def _update(self, run_id: int, transition) -> IngestionRun | None:
        async with self.session_factory() as session, session.begin():
            row = await session.get(IngestionRunRow, run_id)
            if row is None:
                log.warning("ingestion_run_not_found", run_id=run_id)
                return None
            updated = transition(to_ingestion_run(row))
            row.status = updated.status.value
            row.completed_at = updated.completed_at
            row.document_count = updated.document_count
            row.error_message = updated.error_message
            await session.flush()
            return updated
