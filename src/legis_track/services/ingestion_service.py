# ABOUTME: Ingestion of recent bills from the legislative-data source into the document store.
# ABOUTME: Tracks each attempt as an IngestionRun, skips repeated from_dates and records metrics.

import time
from datetime import date

import structlog

from legis_track.metrics import IngestionMetrics, get_ingestion_metrics
from legis_track.models import BillSummary, Document
from legis_track.ports import CongressPort, DocumentRepositoryPort, IngestionRunRepositoryPort

log = structlog.get_logger()

PAGE_SIZE = 50
MAX_PAGES = 20


def build_bill_id(bill_type: str | None, number: str | None, congress: int | None) -> str | None:
    """Canonical TYPE+NUMBER-CONGRESS identifier, or None when the number is blank.

    >>> build_bill_id("hr", " 123 ", 118)
    'HR123-118'
    """
    if number is None or not number.strip():
        return None
    bill_id = (bill_type or "").strip().upper() + number.strip()
    if congress is not None:
        bill_id += f"-{congress}"
    return bill_id


def _parse_introduced_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        log.debug("introduced_date_unparseable", value=value)
        return None


class DataIngestionService:
    """Fetches recent bills and persists the ones not seen before.

    Each call is tracked as an ingestion run: pending on start, then success or
    failure. A successful run for the same ``from_date`` short-circuits the call.
    Failures are recorded on the run and never raised to the caller.
    """

    def __init__(
        self,
        congress: CongressPort,
        document_repository: DocumentRepositoryPort,
        run_repository: IngestionRunRepositoryPort,
        metrics: IngestionMetrics | None = None,
    ) -> None:
        self.congress = congress
        self.document_repository = document_repository
        self.run_repository = run_repository
        self.metrics = metrics or get_ingestion_metrics()

    async def ingest_recent_documents(self, from_date: date) -> int:
        """Ingest bills updated since ``from_date``.

        Documents are committed as one unit before the run is marked
        successful. Any failure, including the commit itself, rolls the
        documents back and marks the run failed.

        Returns:
            Number of new documents persisted; 0 when skipped or failed.
        """
        run_id: int | None = None
        try:
            existing = await self.run_repository.find_successful(from_date)
            if existing is not None:
                log.info("ingestion_skipped", from_date=from_date.isoformat(), run_id=existing.id)
                self.metrics.record_skipped()
                return 0

            run = await self.run_repository.create(from_date)
            run_id = run.id if run else None
            log.info("ingestion_started", from_date=from_date.isoformat(), run_id=run_id)

            started = time.perf_counter()
            persisted, pages = await self._ingest_pages(from_date)
            await self.document_repository.commit()
            elapsed = time.perf_counter() - started

            if run_id is not None:
                await self.run_repository.mark_success(run_id, persisted)
            self.metrics.record_success(persisted, elapsed)
            log.info(
                "ingestion_completed",
                run_id=run_id,
                documents=persisted,
                pages=pages,
                duration_s=round(elapsed, 3),
            )
            return persisted

        except Exception as e:
            log.exception("ingestion_failed", from_date=from_date.isoformat(), run_id=run_id)
            await self._discard_documents(run_id)
            self.metrics.record_failure()
            if run_id is not None:
                await self._mark_failure(run_id, str(e))
            return 0

    async def _ingest_pages(self, from_date: date) -> tuple[int, int]:
        """Walk the source in fixed pages. Returns (documents persisted, pages fetched)."""
        offset = 0
        persisted = 0
        pages = 0
        while pages < MAX_PAGES:
            page = await self.congress.get_recent_bills(from_date, offset, PAGE_SIZE)
            pages += 1
            if not page.bills:
                break

            for bill in page.bills:
                if await self._persist_if_new(bill):
                    persisted += 1

            if len(page.bills) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        else:
            log.warning("ingestion_page_cap_reached", max_pages=MAX_PAGES)
        return persisted, pages

    async def _persist_if_new(self, bill: BillSummary) -> bool:
        bill_id = build_bill_id(bill.type, bill.number, bill.congress)
        if bill_id is None:
            log.debug("bill_skipped_no_number", bill_type=bill.type, congress=bill.congress)
            return False

        # Existing documents are left untouched; there is no update path yet.
        if await self.document_repository.exists_by_bill_id(bill_id):
            return False

        await self.document_repository.save(
            Document(
                bill_id=bill_id,
                title=bill.title or bill_id,
                introduction_date=_parse_introduced_date(bill.introduced_date),
                congress_session=bill.congress,
                bill_type=bill.type,
            )
        )
        return True

    async def _discard_documents(self, run_id: int | None) -> None:
        try:
            await self.document_repository.rollback()
        except Exception:
            log.exception("ingestion_rollback_failed", run_id=run_id)

    async def _mark_failure(self, run_id: int, message: str) -> None:
        try:
            await self.run_repository.mark_failure(run_id, message)
        except Exception:
            log.exception("ingestion_run_mark_failure_failed", run_id=run_id)

    async def refresh_document(self, document_id: int) -> bool:
        """Check that a document exists before a refresh. Re-fetching is not implemented."""
        document = await self.document_repository.find_by_id_with_details(document_id)
        return document is not None


async def run_ingestion(from_date: date, congress: CongressPort | None = None) -> int:
    """Ingest with database-backed repositories in a fresh session.

    Used by the scheduler, the API trigger and the CLI.
    """
    from legis_track.congress.client import CongressApiClient
    from legis_track.db.repository import SqlDocumentRepository, SqlIngestionRunRepository
    from legis_track.db.session import get_session, get_session_factory

    client = congress or CongressApiClient()
    try:
        async with get_session() as session:
            service = DataIngestionService(
                congress=client,
                document_repository=SqlDocumentRepository(session),
                run_repository=SqlIngestionRunRepository(get_session_factory()),
            )
            return await service.ingest_recent_documents(from_date)
    finally:
        if congress is None:
            await client.aclose()
