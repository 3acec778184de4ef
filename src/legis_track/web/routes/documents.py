# ABOUTME: Document routes: paginated listing, search, industry-tag filter, detail and analysis.
# ABOUTME: Paging parameters are passed through; the document service clamps them.

import structlog
from fastapi import APIRouter, HTTPException, Query

from legis_track.models import DocumentDetail, DocumentSummary
from legis_track.pagination import Page, PageRequest, Sort, SortDirection
from legis_track.web.dependencies import DocumentSvc

router = APIRouter(prefix="/api/documents", tags=["documents"])
log = structlog.get_logger()


def parse_sort(sort: str | None) -> Sort | None:
    """Parse ``property[,asc|desc]`` into a Sort.

    >>> parse_sort("title,desc").orders[0].direction
    <SortDirection.DESC: 'desc'>
    """
    if not sort:
        return None
    prop, _, direction = sort.partition(",")
    prop = prop.strip()
    if not prop:
        return None
    if direction.strip().lower() == "desc":
        return Sort.by(prop, direction=SortDirection.DESC)
    return Sort.by(prop)


def _page_request(page: int, size: int, sort: str | None) -> PageRequest:
    return PageRequest.of(page, size, parse_sort(sort))


@router.get("", response_model=Page[DocumentSummary])
async def list_documents(
    service: DocumentSvc,
    page: int = 0,
    size: int = 20,
    sort: str | None = None,
):
    """All documents, newest introduction first."""
    return await service.get_all_documents(_page_request(page, size, sort))


@router.get("/search", response_model=Page[DocumentSummary])
async def search_documents(
    service: DocumentSvc,
    q: str = Query(..., min_length=1),
    page: int = 0,
    size: int = 20,
    sort: str | None = None,
):
    return await service.search_documents(q, _page_request(page, size, sort))


@router.get("/industry/{tag}", response_model=Page[DocumentSummary])
async def documents_by_industry_tag(
    tag: str,
    service: DocumentSvc,
    page: int = 0,
    size: int = 20,
    sort: str | None = None,
):
    return await service.find_by_industry_tag(tag, _page_request(page, size, sort))


@router.get("/{document_id}", response_model=DocumentDetail)
async def get_document(document_id: int, service: DocumentSvc):
    detail = await service.get_document_by_id(document_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
    return detail


@router.post("/{document_id}/analyze", response_model=DocumentDetail)
async def analyze_document(document_id: int, service: DocumentSvc):
    """Generate a fresh analysis (best effort) and return the document detail."""
    log.info("api_analyze_requested", document_id=document_id)
    detail = await service.analyze_document(document_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
    return detail
