# ABOUTME: Pydantic models for legislative documents, sponsors, actions, analyses and runs.
# ABOUTME: Defines domain entities, external bill shapes and the read models served to clients.

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


class Document(BaseModel):
    """A tracked bill, keyed by its canonical bill id."""

    id: int | None = None
    bill_id: str
    title: str
    official_summary: str | None = None
    introduction_date: date | None = None
    congress_session: int | None = None
    bill_type: str | None = None
    full_text_url: str | None = None
    status: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Sponsor(BaseModel):
    """A legislator, keyed by bioguide id."""

    id: int | None = None
    bioguide_id: str
    first_name: str | None = None
    last_name: str | None = None
    party: str | None = None
    state: str | None = None
    district: int | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class DocumentSponsor(BaseModel):
    """Sponsor linked to one document, with join attributes."""

    sponsor: Sponsor
    is_primary_sponsor: bool = False
    sponsor_date: date | None = None

    @property
    def party(self) -> str | None:
        return self.sponsor.party


class DocumentAction(BaseModel):
    """A legislative action taken on a document."""

    id: int | None = None
    document_id: int | None = None
    action_date: date | None = None
    action_type: str | None = None
    action_text: str
    chamber: str | None = None
    action_code: str | None = None


class AiAnalysis(BaseModel):
    """AI-generated impact analysis of a document."""

    id: int | None = None
    document_id: int
    general_effect_text: str | None = None
    economic_effect_text: str | None = None
    industry_tags: list[str] = []
    is_valid: bool = True
    analysis_date: datetime = Field(default_factory=utcnow)
    model_used: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def has_substantial_content(self) -> bool:
        return bool(
            (self.general_effect_text and self.general_effect_text.strip())
            or (self.economic_effect_text and self.economic_effect_text.strip())
        )

    def mark_as_invalid(self) -> "AiAnalysis":
        return self.model_copy(update={"is_valid": False, "updated_at": utcnow()})


class IngestionStatus(str, Enum):
    """Lifecycle state of an ingestion run."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


class IngestionRun(BaseModel):
    """One attempt of the recent-bills ingestion job."""

    id: int | None = None
    from_date: date
    status: IngestionStatus = IngestionStatus.PENDING
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    document_count: int = 0
    error_message: str | None = None

    def mark_success(self, count: int) -> "IngestionRun":
        return self.model_copy(
            update={
                "status": IngestionStatus.SUCCESS,
                "document_count": count,
                "completed_at": utcnow(),
            }
        )

    def mark_failure(self, message: str | None) -> "IngestionRun":
        return self.model_copy(
            update={
                "status": IngestionStatus.FAILURE,
                "error_message": message,
                "completed_at": utcnow(),
            }
        )


# Read models


class PartyBreakdown(BaseModel):
    """Sponsor counts by party with clamped percentages."""

    democratic: int = 0
    republican: int = 0
    independent: int = 0
    other: int = 0
    total: int = 0
    democratic_percentage: float = 0.0
    republican_percentage: float = 0.0


class DocumentBasic(BaseModel):
    """Flat document projection without related collections."""

    id: int
    bill_id: str
    title: str
    official_summary: str | None = None
    introduction_date: date | None = None
    congress_session: int = 0
    bill_type: str = ""
    full_text_url: str | None = None
    status: str = ""
    created_at: datetime
    updated_at: datetime


class DocumentSummary(BaseModel):
    """Lightweight row for list views."""

    id: int
    bill_id: str
    title: str
    introduction_date: date | None = None
    status: str | None = None
    industry_tags: list[str] = []
    party_breakdown: PartyBreakdown = PartyBreakdown()
    has_valid_analysis: bool = False


class DocumentDetail(BaseModel):
    """Full document view with sponsors, actions and the authoritative analysis."""

    id: int
    bill_id: str
    title: str
    official_summary: str | None = None
    introduction_date: date | None = None
    congress_session: int | None = None
    bill_type: str | None = None
    full_text_url: str | None = None
    status: str | None = None
    sponsors: list[DocumentSponsor] = []
    actions: list[DocumentAction] = []
    analysis: AiAnalysis | None = None
    party_breakdown: PartyBreakdown = PartyBreakdown()
    created_at: datetime
    updated_at: datetime


class IndustryTagCount(BaseModel):
    """Industry tag with number of documents carrying it."""

    tag: str
    count: int


class AnalyticsSummary(BaseModel):
    """Aggregate statistics over the document set."""

    total_documents: int = 0
    documents_needing_analysis: int = 0
    avg_democratic_sponsorship: float = 0.0
    avg_republican_sponsorship: float = 0.0
    top_industry_tags: list[IndustryTagCount] = []


# External legislative data


class BillSummary(BaseModel):
    """Bill row as listed by the external legislative-data source."""

    congress: int | None = None
    number: str | None = None
    type: str | None = None
    title: str | None = None
    introduced_date: str | None = None


class BillsPage(BaseModel):
    """One page of bills from the external source."""

    bills: list[BillSummary] = []


class BillDetail(BaseModel):
    """Detail payload for a single bill."""

    bill: BillSummary
